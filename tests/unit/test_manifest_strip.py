from __future__ import annotations

import textwrap
import tomllib
from pathlib import Path

import pytest

from depgroups.build import (
    strip_dependency_groups,
    strip_dependency_groups_text,
    strip_manifest_file,
)
from depgroups.errors import ManifestStripError


def _dedent(text: str) -> str:
    return textwrap.dedent(text).lstrip()


def test_strip_mapping_removes_table_and_copies() -> None:
    manifest = {
        "project": {"name": "demo", "dependencies": ["attrs"]},
        "dependency-groups": {"test": ["pytest"]},
    }

    stripped = strip_dependency_groups(manifest)

    assert stripped == {"project": {"name": "demo", "dependencies": ["attrs"]}}
    stripped["project"]["dependencies"].append("click")
    assert manifest["project"]["dependencies"] == ["attrs"]


def test_strip_text_removes_header_section_only() -> None:
    text = _dedent(
        """
        [project]
        name = "demo"
        version = "1.0"

        [dependency-groups]
        test = [
            "pytest",
            "coverage",
        ]
        dev = [{include = "test"}, "ruff"]

        [tool.ruff]
        line-length = 100
        """
    )

    stripped = strip_dependency_groups_text(text)

    assert stripped == _dedent(
        """
        [project]
        name = "demo"
        version = "1.0"

        [tool.ruff]
        line-length = 100
        """
    )


def test_strip_text_removes_root_dotted_keys() -> None:
    text = _dedent(
        """
        dependency-groups.test = [
            "pytest",
        ]
        dependency-groups.docs = ["sphinx"]
        other = 1

        [project]
        name = "demo"
        """
    )

    stripped = strip_dependency_groups_text(text)

    assert stripped == 'other = 1\n\n[project]\nname = "demo"\n'


def test_strip_text_removes_root_inline_table() -> None:
    text = 'dependency-groups = { test = ["pytest"] }\n\n[project]\nname = "demo"\n'

    assert strip_dependency_groups_text(text) == '\n[project]\nname = "demo"\n'


def test_strip_text_keeps_lookalikes() -> None:
    text = _dedent(
        '''
        [project]
        name = "demo"
        description = """
        [dependency-groups]
        not a header
        """

        [tool.dependency-groups]
        setting = "kept"

        [dependency-groups]
        test = ["pytest"]  # trailing [comment]
        nested = [
            ["pytest"],
        ]
        '''
    )

    stripped = strip_dependency_groups_text(text)
    parsed = tomllib.loads(stripped)

    assert "dependency-groups" not in parsed
    assert parsed["tool"]["dependency-groups"] == {"setting": "kept"}
    assert "[dependency-groups]\nnot a header" in parsed["project"]["description"]


def test_strip_text_without_table_is_identity() -> None:
    text = '[project]\nname = "demo"\n'
    assert strip_dependency_groups_text(text) is text


def test_strip_text_rejects_invalid_toml() -> None:
    with pytest.raises(ManifestStripError, match="not valid TOML"):
        strip_dependency_groups_text("[project\n")


def test_strip_manifest_file_writes_destination(tmp_path: Path) -> None:
    source = tmp_path / "pyproject.toml"
    source.write_text(
        '[project]\nname = "demo"\n\n[dependency-groups]\ntest = ["pytest"]\n',
        encoding="utf-8",
    )

    destination = strip_manifest_file(source, tmp_path / "dist" / "pyproject.toml")

    assert destination.read_text(encoding="utf-8") == '[project]\nname = "demo"\n\n'
    assert "dependency-groups" in source.read_text(encoding="utf-8")
