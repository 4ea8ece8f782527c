import tomllib
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import cast

from depgroups.schema import load_schema


def _as_mapping(value: object, context: str) -> Mapping[str, object]:
    assert isinstance(value, Mapping), f"{context} must be a mapping"
    return cast(Mapping[str, object], value)


def _as_sequence(value: object, context: str) -> Sequence[object]:
    assert isinstance(value, Sequence), f"{context} must be a sequence"
    return cast(Sequence[object], value)


def _load_pyproject(repo_root: Path) -> Mapping[str, object]:
    pyproject_path = repo_root / "pyproject.toml"
    assert pyproject_path.exists(), "pyproject.toml must exist at project root"
    return tomllib.loads(pyproject_path.read_text(encoding="utf-8"))


def test_pyproject_ci_tooling_configuration(repo_root: Path) -> None:
    data_raw = _load_pyproject(repo_root)
    tool_mapping = _as_mapping(data_raw.get("tool"), "[tool]")

    ruff_mapping = _as_mapping(tool_mapping.get("ruff"), "[tool.ruff]")
    lint_mapping = _as_mapping(ruff_mapping.get("lint"), "[tool.ruff.lint]")
    select = _as_sequence(lint_mapping.get("select"), "[tool.ruff.lint].select")

    assert ruff_mapping.get("line-length") == 100
    assert ruff_mapping.get("target-version") == "py311"
    assert list(select) == ["E", "F", "I", "UP", "B"]

    mypy_mapping = _as_mapping(tool_mapping.get("mypy"), "[tool.mypy]")
    assert mypy_mapping.get("python_version") == "3.11"
    assert mypy_mapping.get("strict") is False

    pytest_mapping = _as_mapping(tool_mapping.get("pytest"), "[tool.pytest]")
    ini_options = _as_mapping(
        pytest_mapping.get("ini_options"), "[tool.pytest.ini_options]"
    )
    assert ini_options.get("testpaths") == ["tests"]
    assert ini_options.get("addopts") == "-q"


def test_pyproject_declares_runtime_stack(repo_root: Path) -> None:
    project = _as_mapping(_load_pyproject(repo_root).get("project"), "[project]")
    dependencies = _as_sequence(project.get("dependencies"), "[project].dependencies")
    names = {str(requirement).split(">")[0].split("=")[0].lower() for requirement in dependencies}

    assert names == {"jsonschema", "packaging", "pyyaml"}
    scripts = _as_mapping(project.get("scripts"), "[project.scripts]")
    assert scripts.get("depgroups") == "depgroups.cli:main"


def test_schema_is_shipped_as_package_data(repo_root: Path) -> None:
    tool_mapping = _as_mapping(_load_pyproject(repo_root).get("tool"), "[tool]")
    setuptools_mapping = _as_mapping(tool_mapping.get("setuptools"), "[tool.setuptools]")
    package_data = _as_mapping(
        setuptools_mapping.get("package-data"), "[tool.setuptools.package-data]"
    )

    assert package_data.get("depgroups") == ["schemas/*.json"]
    assert (repo_root / "depgroups" / "schemas" / "dependency_groups.schema.json").exists()
    assert load_schema()["type"] == "object"
