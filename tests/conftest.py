from __future__ import annotations

import pathlib
import sys
import textwrap
from collections.abc import Callable

import pytest

REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

_ENV_KEYS = ("DEPGROUPS_PYPROJECT", "DEPGROUPS_LOG_LEVEL", "DEPGROUPS_FORMAT")


@pytest.fixture(scope="session")
def repo_root() -> pathlib.Path:
    return REPO_ROOT


@pytest.fixture(autouse=True)
def clean_depgroups_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def write_pyproject(tmp_path: pathlib.Path) -> Callable[[str], pathlib.Path]:
    def _write(contents: str, name: str = "pyproject.toml") -> pathlib.Path:
        path = tmp_path / name
        path.write_text(textwrap.dedent(contents).lstrip(), encoding="utf-8")
        return path

    return _write
