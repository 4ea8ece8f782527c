from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path

__all__ = ["LOG_LEVELS", "OutputFormat", "Settings"]

LOG_LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")


class OutputFormat(str, Enum):
    JSON = "json"
    YAML = "yaml"
    REQUIREMENTS = "requirements"

    @classmethod
    def from_str(cls, value: str | None) -> OutputFormat:
        if value is None or not value.strip():
            return cls.JSON
        normalised = value.strip().lower()
        for member in cls:
            if member.value == normalised:
                return member
        choices = ", ".join(member.value for member in cls)
        raise ValueError(f"unknown output format '{value}' (expected one of: {choices})")


@dataclass(frozen=True, slots=True)
class Settings:
    """Runtime settings for the command line interface."""

    pyproject: Path = Path("pyproject.toml")
    log_level: str = "WARN"
    output_format: OutputFormat = OutputFormat.JSON

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        settings = cls()
        pyproject = env.get("DEPGROUPS_PYPROJECT", "").strip()
        if pyproject:
            settings = replace(settings, pyproject=Path(pyproject))
        log_level = env.get("DEPGROUPS_LOG_LEVEL", "").strip().upper()
        if log_level:
            if log_level not in LOG_LEVELS:
                raise ValueError(
                    f"DEPGROUPS_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}"
                )
            settings = replace(settings, log_level=log_level)
        output_format = env.get("DEPGROUPS_FORMAT")
        if output_format:
            settings = replace(settings, output_format=OutputFormat.from_str(output_format))
        return settings
