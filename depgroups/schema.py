from __future__ import annotations

import json
import re
from collections.abc import Iterator, Mapping
from functools import cache
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

from .errors import DependencyGroupValidationError
from .models import TABLE_NAME, LinterIssue, format_location

__all__ = [
    "GROUP_NAME_PATTERN",
    "check_group_name",
    "iter_schema_issues",
    "load_schema",
    "validate_structure",
]

_MODULE_ROOT = Path(__file__).resolve().parent
_SCHEMA_PATH = _MODULE_ROOT / "schemas" / "dependency_groups.schema.json"

GROUP_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]*[a-z0-9]$")

_GROUP_NAME_HINT = "lowercase letters, digits and internal hyphens, at least two characters"


@cache
def load_schema() -> Mapping[str, Any]:
    """Return the packaged JSON schema for the ``dependency-groups`` table."""

    with _SCHEMA_PATH.open("r", encoding="utf-8") as handle:
        schema = json.load(handle)
    Draft202012Validator.check_schema(schema)
    return schema


@cache
def _validator() -> Draft202012Validator:
    return Draft202012Validator(load_schema())


def check_group_name(name: object) -> None:
    if not isinstance(name, str) or not GROUP_NAME_PATTERN.fullmatch(name):
        raise DependencyGroupValidationError(
            f"group name {name!r} must use {_GROUP_NAME_HINT}",
            location=TABLE_NAME,
        )


def iter_schema_issues(table: object) -> Iterator[LinterIssue]:
    """Yield one issue per structural violation, ordered by location."""

    errors = sorted(_validator().iter_errors(table), key=_sort_key)
    seen: set[tuple[str, str]] = set()
    for error in errors:
        issue = _to_issue(error)
        marker = (issue.path, issue.msg)
        if marker in seen:
            continue
        seen.add(marker)
        yield issue


def validate_structure(table: object) -> None:
    """Raise on the first structural violation of ``table``."""

    for issue in iter_schema_issues(table):
        raise DependencyGroupValidationError(issue.msg, location=issue.path)


def _sort_key(error: ValidationError) -> tuple[str, str]:
    return (_location(error), error.message)


def _location(error: ValidationError) -> str:
    parts = list(error.absolute_path)
    if "propertyNames" in error.absolute_schema_path:
        # propertyNames errors report the offending key as the instance.
        parts.append(error.instance)
    return format_location(parts)


def _to_issue(error: ValidationError) -> LinterIssue:
    location = _location(error)
    if "propertyNames" in error.absolute_schema_path:
        return LinterIssue(
            "error",
            "schema.group-name",
            f"group name {error.instance!r} must use {_GROUP_NAME_HINT}",
            location,
        )
    path = list(error.absolute_path)
    if error.validator in {"pattern", "not"} and path and path[-1] == "include":
        return LinterIssue(
            "error",
            "schema.include-name",
            f"included group name {error.instance!r} must use {_GROUP_NAME_HINT}",
            location,
        )
    if error.validator == "additionalProperties" and isinstance(error.instance, Mapping):
        kind = "include" if "include" in error.instance else "path"
        return LinterIssue(
            "error",
            f"schema.{kind}-keys",
            f"{kind} entry {error.message[0].lower()}{error.message[1:]}",
            location,
        )
    return LinterIssue("error", f"schema.{error.validator}", error.message, location)
