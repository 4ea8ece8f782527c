"""Data models for dependency group tables.

Every model is a frozen dataclass so that a loaded table can be shared between
the resolver, the linter and the CLI without defensive copying.  Tables expose
their groups through ``MappingProxyType`` and keep manifest order.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from packaging.requirements import InvalidRequirement, Requirement

from .errors import DependencyGroupValidationError

TABLE_NAME = "dependency-groups"


@dataclass(frozen=True, slots=True)
class LinterIssue:
    level: str
    code: str
    msg: str
    path: str

    def to_payload(self) -> dict[str, str]:
        return {"level": self.level, "code": self.code, "msg": self.msg, "path": self.path}


@dataclass(frozen=True, slots=True)
class RequirementEntry:
    """A requirement string such as ``pytest`` or ``black>=23; python_version>'3.8'``."""

    requirement: str

    @property
    def parsed(self) -> Requirement:
        return Requirement(self.requirement)

    def to_raw(self) -> str:
        return self.requirement


@dataclass(frozen=True, slots=True)
class IncludeEntry:
    """Reference to another group whose entries are expanded in place."""

    group: str

    def to_raw(self) -> dict[str, str]:
        return {"include": self.group}


@dataclass(frozen=True, slots=True)
class PathEntry:
    """Dependency on a local filesystem location.

    ``editable`` and ``only_deps`` are ``None`` when the manifest omits the key.
    """

    path: str
    extras: tuple[str, ...] = ()
    editable: bool | None = None
    only_deps: bool | None = None

    def to_raw(self) -> dict[str, Any]:
        raw: dict[str, Any] = {"path": self.path}
        if self.extras:
            raw["extras"] = list(self.extras)
        if self.editable is not None:
            raw["editable"] = self.editable
        if self.only_deps is not None:
            raw["only-deps"] = self.only_deps
        return raw

    def to_requirement_line(self) -> str:
        target = self.path
        if self.extras:
            target = f"{target}[{','.join(self.extras)}]"
        if self.editable:
            target = f"-e {target}"
        if self.only_deps:
            target = f"{target}  # only-deps"
        return target


Entry = RequirementEntry | IncludeEntry | PathEntry


@dataclass(frozen=True, slots=True)
class DependencyGroup:
    name: str
    entries: tuple[Entry, ...]

    @property
    def includes(self) -> tuple[str, ...]:
        return tuple(entry.group for entry in self.entries if isinstance(entry, IncludeEntry))

    def to_raw(self) -> list[Any]:
        return [entry.to_raw() for entry in self.entries]


@dataclass(frozen=True, slots=True)
class DependencyGroupsTable(Mapping[str, DependencyGroup]):
    """Read-only view over the validated groups of one manifest."""

    groups: Mapping[str, DependencyGroup] = field(default_factory=dict)
    source: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "groups", MappingProxyType(dict(self.groups)))

    def __getitem__(self, name: str) -> DependencyGroup:
        return self.groups[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.groups)

    def __len__(self) -> int:
        return len(self.groups)

    def to_raw(self) -> dict[str, list[Any]]:
        return {name: group.to_raw() for name, group in self.groups.items()}


def format_location(parts: Sequence[object]) -> str:
    """Render ``["test", 2, "extras"]`` as ``dependency-groups.test[2].extras``."""

    location = TABLE_NAME
    for part in parts:
        if isinstance(part, int):
            location += f"[{part}]"
        else:
            location += f".{part}"
    return location


def parse_entry(raw: object, location: str) -> Entry:
    """Convert one structurally valid raw entry into its model."""

    if isinstance(raw, str):
        try:
            Requirement(raw)
        except InvalidRequirement as exc:
            raise DependencyGroupValidationError(
                f"invalid requirement string {raw!r}: {exc}", location=location
            ) from exc
        return RequirementEntry(raw)

    if not isinstance(raw, Mapping):
        raise DependencyGroupValidationError(
            f"entry must be a string or table, got {type(raw).__name__}",
            location=location,
        )

    if "include" in raw:
        if set(raw) != {"include"}:
            extra = ", ".join(sorted(str(key) for key in raw if key != "include"))
            raise DependencyGroupValidationError(
                f"include entry must have exactly one key, found extra key(s): {extra}",
                location=location,
            )
        return IncludeEntry(str(raw["include"]))

    if "path" not in raw:
        raise DependencyGroupValidationError(
            "table entry requires an 'include' or 'path' key", location=location
        )
    extras = raw.get("extras", ())
    return PathEntry(
        path=str(raw["path"]),
        extras=tuple(str(extra) for extra in extras),
        editable=raw.get("editable"),
        only_deps=raw.get("only-deps"),
    )
