"""Expansion of dependency groups.

``include`` entries are replaced depth-first by the entries of the group they
name.  Path entries that point at the same ``path`` string anywhere in the
expansion are merged into a single entry placed at the first occurrence:

* ``extras`` are concatenated in encounter order;
* ``editable`` survives only when every instance sets the same value;
* ``only-deps`` is ``True`` only when every instance sets it to ``True``.

Each group is expanded at most once per resolution, so a group reached
through several includes contributes its entries a single time.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from itertools import chain
from typing import Any

from .errors import CyclicDependencyGroupError, UnknownDependencyGroupError
from .models import DependencyGroup, IncludeEntry, PathEntry, RequirementEntry
from .observability import log_event

LOGGER = logging.getLogger(__name__)

ResolvedEntry = RequirementEntry | PathEntry


@dataclass(frozen=True, slots=True)
class ResolvedGroups:
    groups: tuple[str, ...]
    entries: tuple[ResolvedEntry, ...]
    editable_conflicts: tuple[str, ...] = ()

    @property
    def requirements(self) -> tuple[str, ...]:
        return tuple(
            entry.requirement for entry in self.entries if isinstance(entry, RequirementEntry)
        )

    @property
    def paths(self) -> tuple[PathEntry, ...]:
        return tuple(entry for entry in self.entries if isinstance(entry, PathEntry))

    def as_requirements_lines(self) -> list[str]:
        lines: list[str] = []
        for entry in self.entries:
            if isinstance(entry, PathEntry):
                lines.append(entry.to_requirement_line())
            else:
                lines.append(entry.requirement)
        return lines

    def to_payload(self) -> dict[str, Any]:
        return {
            "groups": list(self.groups),
            "requirements": list(self.requirements),
            "paths": [entry.to_raw() for entry in self.paths],
            "entries": [entry.to_raw() for entry in self.entries],
        }


def merge_path_entries(entries: Sequence[PathEntry]) -> PathEntry:
    """Merge path entries that share an identical ``path`` value."""

    if not entries:
        raise ValueError("merge_path_entries requires at least one entry")
    first = entries[0]
    mismatched = [entry.path for entry in entries if entry.path != first.path]
    if mismatched:
        raise ValueError(f"cannot merge path entries with different paths: {mismatched}")
    if len(entries) == 1:
        return first

    editable_values = {entry.editable for entry in entries}
    editable = first.editable if len(editable_values) == 1 else None
    only_deps = all(entry.only_deps is True for entry in entries)
    return PathEntry(
        path=first.path,
        extras=tuple(chain.from_iterable(entry.extras for entry in entries)),
        editable=editable,
        only_deps=only_deps,
    )


class _Expansion:
    def __init__(self, table: Mapping[str, DependencyGroup]) -> None:
        self._table = table
        self._slots: list[RequirementEntry | str] = []
        self._seen_requirements: set[str] = set()
        self._paths: dict[str, list[PathEntry]] = {}
        self.visited: set[str] = set()

    def expand(self, name: str, stack: tuple[str, ...]) -> None:
        for entry in self._table[name].entries:
            if isinstance(entry, IncludeEntry):
                target = entry.group
                if target in stack:
                    cycle = stack[stack.index(target):] + (target,)
                    raise CyclicDependencyGroupError(cycle)
                if target not in self._table:
                    raise UnknownDependencyGroupError(target, included_from=name)
                if target in self.visited:
                    continue
                self.visited.add(target)
                self.expand(target, stack + (target,))
            elif isinstance(entry, PathEntry):
                instances = self._paths.get(entry.path)
                if instances is None:
                    self._paths[entry.path] = [entry]
                    self._slots.append(entry.path)
                else:
                    instances.append(entry)
            elif entry.requirement not in self._seen_requirements:
                self._seen_requirements.add(entry.requirement)
                self._slots.append(entry)

    def result(self, groups: tuple[str, ...]) -> ResolvedGroups:
        entries: list[ResolvedEntry] = []
        conflicts: list[str] = []
        for slot in self._slots:
            if isinstance(slot, RequirementEntry):
                entries.append(slot)
                continue
            instances = self._paths[slot]
            editable_values = {instance.editable for instance in instances}
            if len(instances) > 1 and len(editable_values - {None}) > 1:
                conflicts.append(slot)
                LOGGER.warning(
                    "Path dependency %r requested with conflicting editable values in %s; "
                    "editable left unset",
                    slot,
                    ", ".join(groups),
                )
            entries.append(merge_path_entries(instances))
        return ResolvedGroups(
            groups=groups,
            entries=tuple(entries),
            editable_conflicts=tuple(conflicts),
        )


def resolve(table: Mapping[str, DependencyGroup], *groups: str) -> ResolvedGroups:
    """Expand ``groups`` of ``table`` into requirement strings and merged paths."""

    if not groups:
        raise ValueError("resolve requires at least one group name")

    expansion = _Expansion(table)
    for name in groups:
        if name not in table:
            raise UnknownDependencyGroupError(name)
        if name in expansion.visited:
            continue
        expansion.visited.add(name)
        expansion.expand(name, (name,))

    resolved = expansion.result(tuple(groups))
    log_event(
        event="groups.resolved",
        level=logging.DEBUG,
        groups=list(resolved.groups),
        requirements=len(resolved.requirements),
        paths=len(resolved.paths),
    )
    return resolved
