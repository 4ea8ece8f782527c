from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping, Sequence

from .errors import DependencyGroupValidationError, DependencyGroupsError
from .models import (
    DependencyGroup,
    Entry,
    IncludeEntry,
    LinterIssue,
    RequirementEntry,
    format_location,
    parse_entry,
)
from .resolver import resolve
from .schema import GROUP_NAME_PATTERN, iter_schema_issues

__all__ = ["LinterIssue", "has_errors", "lint_table"]


def lint_table(raw_table: object) -> list[LinterIssue]:
    """Report every problem found in a raw ``dependency-groups`` value."""

    issues = list(iter_schema_issues(raw_table))
    if not isinstance(raw_table, Mapping):
        return issues

    broken = {issue.path for issue in issues}
    groups: dict[str, DependencyGroup] = {}
    for name, raw_entries in raw_table.items():
        if not isinstance(name, str) or not GROUP_NAME_PATTERN.fullmatch(name):
            continue
        if not isinstance(raw_entries, list):
            continue
        entries: list[Entry] = []
        for index, raw_entry in enumerate(raw_entries):
            location = format_location([name, index])
            if _is_broken(location, broken):
                continue
            try:
                entries.append(parse_entry(raw_entry, location))
            except DependencyGroupValidationError as exc:
                issues.append(LinterIssue("error", "requirement.invalid", exc.reason, location))
        groups[name] = DependencyGroup(name=name, entries=tuple(entries))

        if not raw_entries:
            issues.append(
                LinterIssue(
                    "warning",
                    "group.empty",
                    f"Group '{name}' has no entries.",
                    format_location([name]),
                )
            )
        issues.extend(_duplicate_requirements(name, entries))

    issues.extend(_unknown_includes(groups))
    cycles = _find_cycles(groups)
    for cycle in cycles:
        issues.append(
            LinterIssue(
                "error",
                "include.cycle",
                f"Include cycle detected: {' -> '.join(cycle)}.",
                format_location([cycle[0]]),
            )
        )

    in_cycle = {name for cycle in cycles for name in cycle}
    for name in groups:
        if name in in_cycle:
            continue
        try:
            resolved = resolve(groups, name)
        except DependencyGroupsError:
            # Unknown includes are already reported above.
            continue
        for path in resolved.editable_conflicts:
            issues.append(
                LinterIssue(
                    "warning",
                    "path.editable-conflict",
                    (
                        f"Group '{name}' merges path '{path}' with conflicting editable "
                        "values; editable is left unset."
                    ),
                    format_location([name]),
                )
            )

    return issues


def has_errors(issues: Iterable[LinterIssue]) -> bool:
    return any(issue.level == "error" for issue in issues)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _is_broken(location: str, broken: set[str]) -> bool:
    prefixes = (location + ".", location + "[")
    return any(path == location or path.startswith(prefixes) for path in broken)


def _duplicate_requirements(name: str, entries: Sequence[Entry]) -> list[LinterIssue]:
    counts = Counter(
        entry.requirement for entry in entries if isinstance(entry, RequirementEntry)
    )
    return [
        LinterIssue(
            "warning",
            "requirement.duplicate",
            f"Group '{name}' lists requirement '{requirement}' {count} times.",
            format_location([name]),
        )
        for requirement, count in counts.items()
        if count > 1
    ]


def _unknown_includes(groups: Mapping[str, DependencyGroup]) -> list[LinterIssue]:
    issues: list[LinterIssue] = []
    for name, group in groups.items():
        for index, entry in enumerate(group.entries):
            if isinstance(entry, IncludeEntry) and entry.group not in groups:
                issues.append(
                    LinterIssue(
                        "error",
                        "include.unknown",
                        f"Group '{name}' includes undefined group '{entry.group}'.",
                        format_location([name, index]),
                    )
                )
    return issues


def _find_cycles(groups: Mapping[str, DependencyGroup]) -> list[tuple[str, ...]]:
    graph = {
        name: [target for target in group.includes if target in groups]
        for name, group in groups.items()
    }
    found: dict[tuple[str, ...], tuple[str, ...]] = {}
    done: set[str] = set()

    def visit(node: str, stack: list[str]) -> None:
        stack.append(node)
        for target in graph[node]:
            if target in stack:
                cycle = _canonical_cycle(stack[stack.index(target):])
                found.setdefault(cycle, cycle + (cycle[0],))
            elif target not in done:
                visit(target, stack)
        stack.pop()
        done.add(node)

    for name in graph:
        if name not in done:
            visit(name, [])
    return [found[key] for key in sorted(found)]


def _canonical_cycle(members: Sequence[str]) -> tuple[str, ...]:
    start = members.index(min(members))
    return tuple(members[start:]) + tuple(members[:start])
