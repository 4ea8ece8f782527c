from __future__ import annotations

from collections.abc import Sequence

__all__ = [
    "CyclicDependencyGroupError",
    "DependencyGroupValidationError",
    "DependencyGroupsError",
    "ManifestStripError",
    "UnknownDependencyGroupError",
]


class DependencyGroupsError(Exception):
    """Base class for every error raised by :mod:`depgroups`."""


class DependencyGroupValidationError(DependencyGroupsError, ValueError):
    """Raised when a ``dependency-groups`` table fails validation."""

    def __init__(self, message: str, *, location: str | None = None) -> None:
        self.reason = message
        if location:
            message = f"{location}: {message}"
        super().__init__(message)
        self.location = location


class UnknownDependencyGroupError(DependencyGroupsError, LookupError):
    """Raised when a requested or included group does not exist."""

    def __init__(self, group: str, *, included_from: str | None = None) -> None:
        if included_from is None:
            message = f"dependency group '{group}' is not defined"
        else:
            message = (
                f"dependency group '{group}' (included from '{included_from}') "
                "is not defined"
            )
        super().__init__(message)
        self.group = group
        self.included_from = included_from


class CyclicDependencyGroupError(DependencyGroupsError):
    """Raised when include entries form a cycle."""

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = tuple(cycle)
        super().__init__(
            "dependency group include cycle detected: " + " -> ".join(self.cycle)
        )


class ManifestStripError(DependencyGroupsError):
    """Raised when the table cannot be removed from manifest text cleanly."""
