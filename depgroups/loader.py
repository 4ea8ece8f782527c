from __future__ import annotations

import logging
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .errors import DependencyGroupValidationError, UnknownDependencyGroupError
from .models import (
    TABLE_NAME,
    DependencyGroup,
    DependencyGroupsTable,
    Entry,
    format_location,
    parse_entry,
)
from .resolver import resolve
from .schema import validate_structure

LOGGER = logging.getLogger(__name__)


def read_manifest(path: Path | str) -> dict[str, Any]:
    """Parse a ``pyproject.toml`` file into a mapping."""

    manifest_path = Path(path).expanduser()
    try:
        with manifest_path.open("rb") as handle:
            return tomllib.load(handle)
    except OSError as exc:
        raise DependencyGroupValidationError(
            f"failed to read manifest {manifest_path}: {exc}"
        ) from exc
    except tomllib.TOMLDecodeError as exc:
        raise DependencyGroupValidationError(
            f"failed to parse TOML in {manifest_path}: {exc}"
        ) from exc


def build_table(
    raw_table: object,
    *,
    source: str | None = None,
    check_includes: bool = True,
) -> DependencyGroupsTable:
    """Validate a raw ``dependency-groups`` value and build its model."""

    validate_structure(raw_table)
    assert isinstance(raw_table, Mapping)

    groups: dict[str, DependencyGroup] = {}
    for name, raw_entries in raw_table.items():
        entries: list[Entry] = []
        for index, raw_entry in enumerate(raw_entries):
            entries.append(parse_entry(raw_entry, format_location([name, index])))
        groups[name] = DependencyGroup(name=name, entries=tuple(entries))

    table = DependencyGroupsTable(groups=groups, source=source)
    if check_includes:
        for name in table:
            resolve(table, name)
    return table


class DependencyGroupsLoader:
    """Load and expose the dependency groups of a project manifest."""

    def __init__(self, *, check_includes: bool = True) -> None:
        self._check_includes = check_includes
        self._table = DependencyGroupsTable()

    @property
    def table(self) -> DependencyGroupsTable:
        return self._table

    def load_file(self, path: Path | str) -> DependencyGroupsTable:
        manifest_path = Path(path).expanduser().resolve()
        manifest = read_manifest(manifest_path)
        return self.load_mapping(manifest, source=str(manifest_path))

    def load_mapping(
        self,
        data: Mapping[str, Any],
        *,
        source: str | None = None,
    ) -> DependencyGroupsTable:
        if not isinstance(data, Mapping):
            raise DependencyGroupValidationError(
                f"Expected mapping for manifest {source or '<memory>'}, "
                f"got {type(data).__name__}"
            )
        raw_table = data.get(TABLE_NAME)
        if raw_table is None:
            LOGGER.debug("Manifest %s has no [%s] table", source or "<memory>", TABLE_NAME)
            raw_table = {}

        self._table = build_table(
            raw_table,
            source=source,
            check_includes=self._check_includes,
        )
        LOGGER.debug(
            "Loaded %d dependency group(s) from %s",
            len(self._table),
            source or "<memory>",
        )
        return self._table

    def list(self) -> list[DependencyGroup]:
        return list(self._table.values())

    def names(self) -> list[str]:
        return list(self._table)

    def get(self, name: str) -> DependencyGroup:
        try:
            return self._table[name]
        except KeyError as exc:
            raise UnknownDependencyGroupError(name) from exc
