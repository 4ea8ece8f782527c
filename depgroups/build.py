"""Removal of the ``dependency-groups`` table from distributed manifests."""

from __future__ import annotations

import copy
import logging
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .errors import ManifestStripError
from .models import TABLE_NAME
from .observability import log_event

__all__ = [
    "strip_dependency_groups",
    "strip_dependency_groups_text",
    "strip_manifest_file",
]

LOGGER = logging.getLogger(__name__)


def strip_dependency_groups(manifest: Mapping[str, Any]) -> dict[str, Any]:
    """Return a deep copy of ``manifest`` without the ``dependency-groups`` table."""

    return {key: copy.deepcopy(value) for key, value in manifest.items() if key != TABLE_NAME}


def strip_dependency_groups_text(text: str) -> str:
    """Remove the ``dependency-groups`` table from manifest source text.

    Every line outside the table is preserved byte for byte.  The result is
    parsed again and compared with the parsed original so that a manifest the
    line scanner cannot handle raises instead of producing a broken file.
    """

    try:
        original = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ManifestStripError(f"manifest is not valid TOML: {exc}") from exc

    if TABLE_NAME not in original:
        return text

    stripped = "".join(_ManifestScanner().filter(text.splitlines(keepends=True)))

    try:
        reparsed = tomllib.loads(stripped)
    except tomllib.TOMLDecodeError as exc:
        raise ManifestStripError(
            f"removing [{TABLE_NAME}] produced invalid TOML: {exc}"
        ) from exc
    if reparsed != strip_dependency_groups(original):
        raise ManifestStripError(
            f"could not remove [{TABLE_NAME}] without altering other manifest content"
        )
    return stripped


def strip_manifest_file(source: Path | str, destination: Path | str) -> Path:
    source_path = Path(source)
    destination_path = Path(destination)
    try:
        text = source_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestStripError(f"failed to read manifest {source_path}: {exc}") from exc
    stripped = strip_dependency_groups_text(text)
    destination_path.parent.mkdir(parents=True, exist_ok=True)
    destination_path.write_text(stripped, encoding="utf-8")
    log_event(
        event="manifest.stripped",
        source=str(source_path),
        destination=str(destination_path),
        removed_lines=len(text.splitlines()) - len(stripped.splitlines()),
    )
    return destination_path


class _ManifestScanner:
    """Line filter tracking just enough TOML lexical state to find tables."""

    def __init__(self) -> None:
        self._depth = 0
        self._multiline: str | None = None
        self._seen_header = False
        self._in_table = False
        self._skipping_value = False

    def filter(self, lines: list[str]) -> list[str]:
        kept: list[str] = []
        for line in lines:
            if not self._keep(line):
                LOGGER.debug("Dropping manifest line: %r", line.rstrip("\n"))
                continue
            kept.append(line)
        return kept

    def _keep(self, line: str) -> bool:
        at_root = self._depth == 0 and self._multiline is None and not self._skipping_value
        stripped = line.lstrip()
        keep = True
        if at_root and stripped.startswith("["):
            self._seen_header = True
            header = stripped.lstrip("[").lstrip()
            self._in_table = _first_key_segment(header) == TABLE_NAME
            keep = not self._in_table
        elif self._in_table or self._skipping_value:
            keep = False
        elif (
            at_root
            and not self._seen_header
            and stripped
            and not stripped.startswith("#")
            and _first_key_segment(stripped) == TABLE_NAME
        ):
            self._skipping_value = True
            keep = False

        self._scan(line)
        if self._skipping_value and self._depth == 0 and self._multiline is None:
            self._skipping_value = False
        return keep

    def _scan(self, line: str) -> None:
        index = 0
        length = len(line)
        while index < length:
            if self._multiline is not None:
                end = line.find(self._multiline, index)
                if end == -1:
                    return
                index = end + 3
                # Quotes directly after the closing delimiter belong to the string.
                while index < length and line[index] == self._multiline[0]:
                    index += 1
                self._multiline = None
                continue
            char = line[index]
            if char == "#":
                return
            if char in {'"', "'"}:
                if line.startswith(char * 3, index):
                    self._multiline = char * 3
                    index += 3
                    continue
                index = _skip_string(line, index, char)
                continue
            if char in "[{":
                self._depth += 1
            elif char in "]}":
                self._depth -= 1
            index += 1


def _skip_string(line: str, start: int, quote: str) -> int:
    index = start + 1
    while index < len(line):
        char = line[index]
        if quote == '"' and char == "\\":
            index += 2
            continue
        if char == quote:
            return index + 1
        index += 1
    return index


def _first_key_segment(text: str) -> str:
    text = text.lstrip()
    if text[:1] in {'"', "'"}:
        quote = text[0]
        end = text.find(quote, 1)
        return text[1:end] if end != -1 else text[1:]
    segment = []
    for char in text:
        if char in ".=]" or char.isspace():
            break
        segment.append(char)
    return "".join(segment)
