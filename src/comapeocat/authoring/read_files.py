"""
comapeocat — authoring directory reader.

File: src/comapeocat/authoring/read_files.py

Purpose
- Walk a categories authoring directory and yield every source file, each parsed
  and checked against its schema.

Layout
- ``categories/**.json`` (``presets/`` when ``categories/`` does not exist)
- ``fields/**.json``
- ``icons/**.svg``
- ``messages/*.json`` (one file per language, not recursive)
- ``metadata.json``, ``categorySelection.json`` and the deprecated ``defaults.json``

Functional requirements
- Ids are file paths relative to their kind directory, without extension and with
  ``/`` separators.
- Missing optional directories and files are skipped; other OS errors propagate.
- Files are visited in sorted order so output is deterministic.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

import structlog

from comapeocat.constants import LEGACY_DEFAULTS_FILE, METADATA_FILE, SELECTION_FILE
from comapeocat.jsonio import load_json
from comapeocat.schema.category import parse_category_input
from comapeocat.schema.field import parse_field
from comapeocat.schema.messages import parse_messages
from comapeocat.schema.metadata import parse_metadata_input
from comapeocat.schema.selection import parse_defaults, parse_selection
from comapeocat.svg import sanitize_svg

if TYPE_CHECKING:
    import os
    from collections.abc import AsyncIterator, Callable

CATEGORIES_DIR: Final[str] = "categories"
PRESETS_DIR: Final[str] = "presets"
FIELDS_DIR: Final[str] = "fields"
ICONS_DIR: Final[str] = "icons"
MESSAGES_DIR: Final[str] = "messages"

_MISSING: Final[object] = object()

_LOGGER = structlog.get_logger(__name__)


class SourceKind(StrEnum):
    CATEGORY = "category"
    FIELD = "field"
    ICON = "icon"
    MESSAGES = "messages"
    METADATA = "metadata"
    CATEGORY_SELECTION = "categorySelection"
    DEFAULTS = "defaults"


@dataclass(frozen=True, slots=True)
class SourceFile:
    """One validated authoring file.

    ``value`` is the parsed JSON document (or the SVG text for icons), left in its
    authored shape so callers can migrate or extract from it.
    """

    kind: SourceKind
    id: str
    value: Any


async def read_files(directory: str | os.PathLike[str]) -> AsyncIterator[SourceFile]:
    root = Path(directory)
    category_dir = root / CATEGORIES_DIR
    if not await asyncio.to_thread(category_dir.exists):
        category_dir = root / PRESETS_DIR

    for file_id, value in await _json_files(root, category_dir, _check_category):
        yield SourceFile(SourceKind.CATEGORY, file_id, value)

    for file_id, value in await _json_files(root, root / FIELDS_DIR, _check_field):
        yield SourceFile(SourceKind.FIELD, file_id, value)

    icons_dir = root / ICONS_DIR
    for path in await asyncio.to_thread(_list_files, icons_dir, ".svg", recursive=True):
        icon_id = _file_id(icons_dir, path)
        text = await asyncio.to_thread(path.read_text, encoding="utf-8")
        sanitize_svg(text, icon_id=icon_id)
        yield SourceFile(SourceKind.ICON, icon_id, text)

    for file_id, value in await _json_files(
        root, root / MESSAGES_DIR, _check_messages, recursive=False
    ):
        yield SourceFile(SourceKind.MESSAGES, file_id, value)

    singles: tuple[tuple[str, SourceKind, Callable[[Any, str], None]], ...] = (
        (METADATA_FILE, SourceKind.METADATA, _check_metadata),
        (SELECTION_FILE, SourceKind.CATEGORY_SELECTION, _check_selection),
        (LEGACY_DEFAULTS_FILE, SourceKind.DEFAULTS, _check_defaults),
    )
    for file_name, kind, check in singles:
        value = await asyncio.to_thread(_load_optional_json, root / file_name, file_name)
        if value is _MISSING:
            continue
        check(value, file_name)
        yield SourceFile(kind, Path(file_name).stem, value)


async def _json_files(
    root: Path,
    directory: Path,
    check: Callable[[Any, str], None],
    *,
    recursive: bool = True,
) -> list[tuple[str, Any]]:
    paths = await asyncio.to_thread(_list_files, directory, ".json", recursive=recursive)
    loaded: list[tuple[str, Any]] = []
    for path in paths:
        source = path.relative_to(root).as_posix()
        data = await asyncio.to_thread(path.read_bytes)
        value = load_json(data, source=source)
        check(value, source)
        loaded.append((_file_id(directory, path), value))
    _LOGGER.debug("authoring_files_read", directory=directory.name, count=len(loaded))
    return loaded


def _list_files(directory: Path, suffix: str, *, recursive: bool) -> list[Path]:
    try:
        entries = sorted(directory.iterdir())
    except FileNotFoundError:
        return []
    found: list[Path] = []
    for entry in entries:
        if entry.is_dir():
            if recursive:
                found.extend(_list_files(entry, suffix, recursive=True))
        elif entry.suffix == suffix:
            found.append(entry)
    return found


def _load_optional_json(path: Path, source: str) -> Any:
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        return _MISSING
    return load_json(data, source=source)


def _file_id(directory: Path, path: Path) -> str:
    return path.relative_to(directory).with_suffix("").as_posix()


def _check_category(value: Any, source: str) -> None:
    parse_category_input(value, source=source)


def _check_field(value: Any, source: str) -> None:
    parse_field(value, source=source)


def _check_messages(value: Any, source: str) -> None:
    parse_messages(value, source=source)


def _check_metadata(value: Any, source: str) -> None:
    parse_metadata_input(value, source=source)


def _check_selection(value: Any, source: str) -> None:
    parse_selection(value, source=source)


def _check_defaults(value: Any, source: str) -> None:
    parse_defaults(value, source=source)


__all__ = [
    "CATEGORIES_DIR",
    "FIELDS_DIR",
    "ICONS_DIR",
    "MESSAGES_DIR",
    "PRESETS_DIR",
    "SourceFile",
    "SourceKind",
    "read_files",
]
