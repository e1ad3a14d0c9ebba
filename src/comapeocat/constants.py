"""Stable constants shared by the archive writer, reader and authoring tools."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Final

PACKAGE_NAME: Final[str] = "comapeocat"
PACKAGE_VERSION: Final[str] = "1.0.0"


class DocumentType(StrEnum):
    """Kinds of user-created document a category can apply to."""

    OBSERVATION = "observation"
    TRACK = "track"


class GeometryType(StrEnum):
    """Deprecated geometry kinds used by older archives and authoring sources."""

    POINT = "point"
    LINE = "line"
    AREA = "area"


DOCUMENT_TYPES: Final[tuple[DocumentType, ...]] = (DocumentType.OBSERVATION, DocumentType.TRACK)
REQUIRED_DOCUMENT_TYPES: Final[tuple[DocumentType, ...]] = DOCUMENT_TYPES
GEOMETRY_TYPES: Final[tuple[GeometryType, ...]] = (
    GeometryType.POINT,
    GeometryType.LINE,
    GeometryType.AREA,
)

# Area has no document-type counterpart and is dropped on migration.
GEOMETRY_TO_DOCUMENT_TYPE: Final[dict[GeometryType, DocumentType]] = {
    GeometryType.POINT: DocumentType.OBSERVATION,
    GeometryType.LINE: DocumentType.TRACK,
}

# Archive format version written by this package.
FORMAT_VERSION: Final[str] = "1.0"
SUPPORTED_MAJOR_VERSION: Final[int] = 1

# Default resource ceilings.
MAX_ENTRIES: Final[int] = 10_000
MAX_ICON_SIZE: Final[int] = 2_000_000
MAX_JSON_SIZE: Final[int] = 100_000
MAX_VERSION_SIZE: Final[int] = 100

# Archive entry names.
VERSION_FILE: Final[str] = "VERSION"
CATEGORIES_FILE: Final[str] = "categories.json"
FIELDS_FILE: Final[str] = "fields.json"
SELECTION_FILE: Final[str] = "categorySelection.json"
METADATA_FILE: Final[str] = "metadata.json"
ICONS_DIR: Final[str] = "icons"
TRANSLATIONS_DIR: Final[str] = "translations"
LEGACY_PRESETS_FILE: Final[str] = "presets.json"
LEGACY_DEFAULTS_FILE: Final[str] = "defaults.json"

ICON_ENTRY_PATTERN: Final[re.Pattern[str]] = re.compile(r"^icons/(?P<name>[^/]+)\.svg$")
TRANSLATION_ENTRY_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^translations/(?P<lang>[^/]+)\.json$"
)

# Fixed zip timestamp keeps archive bytes deterministic for identical input.
ZIP_FIXED_TIMESTAMP: Final[tuple[int, int, int, int, int, int]] = (1980, 1, 1, 0, 0, 0)
DEFAULT_COMPRESSION_LEVEL: Final[int] = 9


@dataclass(frozen=True, slots=True)
class ArchiveLimits:
    """Byte and entry ceilings enforced by both the writer and the reader."""

    max_entries: int = MAX_ENTRIES
    max_json_size: int = MAX_JSON_SIZE
    max_icon_size: int = MAX_ICON_SIZE
    max_version_size: int = MAX_VERSION_SIZE

    def __post_init__(self) -> None:
        for name in ("max_entries", "max_json_size", "max_icon_size", "max_version_size"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"ArchiveLimits.{name} must be a positive integer")


DEFAULT_LIMITS: Final[ArchiveLimits] = ArchiveLimits()


def icon_entry_name(icon_id: str) -> str:
    return f"{ICONS_DIR}/{icon_id}.svg"


def translation_entry_name(lang: str) -> str:
    return f"{TRANSLATIONS_DIR}/{lang}.json"


__all__ = [
    "ArchiveLimits",
    "CATEGORIES_FILE",
    "DEFAULT_COMPRESSION_LEVEL",
    "DEFAULT_LIMITS",
    "DOCUMENT_TYPES",
    "DocumentType",
    "FIELDS_FILE",
    "FORMAT_VERSION",
    "GEOMETRY_TO_DOCUMENT_TYPE",
    "GEOMETRY_TYPES",
    "GeometryType",
    "ICONS_DIR",
    "ICON_ENTRY_PATTERN",
    "LEGACY_DEFAULTS_FILE",
    "LEGACY_PRESETS_FILE",
    "MAX_ENTRIES",
    "MAX_ICON_SIZE",
    "MAX_JSON_SIZE",
    "MAX_VERSION_SIZE",
    "METADATA_FILE",
    "PACKAGE_NAME",
    "PACKAGE_VERSION",
    "REQUIRED_DOCUMENT_TYPES",
    "SELECTION_FILE",
    "SUPPORTED_MAJOR_VERSION",
    "TRANSLATIONS_DIR",
    "TRANSLATION_ENTRY_PATTERN",
    "VERSION_FILE",
    "ZIP_FIXED_TIMESTAMP",
    "icon_entry_name",
    "translation_entry_name",
]
