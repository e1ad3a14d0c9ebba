"""
comapeocat — error taxonomy.

File: src/comapeocat/errors.py

Purpose
- Define the closed set of failures raised by the writer, reader, validators and
  authoring tools.

What should be included in this file
- One exception class per failure, carrying the structured payload needed to report it
  (entry names, referencing categories, sizes and limits).
- An ``ErrorKind`` per class so callers can branch on category without string matching.

Functional requirements
- Messages are rendered from the payload and stay deterministic (sorted where the
  payload is a collection).
- ``is_validation_error`` identifies errors that should be reported concisely.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import ClassVar

from comapeocat.constants import (
    CATEGORIES_FILE,
    METADATA_FILE,
    SELECTION_FILE,
    VERSION_FILE,
)


class ErrorKind(StrEnum):
    SCHEMA = "schema"
    REFERENCE = "reference"
    DUPLICATE_TAGS = "duplicate_tags"
    SIZE = "size"
    VERSION = "version"
    STRUCTURAL = "structural"
    STATE = "state"


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


class CategoriesArchiveError(Exception):
    """Base class for every failure raised by this package."""

    kind: ClassVar[ErrorKind]


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------


class SchemaError(CategoriesArchiveError, ValueError):
    """Raised when an entity does not match its schema contract."""

    kind = ErrorKind.SCHEMA

    def __init__(self, source: str, issues: Sequence[ValidationIssue]) -> None:
        self.source = source
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "- <root>: unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid {source}:\n{rendered}")


class JSONParseError(CategoriesArchiveError, ValueError):
    """Raised when an entry or source file is not well-formed JSON."""

    kind = ErrorKind.SCHEMA

    def __init__(self, source: str, line: int, column: int, detail: str) -> None:
        self.source = source
        self.line = line
        self.column = column
        self.detail = detail
        super().__init__(f"{source}: invalid JSON at line {line}, column {column}: {detail}")


class LanguageTagError(CategoriesArchiveError, ValueError):
    """Raised for a language tag that is not a usable BCP-47 tag."""

    kind = ErrorKind.SCHEMA

    def __init__(self, tag: str, reason: str) -> None:
        self.tag = tag
        self.reason = reason
        super().__init__(f"invalid language tag {tag!r}: {reason}")


class SvgInvalidError(CategoriesArchiveError, ValueError):
    """Raised when icon text cannot be parsed as an SVG document."""

    kind = ErrorKind.SCHEMA

    def __init__(self, icon_id: str, detail: str) -> None:
        self.icon_id = icon_id
        self.detail = detail
        super().__init__(f"invalid SVG for icon {icon_id!r}: {detail}")


# ---------------------------------------------------------------------------
# References
# ---------------------------------------------------------------------------


class MissingReferenceError(CategoriesArchiveError, ValueError):
    """Categories reference fields or icons that do not exist."""

    kind = ErrorKind.REFERENCE

    def __init__(self, property_name: str, missing_refs: Mapping[str, Sequence[str]]) -> None:
        self.property_name = property_name
        self.missing_refs = {ref: tuple(sorted(ids)) for ref, ids in sorted(missing_refs.items())}
        details = "; ".join(
            f"{ref!r} (referenced by {', '.join(repr(item) for item in ids)})"
            for ref, ids in self.missing_refs.items()
        )
        super().__init__(f"missing {property_name} references: {details}")


class MissingDocumentTypeError(CategoriesArchiveError, ValueError):
    """No category applies to a required document type."""

    kind = ErrorKind.REFERENCE

    def __init__(self, document_type: str) -> None:
        self.document_type = document_type
        super().__init__(f"no categories apply to required document type {document_type!r}")


class SelectionRefError(CategoriesArchiveError, ValueError):
    """The category selection lists a category id that does not exist."""

    kind = ErrorKind.REFERENCE

    def __init__(self, category_id: str, document_type: str) -> None:
        self.category_id = category_id
        self.document_type = document_type
        super().__init__(
            f"category selection for {document_type!r} references missing category "
            f"{category_id!r}"
        )


class InvalidSelectionError(CategoriesArchiveError, ValueError):
    """The selection lists categories under document types they do not apply to."""

    kind = ErrorKind.REFERENCE

    def __init__(self, invalid_refs: Mapping[str, Sequence[str]]) -> None:
        self.invalid_refs = {
            document_type: tuple(ids) for document_type, ids in sorted(invalid_refs.items())
        }
        details = "; ".join(
            f"{document_type}: {', '.join(repr(item) for item in ids)}"
            for document_type, ids in self.invalid_refs.items()
        )
        super().__init__(
            f"category selection lists categories that do not apply to the document type: "
            f"{details}"
        )


# ---------------------------------------------------------------------------
# Tag uniqueness
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DuplicateTagGroup:
    """Categories sharing an identical tag set for one document type."""

    tags: Mapping[str, object]
    document_type: str
    category_ids: tuple[str, ...]


class DuplicateTagsError(CategoriesArchiveError, ValueError):
    kind = ErrorKind.DUPLICATE_TAGS

    def __init__(self, groups: Sequence[DuplicateTagGroup]) -> None:
        self.groups = tuple(groups)
        lines = [
            f"- {group.document_type} {json.dumps(dict(group.tags), sort_keys=True)}: "
            f"{', '.join(repr(item) for item in group.category_ids)}"
            for group in self.groups
        ]
        super().__init__("categories with duplicate tags:\n" + "\n".join(lines))


# ---------------------------------------------------------------------------
# Size and count ceilings
# ---------------------------------------------------------------------------


class EntrySizeError(CategoriesArchiveError, ValueError):
    """An archive entry exceeds its byte ceiling."""

    kind = ErrorKind.SIZE

    def __init__(self, entry: str, size: int, limit: int) -> None:
        self.entry = entry
        self.size = size
        self.limit = limit
        super().__init__(f"{entry} is {size} bytes, exceeding the limit of {limit} bytes")


class EntryCountError(CategoriesArchiveError, ValueError):
    """The archive holds more entries than allowed."""

    kind = ErrorKind.SIZE

    def __init__(self, count: int, limit: int) -> None:
        self.count = count
        self.limit = limit
        super().__init__(f"archive has {count} entries, exceeding the limit of {limit}")


# ---------------------------------------------------------------------------
# Format version
# ---------------------------------------------------------------------------


class InvalidVersionError(CategoriesArchiveError, ValueError):
    kind = ErrorKind.VERSION

    def __init__(self, version: str) -> None:
        self.version = version
        super().__init__(f"invalid archive version {version!r}: expected MAJOR.MINOR")


class UnsupportedVersionError(CategoriesArchiveError, ValueError):
    kind = ErrorKind.VERSION

    def __init__(self, version: str, supported_major: int) -> None:
        self.version = version
        self.supported_major = supported_major
        super().__init__(
            f"unsupported archive version {version!r}: "
            f"this reader supports major version {supported_major}"
        )


# ---------------------------------------------------------------------------
# Structure
# ---------------------------------------------------------------------------


class MissingEntryError(CategoriesArchiveError, ValueError):
    """A required entry or entity is absent."""

    kind = ErrorKind.STRUCTURAL
    entry: ClassVar[str] = ""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or f"missing required entry {self.entry!r}")


class MissingCategoriesError(MissingEntryError):
    entry = CATEGORIES_FILE


class MissingSelectionError(MissingEntryError):
    entry = SELECTION_FILE


class MissingMetadataError(MissingEntryError):
    entry = METADATA_FILE


class MissingVersionError(MissingEntryError):
    entry = VERSION_FILE


class InvalidArchiveError(CategoriesArchiveError, ValueError):
    """The source is not a readable zip archive."""

    kind = ErrorKind.STRUCTURAL

    def __init__(self, source: str, detail: str) -> None:
        self.source = source
        self.detail = detail
        super().__init__(f"{source} is not a valid archive: {detail}")


class ArchiveNotFoundError(CategoriesArchiveError, FileNotFoundError):
    kind = ErrorKind.STRUCTURAL

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"archive not found: {path}")


class ArchiveIsDirectoryError(CategoriesArchiveError, IsADirectoryError):
    kind = ErrorKind.STRUCTURAL

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"archive path is a directory: {path}")


class ArchiveAccessError(CategoriesArchiveError, OSError):
    kind = ErrorKind.STRUCTURAL

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"unable to open archive {path}: {detail}")


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class WriterClosedError(CategoriesArchiveError, RuntimeError):
    kind = ErrorKind.STATE

    def __init__(self) -> None:
        super().__init__("archive already finalized")


class ReaderClosedError(CategoriesArchiveError, RuntimeError):
    kind = ErrorKind.STATE

    def __init__(self) -> None:
        super().__init__("reader is closed")


_VALIDATION_KINDS = frozenset({ErrorKind.SCHEMA, ErrorKind.REFERENCE, ErrorKind.DUPLICATE_TAGS})


def is_validation_error(exc: BaseException) -> bool:
    """Return ``True`` for errors caused by invalid content rather than by the runtime."""

    return isinstance(exc, CategoriesArchiveError) and exc.kind in _VALIDATION_KINDS


__all__ = [
    "ArchiveAccessError",
    "ArchiveIsDirectoryError",
    "ArchiveNotFoundError",
    "CategoriesArchiveError",
    "DuplicateTagGroup",
    "DuplicateTagsError",
    "EntryCountError",
    "EntrySizeError",
    "ErrorKind",
    "InvalidArchiveError",
    "InvalidSelectionError",
    "InvalidVersionError",
    "JSONParseError",
    "LanguageTagError",
    "MissingCategoriesError",
    "MissingDocumentTypeError",
    "MissingEntryError",
    "MissingMetadataError",
    "MissingReferenceError",
    "MissingSelectionError",
    "MissingVersionError",
    "ReaderClosedError",
    "SchemaError",
    "SelectionRefError",
    "SvgInvalidError",
    "UnsupportedVersionError",
    "ValidationIssue",
    "WriterClosedError",
    "is_validation_error",
]
