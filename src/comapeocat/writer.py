"""
comapeocat — categories archive writer.

File: src/comapeocat/writer.py

Purpose
- Accumulate validated categories, fields, icons, translations, metadata and the
  category selection, then stream them as a versioned zip archive.

What should be included in this file
- ``Writer``: validate-at-the-call mutators, immediate streaming of icons and
  translations, and ``finish()`` which checks integrity before emitting the final
  entries.
- A guarded sink so that a failed finalize can never emit the zip trailer.

Functional requirements
- Icons and translations are written in call order as soon as they are accepted.
- Every JSON entry is serialized and checked against the size and count ceilings
  before the first final byte is written.
- The writer has two states, open and closed. A successful ``finish()``, ``abort()`` and
  any failed sink write close it for good; a ``finish()`` that fails validation leaves it
  open so the caller can correct the content and finish again.
- An abandoned writer never completes the archive: the sink is detached before the
  zip trailer could be written.

Non-functional requirements
- Blocking zip I/O runs off the event loop; each write is awaited before the next
  starts so output never outruns the sink.
"""

from __future__ import annotations

import asyncio
import time
import warnings
import zipfile
from enum import StrEnum
from typing import TYPE_CHECKING, BinaryIO

import structlog

from comapeocat.constants import (
    CATEGORIES_FILE,
    DEFAULT_COMPRESSION_LEVEL,
    DEFAULT_LIMITS,
    FIELDS_FILE,
    FORMAT_VERSION,
    METADATA_FILE,
    PACKAGE_NAME,
    PACKAGE_VERSION,
    SELECTION_FILE,
    VERSION_FILE,
    ZIP_FIXED_TIMESTAMP,
    ArchiveLimits,
    icon_entry_name,
    translation_entry_name,
)
from comapeocat.errors import (
    EntryCountError,
    EntrySizeError,
    MissingCategoriesError,
    MissingMetadataError,
    MissingSelectionError,
    SchemaError,
    ValidationIssue,
    WriterClosedError,
)
from comapeocat.jsonio import dump_json_bytes
from comapeocat.language import normalize_language_tag
from comapeocat.migration import defaults_to_selection
from comapeocat.references import (
    validate_category_tags,
    validate_references,
    validate_selection_references,
)
from comapeocat.schema.category import Category, parse_category_input, parse_preset
from comapeocat.schema.field import Field, parse_field
from comapeocat.schema.metadata import Metadata, parse_metadata_input
from comapeocat.schema.selection import Selection, parse_defaults, parse_selection
from comapeocat.schema.translations import Translations, parse_translations
from comapeocat.selection import SelectionCandidate, generate_selection
from comapeocat.svg import sanitize_svg

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

_LOGGER = structlog.get_logger(__name__)


class WriterState(StrEnum):
    OPEN = "open"
    CLOSED = "closed"


class _GuardedSink:
    """Non-seekable view of the output that stops forwarding once detached."""

    __slots__ = ("_detached", "_output", "bytes_written")

    def __init__(self, output: BinaryIO) -> None:
        self._output = output
        self._detached = False
        self.bytes_written = 0

    def write(self, data: bytes) -> int:
        if self._detached:
            return len(data)
        self._output.write(data)
        self.bytes_written += len(data)
        return len(data)

    def flush(self) -> None:
        if not self._detached:
            self._output.flush()

    def detach(self) -> None:
        self._detached = True


class Writer:
    """Build a categories archive into a binary output stream.

    Mutators validate their input immediately and raise on the first problem. Nothing
    is written for categories, fields, metadata or the selection until ``finish()``.
    """

    def __init__(
        self,
        output: BinaryIO,
        *,
        limits: ArchiveLimits | None = None,
        compression_level: int = DEFAULT_COMPRESSION_LEVEL,
        clock: Callable[[], float] | None = None,
    ) -> None:
        if isinstance(compression_level, bool) or compression_level not in range(10):
            raise ValueError("compression_level must be an integer from 0 to 9")
        self._limits = limits or DEFAULT_LIMITS
        self._compression_level = compression_level
        self._clock = clock or time.time
        self._sink = _GuardedSink(output)
        self._zip = zipfile.ZipFile(
            self._sink,
            mode="w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=compression_level,
            allowZip64=True,
        )
        self._lock = asyncio.Lock()
        self._state = WriterState.OPEN
        self._failure: BaseException | None = None

        self._categories: dict[str, Category] = {}
        self._sort_hints: dict[str, int | float | None] = {}
        self._uses_sort_hints = False
        self._fields: dict[str, Field] = {}
        self._icon_ids: set[str] = set()
        self._translation_langs: set[str] = set()
        self._metadata: Metadata | None = None
        self._selection: Selection | None = None
        self._entry_count = 0

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> WriterState:
        return self._state

    @property
    def failure(self) -> BaseException | None:
        """Exception that closed the writer, if it closed by failing."""

        return self._failure

    @property
    def entry_count(self) -> int:
        return self._entry_count

    @property
    def bytes_written(self) -> int:
        return self._sink.bytes_written

    # ------------------------------------------------------------------
    # Entities held until finish()
    # ------------------------------------------------------------------

    def add_category(self, category_id: str, raw: object) -> Category:
        """Validate and store a category.

        The deprecated shape (``geometry`` and/or ``sort``) is accepted and migrated;
        using it lets ``finish()`` derive the selection when none was set.
        """

        self._ensure_open()
        _require_id(category_id, "category")
        parsed = parse_category_input(raw, source=f"category {category_id!r}")
        self._store_category(category_id, parsed.category, parsed.sort, parsed.deprecated)
        return parsed.category

    def add_preset(self, preset_id: str, raw: object) -> Category:
        """Deprecated alias of ``add_category`` for the legacy preset shape."""

        warnings.warn(
            "Writer.add_preset() is deprecated; use add_category()",
            DeprecationWarning,
            stacklevel=2,
        )
        self._ensure_open()
        _require_id(preset_id, "preset")
        parsed = parse_preset(raw, source=f"preset {preset_id!r}")
        self._store_category(preset_id, parsed.category, parsed.sort, True)
        return parsed.category

    def add_field(self, field_id: str, raw: object) -> Field:
        self._ensure_open()
        _require_id(field_id, "field")
        parsed = parse_field(raw, source=f"field {field_id!r}")
        self._fields[field_id] = parsed
        return parsed

    def set_metadata(self, raw: object) -> Metadata:
        """Validate and store metadata; the build timestamp is restamped by ``finish()``."""

        self._ensure_open()
        parsed = parse_metadata_input(raw)
        self._metadata = parsed.stamped(self._now_ms())
        return self._metadata

    def set_selection(self, raw: object) -> Selection:
        self._ensure_open()
        self._selection = parse_selection(raw)
        return self._selection

    def set_defaults(self, raw: object) -> Selection:
        """Deprecated: store per-geometry defaults as the category selection."""

        warnings.warn(
            "Writer.set_defaults() is deprecated; use set_selection()",
            DeprecationWarning,
            stacklevel=2,
        )
        self._ensure_open()
        self._selection = defaults_to_selection(parse_defaults(raw))
        return self._selection

    # ------------------------------------------------------------------
    # Streamed entries
    # ------------------------------------------------------------------

    async def add_icon(self, icon_id: str, svg: str) -> str:
        """Sanitize an SVG icon and write it to the archive immediately."""

        self._ensure_open()
        _require_id(icon_id, "icon")
        if "/" in icon_id:
            raise SchemaError("icon id", (ValidationIssue("<root>", "id must not contain '/'"),))
        entry = icon_entry_name(icon_id)
        if icon_id in self._icon_ids:
            raise _duplicate_error(entry, f"icon {icon_id!r} was already added")
        raw_size = len(svg.encode("utf-8"))
        if raw_size > self._limits.max_icon_size:
            raise EntrySizeError(entry, raw_size, self._limits.max_icon_size)
        sanitized = sanitize_svg(svg, icon_id=icon_id)
        data = sanitized.encode("utf-8")
        if len(data) > self._limits.max_icon_size:
            raise EntrySizeError(entry, len(data), self._limits.max_icon_size)

        await self._write_entries(((entry, data),))
        self._icon_ids.add(icon_id)
        _LOGGER.debug("archive_icon_written", icon_id=icon_id, size=len(data))
        return sanitized

    async def add_translations(self, lang: str, raw: object) -> Translations:
        """Validate a translation set for ``lang`` and write it immediately."""

        self._ensure_open()
        tag = normalize_language_tag(lang)
        entry = translation_entry_name(tag)
        if tag in self._translation_langs:
            raise _duplicate_error(entry, f"translations for {tag!r} were already added")
        parsed = parse_translations(raw, source=f"translations {tag!r}")
        data = dump_json_bytes(parsed.to_dict())
        self._check_json_size(entry, data)

        await self._write_entries(((entry, data),))
        self._translation_langs.add(tag)
        _LOGGER.debug("archive_translations_written", lang=tag, size=len(data))
        return parsed

    # ------------------------------------------------------------------
    # Finalize
    # ------------------------------------------------------------------

    async def finish(self) -> None:
        """Validate the accumulated archive and write the remaining entries.

        Integrity, size and count errors are raised before anything is written and
        leave the writer open. A failed write closes it without completing the archive.
        """

        self._ensure_open()
        entries = self._final_entries()
        await self._write_entries(entries, finalize=True)
        self._state = WriterState.CLOSED
        _LOGGER.info(
            "archive_finished",
            categories=len(self._categories),
            fields=len(self._fields),
            icons=len(self._icon_ids),
            translations=len(self._translation_langs),
            entries=self._entry_count,
            bytes_written=self._sink.bytes_written,
        )

    def _final_entries(self) -> list[tuple[str, bytes]]:
        validate_category_tags(self._categories)
        validate_references(
            self._categories,
            self._fields,
            self._icon_ids,
            require_document_types=bool(self._categories),
        )
        if self._metadata is None:
            raise MissingMetadataError("metadata must be set before finishing the archive")
        if not self._categories:
            raise MissingCategoriesError("at least one category must be added")
        selection = self._resolve_selection()
        validate_selection_references(self._categories, selection, allow_missing_refs=True)

        metadata = self._metadata.stamped(
            self._now_ms(), builder_name=PACKAGE_NAME, builder_version=PACKAGE_VERSION
        )
        entries = [
            (CATEGORIES_FILE, {key: value.to_dict() for key, value in self._categories.items()}),
            (FIELDS_FILE, {key: value.to_dict() for key, value in self._fields.items()}),
            (SELECTION_FILE, selection.to_dict()),
            (METADATA_FILE, metadata.to_dict()),
        ]
        serialized: list[tuple[str, bytes]] = []
        for name, payload in entries:
            data = dump_json_bytes(payload)
            self._check_json_size(name, data)
            serialized.append((name, data))
        serialized.append((VERSION_FILE, FORMAT_VERSION.encode("ascii")))
        return serialized

    def abort(self) -> None:
        """Close the writer without completing the archive. Safe to call more than once."""

        if self._state is WriterState.CLOSED:
            return
        self._state = WriterState.CLOSED
        self._close_detached()
        _LOGGER.info("archive_aborted", entries=self._entry_count)

    def _resolve_selection(self) -> Selection:
        if self._selection is not None:
            return self._selection
        if not self._uses_sort_hints:
            raise MissingSelectionError("a category selection must be set before finishing")
        candidates = {
            category_id: SelectionCandidate(
                name=category.name,
                applies_to=category.applies_to,
                sort=self._sort_hints.get(category_id),
            )
            for category_id, category in self._categories.items()
        }
        _LOGGER.info("archive_selection_generated", categories=len(candidates))
        return generate_selection(candidates)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _store_category(
        self,
        category_id: str,
        category: Category,
        sort: int | float | None,
        deprecated: bool,
    ) -> None:
        self._categories[category_id] = category
        self._sort_hints[category_id] = sort
        if deprecated:
            self._uses_sort_hints = True

    async def _write_entries(
        self, entries: Sequence[tuple[str, bytes]], *, finalize: bool = False
    ) -> None:
        async with self._lock:
            self._ensure_open()
            total = self._entry_count + len(entries)
            if total > self._limits.max_entries:
                raise EntryCountError(total, self._limits.max_entries)
            try:
                await asyncio.to_thread(self._write_sync, entries, finalize)
            except BaseException as exc:
                self._fail(exc)
                raise
            self._entry_count = total

    def _write_sync(self, entries: Sequence[tuple[str, bytes]], finalize: bool) -> None:
        for name, data in entries:
            info = zipfile.ZipInfo(filename=name, date_time=ZIP_FIXED_TIMESTAMP)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = (0o100644 & 0xFFFF) << 16
            info.create_system = 3
            self._zip.writestr(info, data, compresslevel=self._compression_level)
        if finalize:
            self._zip.close()
        self._sink.flush()

    def _check_json_size(self, entry: str, data: bytes) -> None:
        if len(data) > self._limits.max_json_size:
            raise EntrySizeError(entry, len(data), self._limits.max_json_size)

    def _ensure_open(self) -> None:
        if self._state is WriterState.CLOSED:
            raise WriterClosedError()

    def _fail(self, exc: BaseException) -> None:
        if self._state is WriterState.CLOSED:
            return
        self._state = WriterState.CLOSED
        self._failure = exc
        # A cancelled write may still hold the zip open in its worker thread.
        self._close_detached(close_zip=not isinstance(exc, asyncio.CancelledError))
        _LOGGER.warning("archive_failed", error=type(exc).__name__, detail=str(exc))

    def _close_detached(self, *, close_zip: bool = True) -> None:
        self._sink.detach()
        if close_zip:
            self._zip.close()

    def __del__(self) -> None:
        sink = getattr(self, "_sink", None)
        if sink is not None and getattr(self, "_state", None) is WriterState.OPEN:
            sink.detach()

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)


def _require_id(value: object, kind: str) -> None:
    if not isinstance(value, str) or not value:
        issue = ValidationIssue("<root>", "id must be a non-empty string")
        raise SchemaError(f"{kind} id", (issue,))


def _duplicate_error(entry: str, message: str) -> SchemaError:
    return SchemaError(entry, (ValidationIssue("<root>", message),))


__all__ = ["Writer", "WriterState"]
