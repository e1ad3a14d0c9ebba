"""
comapeocat — categories archive reader.

File: src/comapeocat/reader.py

Purpose
- Open an existing archive, index its entries without reading them, and parse each
  entity lazily on first access.

What should be included in this file
- ``Reader`` with a shared, memoized open/scan step and memoized accessors.
- Legacy layout support: ``presets.json`` and ``defaults.json`` are migrated into
  categories and a category selection on read.
- ``validate()`` running the same integrity checks as the writer.

Functional requirements
- The scan enforces the entry-count ceiling and the version marker checks; every
  required entry is then checked independently.
- Every entry read is bounded by its size ceiling, whatever the zip header claims.
- ``close()`` is idempotent; reads in flight or issued later fail with
  ``ReaderClosedError``.
"""

from __future__ import annotations

import asyncio
import os
import zipfile
import zlib
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, TypeVar

import structlog

from comapeocat.constants import (
    CATEGORIES_FILE,
    DEFAULT_LIMITS,
    FIELDS_FILE,
    ICON_ENTRY_PATTERN,
    LEGACY_DEFAULTS_FILE,
    LEGACY_PRESETS_FILE,
    METADATA_FILE,
    SELECTION_FILE,
    TRANSLATION_ENTRY_PATTERN,
    VERSION_FILE,
    ArchiveLimits,
)
from comapeocat.errors import (
    ArchiveAccessError,
    ArchiveIsDirectoryError,
    ArchiveNotFoundError,
    EntryCountError,
    EntrySizeError,
    InvalidArchiveError,
    LanguageTagError,
    MissingCategoriesError,
    MissingMetadataError,
    MissingSelectionError,
    MissingVersionError,
    ReaderClosedError,
    SchemaError,
    ValidationIssue,
)
from comapeocat.jsonio import load_json
from comapeocat.language import normalize_language_tag
from comapeocat.migration import defaults_to_selection, document_types_for_geometry
from comapeocat.references import (
    validate_category_tags,
    validate_references,
    validate_selection_references,
)
from comapeocat.schema.category import Category, parse_category, parse_preset
from comapeocat.schema.field import Field, parse_field
from comapeocat.schema.metadata import Metadata, parse_metadata
from comapeocat.schema.selection import Selection, parse_defaults, parse_selection
from comapeocat.schema.translations import Translations, parse_translations
from comapeocat.utils.concurrency import AsyncLazy
from comapeocat.version import FormatVersion, check_version_supported, decode_version

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

_LOGGER = structlog.get_logger(__name__)

T = TypeVar("T")

ArchiveSource = str | os.PathLike[str] | zipfile.ZipFile


class ReaderState(StrEnum):
    OPEN = "open"
    CLOSED = "closed"


class ArchiveLayout(StrEnum):
    CURRENT = "current"
    LEGACY = "legacy"


@dataclass(frozen=True, slots=True)
class Icon:
    name: str
    content: str


@dataclass(frozen=True, slots=True)
class TranslationEntry:
    lang: str
    translations: Translations


@dataclass(frozen=True, slots=True)
class _ArchiveIndex:
    layout: ArchiveLayout
    version: FormatVersion
    entry_count: int
    categories: zipfile.ZipInfo
    selection: zipfile.ZipInfo
    metadata: zipfile.ZipInfo
    fields: zipfile.ZipInfo | None
    icons: Mapping[str, zipfile.ZipInfo]
    translations: Mapping[str, zipfile.ZipInfo]


class Reader:
    """Read a categories archive from a path or an already open ``zipfile.ZipFile``.

    The reader owns its handle: call ``close()`` (or use ``async with``) when done.
    """

    def __init__(self, source: ArchiveSource, *, limits: ArchiveLimits | None = None) -> None:
        self._source = source
        self._limits = limits or DEFAULT_LIMITS
        self._state = ReaderState.OPEN
        self._zip: zipfile.ZipFile | None = None
        self._index = AsyncLazy(self._open_index)
        self._categories = AsyncLazy(self._load_categories)
        self._fields = AsyncLazy(self._load_fields)
        self._selection = AsyncLazy(self._load_selection)
        self._metadata = AsyncLazy(self._load_metadata)

    async def __aenter__(self) -> Reader:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def state(self) -> ReaderState:
        return self._state

    async def opened(self) -> None:
        """Open and scan the archive, raising any structural or version error."""

        await self._get_index()

    async def close(self) -> None:
        if self._state is ReaderState.CLOSED:
            return
        self._state = ReaderState.CLOSED
        handle = self._zip
        self._zip = None
        if handle is None and isinstance(self._source, zipfile.ZipFile):
            handle = self._source
        if handle is not None:
            await asyncio.to_thread(handle.close)
        _LOGGER.debug("archive_reader_closed")

    @property
    def layout(self) -> ArchiveLayout | None:
        """Layout detected by the scan, or ``None`` before ``opened()`` completes."""

        index = self._index.peek()
        return index.layout if index is not None else None

    @property
    def version(self) -> FormatVersion | None:
        index = self._index.peek()
        return index.version if index is not None else None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    async def categories(self) -> Mapping[str, Category]:
        return await self._get(self._categories)

    async def fields(self) -> Mapping[str, Field]:
        """Fields keyed by id; empty when the archive has no ``fields.json``."""

        return await self._get(self._fields)

    async def selection(self) -> Selection:
        return await self._get(self._selection)

    async def metadata(self) -> Metadata:
        return await self._get(self._metadata)

    async def icon_names(self) -> frozenset[str]:
        index = await self._get_index()
        return frozenset(index.icons)

    async def get_icon(self, name: str) -> str:
        index = await self._get_index()
        info = index.icons.get(name)
        if info is None:
            raise KeyError(name)
        data = await self._read(info, self._limits.max_icon_size)
        return _decode_text(info.filename, data)

    async def icons(self) -> AsyncIterator[Icon]:
        index = await self._get_index()
        for name, info in index.icons.items():
            data = await self._read(info, self._limits.max_icon_size)
            yield Icon(name=name, content=_decode_text(info.filename, data))

    async def translations(self) -> AsyncIterator[TranslationEntry]:
        index = await self._get_index()
        for lang, info in index.translations.items():
            raw = await self._read_json(info)
            yield TranslationEntry(
                lang=lang, translations=parse_translations(raw, source=info.filename)
            )

    async def validate(self) -> None:
        """Check the archive's internal consistency.

        Selection ids naming no category are skipped; a category listed under a document
        type it does not apply to fails.
        """

        index = await self._get_index()
        categories = await self.categories()
        fields = await self.fields()
        icon_names = await self.icon_names()
        selection = await self.selection()

        validate_category_tags(categories)
        validate_references(
            categories,
            fields,
            icon_names,
            require_document_types=index.layout is ArchiveLayout.CURRENT,
        )
        validate_selection_references(categories, selection, allow_missing_refs=True)
        _LOGGER.info(
            "archive_validated",
            layout=index.layout.value,
            version=str(index.version),
            categories=len(categories),
            fields=len(fields),
            icons=len(icon_names),
        )

    # ------------------------------------------------------------------
    # Scan
    # ------------------------------------------------------------------

    async def _open_index(self) -> _ArchiveIndex:
        handle = await asyncio.to_thread(self._open_zip)
        if self._state is ReaderState.CLOSED:
            await asyncio.to_thread(handle.close)
            raise ReaderClosedError()
        self._zip = handle
        index = await self._run(self._scan, handle)
        _LOGGER.debug(
            "archive_opened",
            layout=index.layout.value,
            version=str(index.version),
            entries=index.entry_count,
            icons=len(index.icons),
            translations=len(index.translations),
        )
        return index

    def _open_zip(self) -> zipfile.ZipFile:
        if isinstance(self._source, zipfile.ZipFile):
            return self._source
        path = os.fspath(self._source)
        try:
            return zipfile.ZipFile(path, mode="r")
        except FileNotFoundError as exc:
            raise ArchiveNotFoundError(path) from exc
        except IsADirectoryError as exc:
            raise ArchiveIsDirectoryError(path) from exc
        except zipfile.BadZipFile as exc:
            raise InvalidArchiveError(path, str(exc)) from exc
        except OSError as exc:
            if os.path.isdir(path):
                raise ArchiveIsDirectoryError(path) from exc
            raise ArchiveAccessError(path, exc.strerror or str(exc)) from exc

    def _scan(self, handle: zipfile.ZipFile) -> _ArchiveIndex:
        infos = [info for info in handle.infolist() if not info.is_dir()]
        if len(infos) > self._limits.max_entries:
            raise EntryCountError(len(infos), self._limits.max_entries)

        named: dict[str, zipfile.ZipInfo] = {}
        icons: dict[str, zipfile.ZipInfo] = {}
        translations: dict[str, zipfile.ZipInfo] = {}
        version: FormatVersion | None = None
        for info in infos:
            name = info.filename
            if name == VERSION_FILE:
                data = self._read_sync(handle, info, self._limits.max_version_size)
                version = check_version_supported(decode_version(data))
            elif name in _NAMED_ENTRIES:
                named[name] = info
            elif (icon_match := ICON_ENTRY_PATTERN.match(name)) is not None:
                icons[icon_match.group("name")] = info
            elif (lang_match := TRANSLATION_ENTRY_PATTERN.match(name)) is not None:
                try:
                    lang = normalize_language_tag(lang_match.group("lang"))
                except LanguageTagError:
                    _LOGGER.debug(
                        "archive_translation_skipped", entry=name, reason="invalid_language"
                    )
                    continue
                if lang in translations:
                    _LOGGER.warning(
                        "archive_translation_skipped",
                        entry=name,
                        reason="duplicate_language",
                        lang=lang,
                        kept=translations[lang].filename,
                    )
                    continue
                translations[lang] = info

        categories = named.get(CATEGORIES_FILE)
        selection = named.get(SELECTION_FILE)
        layout = ArchiveLayout.CURRENT
        if categories is None and selection is None:
            legacy_presets = named.get(LEGACY_PRESETS_FILE)
            legacy_defaults = named.get(LEGACY_DEFAULTS_FILE)
            if legacy_presets is not None or legacy_defaults is not None:
                layout = ArchiveLayout.LEGACY
                categories, selection = legacy_presets, legacy_defaults

        if categories is None:
            raise MissingCategoriesError()
        if selection is None:
            raise MissingSelectionError()
        metadata = named.get(METADATA_FILE)
        if metadata is None:
            raise MissingMetadataError()
        if version is None:
            raise MissingVersionError()

        return _ArchiveIndex(
            layout=layout,
            version=version,
            entry_count=len(infos),
            categories=categories,
            selection=selection,
            metadata=metadata,
            fields=named.get(FIELDS_FILE),
            icons=MappingProxyType(icons),
            translations=MappingProxyType(translations),
        )

    # ------------------------------------------------------------------
    # Entity loaders
    # ------------------------------------------------------------------

    async def _load_categories(self) -> Mapping[str, Category]:
        index = await self._get_index()
        raw = _as_entry_object(await self._read_json(index.categories), index.categories)
        source = index.categories.filename
        if index.layout is ArchiveLayout.CURRENT:
            return MappingProxyType(
                {
                    key: parse_category(value, source=f"{source} [{key}]")
                    for key, value in raw.items()
                }
            )

        categories: dict[str, Category] = {}
        for preset_id, value in raw.items():
            if isinstance(value, Mapping) and isinstance(value.get("geometry"), list):
                if not document_types_for_geometry(value["geometry"]):
                    _LOGGER.warning(
                        "archive_preset_skipped",
                        preset_id=preset_id,
                        geometry=list(value["geometry"]),
                    )
                    continue
            categories[preset_id] = parse_preset(value, source=f"{source} [{preset_id}]").category
        return MappingProxyType(categories)

    async def _load_fields(self) -> Mapping[str, Field]:
        index = await self._get_index()
        if index.fields is None:
            return MappingProxyType({})
        raw = _as_entry_object(await self._read_json(index.fields), index.fields)
        source = index.fields.filename
        return MappingProxyType(
            {key: parse_field(value, source=f"{source} [{key}]") for key, value in raw.items()}
        )

    async def _load_selection(self) -> Selection:
        index = await self._get_index()
        raw = await self._read_json(index.selection)
        if index.layout is ArchiveLayout.LEGACY:
            return defaults_to_selection(parse_defaults(raw, source=index.selection.filename))
        return parse_selection(raw, source=index.selection.filename)

    async def _load_metadata(self) -> Metadata:
        index = await self._get_index()
        raw = await self._read_json(index.metadata)
        return parse_metadata(raw, source=index.metadata.filename)

    # ------------------------------------------------------------------
    # I/O
    # ------------------------------------------------------------------

    async def _get_index(self) -> _ArchiveIndex:
        return await self._get(self._index)

    async def _get(self, lazy: AsyncLazy[T]) -> T:
        self._ensure_open()
        value = await lazy.get()
        self._ensure_open()
        return value

    async def _read_json(self, info: zipfile.ZipInfo) -> Any:
        data = await self._read(info, self._limits.max_json_size)
        return load_json(data, source=info.filename)

    async def _read(self, info: zipfile.ZipInfo, limit: int) -> bytes:
        self._ensure_open()
        handle = self._zip
        if handle is None:
            raise ReaderClosedError()
        return await self._run(self._read_sync, handle, info, limit)

    @staticmethod
    def _read_sync(handle: zipfile.ZipFile, info: zipfile.ZipInfo, limit: int) -> bytes:
        if info.file_size > limit:
            raise EntrySizeError(info.filename, info.file_size, limit)
        try:
            with handle.open(info) as stream:
                data = stream.read(limit + 1)
        except (zipfile.BadZipFile, zlib.error, EOFError) as exc:
            raise InvalidArchiveError(info.filename, str(exc)) from exc
        if len(data) > limit:
            raise EntrySizeError(info.filename, len(data), limit)
        return data

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        try:
            result = await asyncio.to_thread(func, *args)
        except (OSError, ValueError, zipfile.BadZipFile) as exc:
            if self._state is ReaderState.CLOSED:
                raise ReaderClosedError() from exc
            raise
        self._ensure_open()
        return result

    def _ensure_open(self) -> None:
        if self._state is ReaderState.CLOSED:
            raise ReaderClosedError()


_NAMED_ENTRIES: frozenset[str] = frozenset(
    {
        CATEGORIES_FILE,
        FIELDS_FILE,
        SELECTION_FILE,
        METADATA_FILE,
        LEGACY_PRESETS_FILE,
        LEGACY_DEFAULTS_FILE,
    }
)


def _as_entry_object(raw: object, info: zipfile.ZipInfo) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise SchemaError(info.filename, (ValidationIssue("<root>", "expected object"),))
    return raw


def _decode_text(entry: str, data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidArchiveError(entry, f"entry is not valid UTF-8: {exc.reason}") from exc


__all__ = [
    "ArchiveLayout",
    "ArchiveSource",
    "Icon",
    "Reader",
    "ReaderState",
    "TranslationEntry",
]
