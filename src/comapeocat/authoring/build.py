"""
comapeocat — build an archive from an authoring directory.

File: src/comapeocat/authoring/build.py

Purpose
- Feed every source file of an authoring directory through a ``Writer`` and
  finalize the archive.

Functional requirements
- ``categorySelection.json`` wins over the deprecated ``defaults.json``.
- Metadata values passed by the caller override ``metadata.json``; a name is
  required from one of them.
- Translations are derived from ``messages/<lang>.json`` with normalized tags.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any, BinaryIO

import structlog

from comapeocat.authoring.messages import messages_to_translations
from comapeocat.authoring.read_files import SourceKind, read_files
from comapeocat.constants import DEFAULT_COMPRESSION_LEVEL, DEFAULT_LIMITS, METADATA_FILE
from comapeocat.errors import SchemaError, ValidationIssue
from comapeocat.migration import defaults_to_selection
from comapeocat.schema.messages import parse_messages
from comapeocat.schema.selection import parse_defaults
from comapeocat.writer import Writer

if TYPE_CHECKING:
    from comapeocat.constants import ArchiveLimits

_LOGGER = structlog.get_logger(__name__)


async def build_archive(
    input_dir: str | os.PathLike[str],
    output: BinaryIO,
    *,
    name: str | None = None,
    version: str | None = None,
    limits: ArchiveLimits = DEFAULT_LIMITS,
    compression_level: int = DEFAULT_COMPRESSION_LEVEL,
) -> Writer:
    """Build the archive for ``input_dir`` into ``output`` and return the finished writer."""

    writer = Writer(output, limits=limits, compression_level=compression_level)
    try:
        await _feed(writer, input_dir, name=name, version=version)
        await writer.finish()
    except BaseException:
        writer.abort()
        raise

    _LOGGER.info(
        "authoring_build_finished",
        directory=os.fspath(input_dir),
        entries=writer.entry_count,
        bytes_written=writer.bytes_written,
    )
    return writer


async def _feed(
    writer: Writer,
    input_dir: str | os.PathLike[str],
    *,
    name: str | None,
    version: str | None,
) -> None:
    metadata: dict[str, Any] = {}
    selection: Any = None
    defaults: Any = None

    async for source in read_files(input_dir):
        if source.kind is SourceKind.CATEGORY:
            writer.add_category(source.id, source.value)
        elif source.kind is SourceKind.FIELD:
            writer.add_field(source.id, source.value)
        elif source.kind is SourceKind.ICON:
            await writer.add_icon(source.id, source.value)
        elif source.kind is SourceKind.MESSAGES:
            messages = parse_messages(source.value, source=f"messages {source.id!r}")
            await writer.add_translations(source.id, messages_to_translations(messages))
        elif source.kind is SourceKind.METADATA:
            metadata = dict(source.value)
        elif source.kind is SourceKind.CATEGORY_SELECTION:
            selection = source.value
        elif source.kind is SourceKind.DEFAULTS:
            defaults = source.value

    if selection is not None:
        writer.set_selection(selection)
    elif defaults is not None:
        _LOGGER.warning("authoring_defaults_deprecated", directory=os.fspath(input_dir))
        writer.set_selection(defaults_to_selection(parse_defaults(defaults)).to_dict())

    if name is not None:
        metadata["name"] = name
    if version is not None:
        metadata["version"] = version
    if "name" not in metadata:
        raise SchemaError(
            METADATA_FILE,
            (ValidationIssue("name", "missing; add metadata.json or pass a name"),),
        )
    writer.set_metadata(metadata)


__all__ = ["build_archive"]
