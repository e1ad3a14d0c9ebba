"""Shared deterministic builders for archive writer and reader tests."""

from __future__ import annotations

import json
import zipfile
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Final

from comapeocat.writer import Writer

if TYPE_CHECKING:
    from pathlib import Path

    from comapeocat.constants import ArchiveLimits

FIXED_EPOCH_SECONDS: Final[float] = 1_767_225_600.0
FIXED_EPOCH_MS: Final[int] = 1_767_225_600_000

ICON_SVG: Final[str] = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24">'
    '<circle cx="12" cy="12" r="10"/></svg>'
)


def fixed_clock() -> float:
    return FIXED_EPOCH_SECONDS


def make_category(
    name: str,
    tags: Mapping[str, object],
    *,
    applies_to: tuple[str, ...] = ("observation", "track"),
    **extra: Any,
) -> dict[str, Any]:
    return {"name": name, "appliesTo": list(applies_to), "tags": dict(tags), **extra}


def make_text_field(tag_key: str, label: str, **extra: Any) -> dict[str, Any]:
    return {"type": "text", "tagKey": tag_key, "label": label, **extra}


def make_select_field(
    tag_key: str, label: str, options: list[tuple[str, object]]
) -> dict[str, Any]:
    return {
        "type": "selectOne",
        "tagKey": tag_key,
        "label": label,
        "options": [{"label": option_label, "value": value} for option_label, value in options],
    }


def sample_categories() -> dict[str, dict[str, Any]]:
    return {
        "tree": make_category(
            "Tree",
            {"natural": "tree"},
            applies_to=("observation",),
            fields=["species", "height"],
            icon="tree",
            terms=["plant"],
            color="#2e7d32",
        ),
        "river": make_category("River", {"waterway": "river"}, fields=["species"]),
        "path": make_category("Path", {"highway": "path"}, applies_to=("track",)),
    }


def sample_fields() -> dict[str, dict[str, Any]]:
    return {
        "species": make_text_field("species", "Species", appearance="singleline"),
        "height": {"type": "number", "tagKey": "height", "label": "Height (m)"},
    }


SAMPLE_SELECTION: Final[dict[str, list[str]]] = {
    "observation": ["tree", "river"],
    "track": ["path", "river"],
}
SAMPLE_METADATA: Final[dict[str, str]] = {"name": "Forest monitoring", "version": "2.1"}


def new_writer(output: Any, *, limits: ArchiveLimits | None = None) -> Writer:
    return Writer(output, limits=limits, clock=fixed_clock)


async def populate_writer(
    writer: Writer,
    *,
    categories: Mapping[str, Any] | None = None,
    fields: Mapping[str, Any] | None = None,
    icons: Mapping[str, str] | None = None,
    translations: Mapping[str, Any] | None = None,
    selection: Mapping[str, Any] | None = None,
    metadata: Mapping[str, Any] | None = None,
) -> Writer:
    for category_id, raw in (sample_categories() if categories is None else categories).items():
        writer.add_category(category_id, raw)
    for field_id, raw in (sample_fields() if fields is None else fields).items():
        writer.add_field(field_id, raw)
    for icon_id, svg in ({"tree": ICON_SVG} if icons is None else icons).items():
        await writer.add_icon(icon_id, svg)
    for lang, raw in (translations or {}).items():
        await writer.add_translations(lang, raw)
    writer.set_selection(SAMPLE_SELECTION if selection is None else selection)
    writer.set_metadata(SAMPLE_METADATA if metadata is None else metadata)
    return writer


async def write_sample_archive(path: Path, **overrides: Any) -> Path:
    """Write a complete valid archive to ``path``; keyword overrides replace the samples."""

    limits = overrides.pop("limits", None)
    with path.open("wb") as handle:
        writer = new_writer(handle, limits=limits)
        await populate_writer(writer, **overrides)
        await writer.finish()
    return path


def write_zip(path: Path, entries: Mapping[str, bytes | str | Mapping[str, Any]]) -> Path:
    """Write arbitrary entries; mappings are stored as JSON."""

    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, value in entries.items():
            if isinstance(value, Mapping):
                value = json.dumps(value)
            archive.writestr(name, value)
    return path


def read_zip_entries(path: Path) -> dict[str, bytes]:
    with zipfile.ZipFile(path) as archive:
        return {info.filename: archive.read(info) for info in archive.infolist()}


def stored_metadata(name: str = "Legacy") -> dict[str, Any]:
    return {"name": name, "buildDateValue": FIXED_EPOCH_MS}


__all__ = [
    "FIXED_EPOCH_MS",
    "FIXED_EPOCH_SECONDS",
    "ICON_SVG",
    "SAMPLE_METADATA",
    "SAMPLE_SELECTION",
    "fixed_clock",
    "make_category",
    "make_select_field",
    "make_text_field",
    "new_writer",
    "populate_writer",
    "read_zip_entries",
    "sample_categories",
    "sample_fields",
    "stored_metadata",
    "write_sample_archive",
    "write_zip",
]
