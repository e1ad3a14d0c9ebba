"""Reading archives in the pre-categories layout (presets.json + defaults.json)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from comapeocat.constants import DocumentType
from comapeocat.reader import ArchiveLayout, Reader

from . import make_category, stored_metadata, write_zip

if TYPE_CHECKING:
    from pathlib import Path


def _legacy_entries(**overrides: Any) -> dict[str, Any]:
    entries: dict[str, Any] = {
        "VERSION": "1.0",
        "presets.json": {
            "tree": {"name": "Tree", "geometry": ["point", "area"], "tags": {"natural": "tree"}},
            "lake": {"name": "Lake", "geometry": ["area"], "tags": {"natural": "water"}},
            "path": {"name": "Path", "geometry": ["line"], "tags": {"highway": "path"}},
        },
        "defaults.json": {"point": ["tree"], "line": ["path"], "area": ["lake"]},
        "metadata.json": stored_metadata("Legacy"),
    }
    entries.update(overrides)
    return entries


@pytest.mark.asyncio
async def test_presets_are_migrated_to_categories(tmp_path: Path) -> None:
    path = write_zip(tmp_path / "legacy.comapeocat", _legacy_entries())

    async with Reader(path) as reader:
        categories = await reader.categories()
        assert reader.layout is ArchiveLayout.LEGACY

    assert list(categories) == ["tree", "path"]
    assert categories["tree"].applies_to == (DocumentType.OBSERVATION,)
    assert categories["path"].applies_to == (DocumentType.TRACK,)


@pytest.mark.asyncio
async def test_defaults_become_selection(tmp_path: Path) -> None:
    path = write_zip(tmp_path / "legacy.comapeocat", _legacy_entries())

    async with Reader(path) as reader:
        selection = await reader.selection()
        await reader.validate()

    assert selection.to_dict() == {"observation": ["tree"], "track": ["path"]}


@pytest.mark.asyncio
async def test_legacy_archive_need_not_cover_every_document_type(tmp_path: Path) -> None:
    presets = {"tree": {"name": "Tree", "geometry": ["point"], "tags": {"natural": "tree"}}}
    path = write_zip(
        tmp_path / "legacy.comapeocat",
        _legacy_entries(
            **{
                "presets.json": presets,
                "defaults.json": {"point": ["tree"], "line": [], "area": []},
            }
        ),
    )

    async with Reader(path) as reader:
        await reader.validate()


@pytest.mark.asyncio
async def test_legacy_preset_translations_are_read_as_categories(tmp_path: Path) -> None:
    path = write_zip(
        tmp_path / "legacy.comapeocat",
        _legacy_entries(**{"translations/fr.json": {"preset": {"tree": {"name": "Arbre"}}}}),
    )

    async with Reader(path) as reader:
        [entry] = [item async for item in reader.translations()]

    assert entry.lang == "fr"
    assert entry.translations.to_dict() == {"category": {"tree": {"name": "Arbre"}}}


@pytest.mark.asyncio
async def test_current_entries_win_over_legacy_ones(tmp_path: Path) -> None:
    entries = _legacy_entries(
        **{
            "categories.json": {
                "river": make_category("River", {"waterway": "river"}),
            },
            "categorySelection.json": {"observation": ["river"], "track": ["river"]},
        }
    )
    path = write_zip(tmp_path / "mixed.comapeocat", entries)

    async with Reader(path) as reader:
        categories = await reader.categories()
        assert reader.layout is ArchiveLayout.CURRENT

    assert list(categories) == ["river"]
