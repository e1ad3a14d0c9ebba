"""Shared builders for authoring directory tests."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Final

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

ICON_SVG: Final[str] = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24">'
    '<circle cx="12" cy="12" r="10"/></svg>'
)

_OMIT: Final[object] = object()


def sample_categories() -> dict[str, dict[str, Any]]:
    return {
        "tree": {
            "name": "Tree",
            "appliesTo": ["observation"],
            "tags": {"natural": "tree"},
            "fields": ["species"],
            "icon": "tree",
        },
        "path": {
            "name": "Path",
            "appliesTo": ["track"],
            "tags": {"highway": "path"},
        },
    }


def sample_fields() -> dict[str, dict[str, Any]]:
    return {
        "species": {
            "type": "selectOne",
            "tagKey": "species",
            "label": "Species",
            "options": [{"label": "Oak", "value": "oak"}],
        }
    }


def sample_messages() -> dict[str, dict[str, Any]]:
    return {
        "es": {
            "category.tree.name": {"message": "Árbol"},
            "field.species.label": {"message": "Especie"},
            'field.species.options[value="oak"].label': {"message": "Roble"},
        }
    }


def write_json(path: Path, value: object) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(value, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def write_authoring_dir(
    root: Path,
    *,
    categories: Mapping[str, object] | None = None,
    fields: Mapping[str, object] | None = None,
    icons: Mapping[str, str] | None = None,
    messages: Mapping[str, object] | None = None,
    metadata: object = _OMIT,
    selection: object = _OMIT,
    defaults: object = None,
    categories_dir: str = "categories",
) -> Path:
    """Lay out an authoring directory; ``None`` for a single-file value skips it."""

    root.mkdir(parents=True, exist_ok=True)
    for category_id, value in (sample_categories() if categories is None else categories).items():
        write_json(root / categories_dir / f"{category_id}.json", value)
    for field_id, value in (sample_fields() if fields is None else fields).items():
        write_json(root / "fields" / f"{field_id}.json", value)
    for icon_id, text in ({"tree": ICON_SVG} if icons is None else icons).items():
        path = root / "icons" / f"{icon_id}.svg"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    for lang, value in (sample_messages() if messages is None else messages).items():
        write_json(root / "messages" / f"{lang}.json", value)

    if metadata is _OMIT:
        metadata = {"name": "Forest monitoring", "version": "1.0"}
    if selection is _OMIT:
        selection = {"observation": ["tree"], "track": ["path"]}
    for file_name, value in (
        ("metadata.json", metadata),
        ("categorySelection.json", selection),
        ("defaults.json", defaults),
    ):
        if value is not None:
            write_json(root / file_name, value)
    return root
