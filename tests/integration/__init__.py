"""Shared helpers for CLI integration tests."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path

ICON_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="24" height="24">'
    '<path d="M2 2h20v20H2z"/></svg>'
)


def write_json(path: Path, value: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(value, indent=2, ensure_ascii=False), encoding="utf-8")


def write_config_dir(root: Path, *, metadata: bool = True, **categories: Any) -> Path:
    """Write a small authoring directory with two categories, one field and one icon."""

    write_json(
        root / "categories" / "tree.json",
        categories.get(
            "tree",
            {
                "name": "Tree",
                "appliesTo": ["observation"],
                "tags": {"natural": "tree"},
                "fields": ["height"],
                "icon": "tree",
            },
        ),
    )
    write_json(
        root / "categories" / "path.json",
        categories.get(
            "path", {"name": "Path", "appliesTo": ["track"], "tags": {"highway": "path"}}
        ),
    )
    write_json(
        root / "fields" / "height.json",
        {"type": "number", "tagKey": "height", "label": "Height", "helperText": "Metres"},
    )
    (root / "icons").mkdir(parents=True, exist_ok=True)
    (root / "icons" / "tree.svg").write_text(ICON_SVG, encoding="utf-8")
    write_json(
        root / "messages" / "es.json",
        {
            "category.tree.name": {"message": "Árbol"},
            "field.height.label": {"message": "Altura"},
        },
    )
    write_json(root / "categorySelection.json", {"observation": ["tree"], "track": ["path"]})
    if metadata:
        write_json(root / "metadata.json", {"name": "Smoke test", "version": "0.1"})
    return root
