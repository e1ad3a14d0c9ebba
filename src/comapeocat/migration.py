"""
comapeocat — deprecated shape migration.

File: src/comapeocat/migration.py

Purpose
- Convert deprecated author-time and archive shapes into the canonical ones, once, at
  the point where they are read.

What should be included in this file
- Geometry -> document type mapping for categories (``geometry`` -> ``appliesTo``).
- Defaults (``point``/``line``/``area``) -> category selection.
- Legacy ``preset`` translation keys -> ``category``.

Non-functional requirements
- Pure functions over plain JSON values; schema validation happens afterwards.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from comapeocat.constants import GEOMETRY_TO_DOCUMENT_TYPE, DocumentType, GeometryType

if TYPE_CHECKING:
    from comapeocat.schema.selection import Defaults, Selection

DEPRECATED_CATEGORY_KEYS: frozenset[str] = frozenset({"geometry", "sort"})


def is_deprecated_category(raw: object) -> bool:
    """Return ``True`` when a raw category uses ``geometry`` or ``sort``."""

    return isinstance(raw, Mapping) and any(key in raw for key in DEPRECATED_CATEGORY_KEYS)


def document_types_for_geometry(geometry: Iterable[object]) -> tuple[DocumentType, ...]:
    out: list[DocumentType] = []
    for item in geometry:
        try:
            geometry_type = GeometryType(item)
        except ValueError:
            continue
        document_type = GEOMETRY_TO_DOCUMENT_TYPE.get(geometry_type)
        if document_type is not None and document_type not in out:
            out.append(document_type)
    return tuple(out)


def migrate_geometry(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Replace ``geometry`` with the equivalent ``appliesTo`` list.

    Categories that already declare ``appliesTo`` keep it and only lose ``geometry``.
    A non-list ``geometry`` is passed through as ``appliesTo`` so schema validation
    reports it.
    """

    migrated = {key: value for key, value in raw.items() if key != "geometry"}
    if "appliesTo" in raw or "geometry" not in raw:
        return migrated
    geometry = raw["geometry"]
    if isinstance(geometry, (list, tuple)):
        migrated["appliesTo"] = [item.value for item in document_types_for_geometry(geometry)]
    else:
        migrated["appliesTo"] = geometry
    return migrated


def defaults_to_selection(defaults: Defaults) -> Selection:
    from comapeocat.schema.selection import Selection

    return Selection(observation=defaults.point, track=defaults.line)


def migrate_translation_kinds(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Fold the legacy ``preset`` translation kind into ``category``.

    Entries already present under ``category`` win over the legacy ones.
    """

    if "preset" not in raw:
        return dict(raw)
    migrated = {key: value for key, value in raw.items() if key != "preset"}
    legacy = raw["preset"]
    current = raw.get("category", {})
    if not isinstance(legacy, Mapping) or not isinstance(current, Mapping):
        migrated.setdefault("category", legacy if "category" not in raw else current)
        return migrated

    merged: dict[str, Any] = {}
    for doc_id, props in legacy.items():
        merged[doc_id] = dict(props) if isinstance(props, Mapping) else props
    for doc_id, props in current.items():
        existing = merged.get(doc_id)
        if isinstance(existing, dict) and isinstance(props, Mapping):
            existing.update(props)
        else:
            merged[doc_id] = props
    migrated["category"] = merged
    return migrated


__all__ = [
    "DEPRECATED_CATEGORY_KEYS",
    "defaults_to_selection",
    "document_types_for_geometry",
    "is_deprecated_category",
    "migrate_geometry",
    "migrate_translation_kinds",
]
