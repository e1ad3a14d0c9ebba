"""
comapeocat — category schema contract.

File: src/comapeocat/schema/category.py

Purpose
- Validate raw category JSON and produce immutable ``Category`` records.

What should be included in this file
- The canonical category contract (``appliesTo``, tag maps, field and icon refs).
- Deprecated author-time input (``geometry`` and ``sort``), migrated once into the
  canonical shape with the sort hint kept aside.
- The legacy preset contract read from ``presets.json``.

Functional requirements
- Unknown ``appliesTo`` values are filtered out before the non-empty check.
- Unknown properties are stripped rather than rejected.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Final

from comapeocat.constants import DocumentType
from comapeocat.errors import SchemaError
from comapeocat.migration import is_deprecated_category, migrate_geometry
from comapeocat.schema._common import (
    EMPTY_TAGS,
    IssueCollector,
    TagMap,
    as_number,
    as_object,
    as_str,
    as_string_list,
    as_tag_map,
    join,
    require_keys,
)

HEX_COLOR_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^#(?:[0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$"
)
_DOCUMENT_TYPE_VALUES: Final[frozenset[str]] = frozenset(item.value for item in DocumentType)


def _empty_tags() -> TagMap:
    return EMPTY_TAGS


@dataclass(frozen=True, slots=True)
class Category:
    """A named, tag-identified kind of feature."""

    name: str
    applies_to: tuple[DocumentType, ...]
    tags: TagMap
    add_tags: TagMap = field(default_factory=_empty_tags)
    remove_tags: TagMap = field(default_factory=_empty_tags)
    fields: tuple[str, ...] = ()
    icon: str | None = None
    terms: tuple[str, ...] = ()
    color: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "name": self.name,
            "appliesTo": [item.value for item in self.applies_to],
            "tags": dict(self.tags),
            "addTags": dict(self.add_tags),
            "removeTags": dict(self.remove_tags),
            "fields": list(self.fields),
        }
        if self.icon is not None:
            out["icon"] = self.icon
        out["terms"] = list(self.terms)
        if self.color is not None:
            out["color"] = self.color
        return out


@dataclass(frozen=True, slots=True)
class CategoryInput:
    """Result of parsing author input that may use the deprecated shape."""

    category: Category
    sort: int | float | None = None
    deprecated: bool = False


def parse_category(raw: object, *, source: str = "category") -> Category:
    """Validate a canonical category and raise ``SchemaError`` on failure."""

    issues = IssueCollector()
    category = _validate_category(raw, "", issues)
    if category is None:
        raise SchemaError(source, issues.items())
    return category


def parse_category_input(raw: object, *, source: str = "category") -> CategoryInput:
    """Validate a category in either the canonical or the deprecated shape."""

    if not isinstance(raw, Mapping) or not is_deprecated_category(raw):
        return CategoryInput(category=parse_category(raw, source=source))

    issues = IssueCollector()
    sort: int | float | None = None
    if raw.get("sort") is not None:
        sort = as_number(raw["sort"], "sort", issues)
    category = _validate_category(migrate_geometry(raw), "", issues)
    if category is None:
        raise SchemaError(source, issues.items())
    return CategoryInput(category=category, sort=sort, deprecated=True)


def parse_preset(raw: object, *, source: str = "preset") -> CategoryInput:
    """Validate a legacy preset (``geometry`` instead of ``appliesTo``)."""

    issues = IssueCollector()
    payload = as_object(raw, "", issues)
    if payload is None:
        raise SchemaError(source, issues.items())
    geometry = payload.get("geometry")
    if geometry is None:
        issues.add("geometry", "missing required field")
    elif isinstance(geometry, list):
        if not geometry:
            issues.add("geometry", "must contain at least one geometry type")
        elif len(set(map(repr, geometry))) != len(geometry):
            issues.add("geometry", "values must be unique")
    issues.raise_for(source)
    return parse_category_input(payload, source=source)


def _validate_category(raw: object, path: str, issues: IssueCollector) -> Category | None:
    payload = as_object(raw, path, issues)
    if payload is None:
        return None
    if not require_keys(payload, ("name", "appliesTo", "tags"), path, issues):
        return None

    name = as_str(payload["name"], join(path, "name"), issues, min_length=1)
    applies_to = _validate_applies_to(payload["appliesTo"], join(path, "appliesTo"), issues)
    tags = as_tag_map(payload["tags"], join(path, "tags"), issues, min_entries=1)

    add_tags: TagMap | None = EMPTY_TAGS
    if "addTags" in payload:
        add_tags = as_tag_map(payload["addTags"], join(path, "addTags"), issues)
    remove_tags: TagMap | None = EMPTY_TAGS
    if "removeTags" in payload:
        remove_tags = as_tag_map(payload["removeTags"], join(path, "removeTags"), issues)

    fields: tuple[str, ...] | None = ()
    if "fields" in payload:
        fields = as_string_list(
            payload["fields"], join(path, "fields"), issues, min_item_length=1
        )

    icon: str | None = None
    if payload.get("icon") is not None:
        icon = as_str(payload["icon"], join(path, "icon"), issues, min_length=1)

    terms: tuple[str, ...] | None = ()
    if "terms" in payload:
        terms = as_string_list(payload["terms"], join(path, "terms"), issues)

    color: str | None = None
    if payload.get("color") is not None:
        color = as_str(payload["color"], join(path, "color"), issues)
        if color is not None and not HEX_COLOR_PATTERN.fullmatch(color):
            issues.add(join(path, "color"), f"invalid hex color {color!r}")
            color = None

    if (
        name is None
        or applies_to is None
        or tags is None
        or add_tags is None
        or remove_tags is None
        or fields is None
        or terms is None
        or issues.has_issues
    ):
        return None

    return Category(
        name=name,
        applies_to=applies_to,
        tags=tags,
        add_tags=add_tags,
        remove_tags=remove_tags,
        fields=fields,
        icon=icon,
        terms=terms,
        color=color,
    )


def _validate_applies_to(
    value: object, path: str, issues: IssueCollector
) -> tuple[DocumentType, ...] | None:
    items = as_string_list(value, path, issues)
    if items is None:
        return None
    known = [DocumentType(item) for item in items if item in _DOCUMENT_TYPE_VALUES]
    if not known:
        issues.add(path, "must contain at least one known document type")
        return None
    if len(set(known)) != len(known):
        issues.add(path, "values must be unique")
        return None
    return tuple(known)


__all__ = [
    "Category",
    "CategoryInput",
    "HEX_COLOR_PATTERN",
    "parse_category",
    "parse_category_input",
    "parse_preset",
]
