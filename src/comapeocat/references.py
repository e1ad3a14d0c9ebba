"""
comapeocat — referential integrity checks.

File: src/comapeocat/references.py

Purpose
- Check that categories, fields, icons and the category selection form a consistent
  whole, and that no two categories claim the same tag set.

Check order (first failing step raises)
1. Field references, aggregated as missing field id -> referencing category ids.
2. Icon references, aggregated the same way.
3. Every required document type is declared by at least one category.
4. Selection: unknown category ids fail fast; document-type mismatches are aggregated.

Non-functional requirements
- Error payloads are deterministic for identical input.
"""

from __future__ import annotations

import json
from collections.abc import Collection, Mapping
from typing import TYPE_CHECKING

import structlog

from comapeocat.constants import DOCUMENT_TYPES, REQUIRED_DOCUMENT_TYPES, DocumentType
from comapeocat.errors import (
    DuplicateTagGroup,
    DuplicateTagsError,
    InvalidSelectionError,
    MissingDocumentTypeError,
    MissingReferenceError,
    SelectionRefError,
)

if TYPE_CHECKING:
    from comapeocat.schema.category import Category
    from comapeocat.schema.selection import Selection

_LOGGER = structlog.get_logger(__name__)


def validate_references(
    categories: Mapping[str, Category],
    field_ids: Collection[str],
    icon_ids: Collection[str],
    selection: Selection | None = None,
    *,
    require_document_types: bool = True,
    allow_missing_selection_refs: bool = False,
) -> None:
    """Raise the first referential integrity failure, or return ``None``.

    ``allow_missing_selection_refs`` skips selection ids that name no category instead
    of raising ``SelectionRefError``; mismatched document types are still reported.
    """

    missing_fields: dict[str, set[str]] = {}
    missing_icons: dict[str, set[str]] = {}
    for category_id, category in categories.items():
        for field_id in category.fields:
            if field_id not in field_ids:
                missing_fields.setdefault(field_id, set()).add(category_id)
        if category.icon is not None and category.icon not in icon_ids:
            missing_icons.setdefault(category.icon, set()).add(category_id)

    if missing_fields:
        raise MissingReferenceError("field", missing_fields)
    if missing_icons:
        raise MissingReferenceError("icon", missing_icons)

    if require_document_types:
        declared = declared_document_types(categories)
        for document_type in REQUIRED_DOCUMENT_TYPES:
            if document_type not in declared:
                raise MissingDocumentTypeError(document_type.value)

    if selection is not None:
        validate_selection_references(
            categories, selection, allow_missing_refs=allow_missing_selection_refs
        )


def validate_selection_references(
    categories: Mapping[str, Category],
    selection: Selection,
    *,
    allow_missing_refs: bool = False,
) -> None:
    invalid: dict[str, list[str]] = {}
    for document_type, category_ids in selection.items():
        for category_id in category_ids:
            category = categories.get(category_id)
            if category is None:
                if allow_missing_refs:
                    _LOGGER.debug(
                        "selection_reference_skipped",
                        category_id=category_id,
                        document_type=document_type.value,
                    )
                    continue
                raise SelectionRefError(category_id, document_type.value)
            if document_type not in category.applies_to:
                invalid.setdefault(document_type.value, []).append(category_id)
    if invalid:
        raise InvalidSelectionError(invalid)


def canonical_tags(tags: Mapping[str, object]) -> str:
    """Serialize a tag map so that key order does not affect identity."""

    normalized = {
        key: int(value) if isinstance(value, float) and value.is_integer() else value
        for key, value in tags.items()
    }
    return json.dumps(normalized, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def find_duplicate_tags(categories: Mapping[str, Category]) -> tuple[DuplicateTagGroup, ...]:
    groups: dict[tuple[int, str], list[str]] = {}
    first_tags: dict[tuple[int, str], Mapping[str, object]] = {}
    for category_id, category in categories.items():
        serialized = canonical_tags(category.tags)
        for document_type in category.applies_to:
            key = (DOCUMENT_TYPES.index(document_type), serialized)
            groups.setdefault(key, []).append(category_id)
            first_tags.setdefault(key, category.tags)

    return tuple(
        DuplicateTagGroup(
            tags=dict(first_tags[key]),
            document_type=DOCUMENT_TYPES[key[0]].value,
            category_ids=tuple(category_ids),
        )
        for key, category_ids in sorted(groups.items())
        if len(category_ids) > 1
    )


def validate_category_tags(categories: Mapping[str, Category]) -> None:
    """Raise ``DuplicateTagsError`` naming every group of categories sharing tags."""

    duplicates = find_duplicate_tags(categories)
    if duplicates:
        raise DuplicateTagsError(duplicates)


def declared_document_types(categories: Mapping[str, Category]) -> frozenset[DocumentType]:
    return frozenset(item for category in categories.values() for item in category.applies_to)


__all__ = [
    "canonical_tags",
    "declared_document_types",
    "find_duplicate_tags",
    "validate_category_tags",
    "validate_references",
    "validate_selection_references",
]
