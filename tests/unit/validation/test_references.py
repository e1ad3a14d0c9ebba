"""Referential integrity between categories, fields, icons and the selection."""

from __future__ import annotations

from typing import Any

import pytest

from comapeocat.errors import (
    InvalidSelectionError,
    MissingDocumentTypeError,
    MissingReferenceError,
    SelectionRefError,
)
from comapeocat.references import declared_document_types, validate_references
from comapeocat.schema.category import Category, parse_category
from comapeocat.schema.selection import Selection


def _category(tags: dict[str, Any], applies_to: list[str], **extra: Any) -> Category:
    return parse_category({"name": "Name", "appliesTo": applies_to, "tags": tags, **extra})


def _categories() -> dict[str, Category]:
    return {
        "tree": _category({"natural": "tree"}, ["observation"], fields=["species"], icon="tree"),
        "path": _category({"highway": "path"}, ["track"], fields=["surface"]),
        "river": _category({"waterway": "river"}, ["observation", "track"]),
    }


def test_consistent_configuration_passes() -> None:
    selection = Selection(observation=("tree", "river"), track=("path",))

    validate_references(_categories(), {"species", "surface"}, {"tree"}, selection)


def test_missing_fields_are_aggregated_by_reference() -> None:
    categories = _categories()
    categories["oak"] = _category(
        {"natural": "tree", "leaf": "broad"}, ["observation"], fields=["species", "age"]
    )

    with pytest.raises(MissingReferenceError) as excinfo:
        validate_references(categories, {"surface"}, {"tree"})

    assert excinfo.value.property_name == "field"
    assert excinfo.value.missing_refs == {"age": ("oak",), "species": ("oak", "tree")}


def test_fields_are_checked_before_icons() -> None:
    with pytest.raises(MissingReferenceError) as excinfo:
        validate_references(_categories(), set(), set())

    assert excinfo.value.property_name == "field"


def test_missing_icon_is_reported() -> None:
    with pytest.raises(MissingReferenceError) as excinfo:
        validate_references(_categories(), {"species", "surface"}, {"other"})

    assert excinfo.value.property_name == "icon"
    assert excinfo.value.missing_refs == {"tree": ("tree",)}


def test_every_required_document_type_needs_a_category() -> None:
    categories = {"tree": _category({"natural": "tree"}, ["observation"])}

    with pytest.raises(MissingDocumentTypeError) as excinfo:
        validate_references(categories, set(), set())

    assert excinfo.value.document_type == "track"
    validate_references(categories, set(), set(), require_document_types=False)


def test_unknown_selection_id_fails_fast() -> None:
    selection = Selection(observation=("tree", "ghost"), track=("path",))

    with pytest.raises(SelectionRefError) as excinfo:
        validate_references(_categories(), {"species", "surface"}, {"tree"}, selection)

    assert excinfo.value.category_id == "ghost"
    assert excinfo.value.document_type == "observation"


def test_unknown_selection_ids_can_be_tolerated() -> None:
    selection = Selection(observation=("tree", "ghost"), track=("path",))

    validate_references(
        _categories(),
        {"species", "surface"},
        {"tree"},
        selection,
        allow_missing_selection_refs=True,
    )


def test_document_type_mismatches_are_aggregated() -> None:
    selection = Selection(observation=("tree", "path"), track=("tree", "river"))

    with pytest.raises(InvalidSelectionError) as excinfo:
        validate_references(
            _categories(),
            {"species", "surface"},
            {"tree"},
            selection,
            allow_missing_selection_refs=True,
        )

    assert excinfo.value.invalid_refs == {"observation": ("path",), "track": ("tree",)}


def test_declared_document_types() -> None:
    assert {item.value for item in declared_document_types(_categories())} == {
        "observation",
        "track",
    }
