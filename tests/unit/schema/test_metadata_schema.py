"""Metadata contract: strict author input and lenient stored form."""

from __future__ import annotations

import pytest

from comapeocat.errors import SchemaError
from comapeocat.schema.metadata import Metadata, parse_metadata, parse_metadata_input


def test_author_metadata_accepts_name_and_version() -> None:
    metadata = parse_metadata_input({"name": "Forest", "version": "1.2"})

    assert metadata == Metadata(name="Forest", version="1.2")


def test_author_metadata_rejects_unknown_keys() -> None:
    with pytest.raises(SchemaError, match="buildDateValue: unknown field"):
        parse_metadata_input({"name": "Forest", "buildDateValue": 1})


@pytest.mark.parametrize(
    "raw",
    [{}, {"name": ""}, {"name": "x" * 101}, {"name": "Forest", "version": "v" * 21}],
)
def test_author_metadata_length_bounds(raw: dict[str, object]) -> None:
    with pytest.raises(SchemaError):
        parse_metadata_input(raw)


def test_name_at_maximum_length_is_accepted() -> None:
    assert parse_metadata_input({"name": "x" * 100}).name == "x" * 100


def test_stored_metadata_requires_build_date() -> None:
    with pytest.raises(SchemaError, match="buildDateValue"):
        parse_metadata({"name": "Forest"})


def test_stamped_metadata_serializes_builder_fields() -> None:
    stamped = Metadata(name="Forest").stamped(
        1_700_000_000_000, builder_name="comapeocat", builder_version="1.0.0"
    )

    assert stamped.to_dict() == {
        "name": "Forest",
        "buildDateValue": 1_700_000_000_000,
        "builderName": "comapeocat",
        "builderVersion": "1.0.0",
    }
    assert parse_metadata(stamped.to_dict()) == stamped
