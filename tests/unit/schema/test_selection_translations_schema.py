"""Selection, legacy defaults and translation set contracts."""

from __future__ import annotations

import pytest

from comapeocat.errors import SchemaError
from comapeocat.migration import defaults_to_selection
from comapeocat.schema.selection import parse_defaults, parse_selection
from comapeocat.schema.translations import parse_translations


def test_selection_requires_both_document_types() -> None:
    with pytest.raises(SchemaError, match="track: missing required field"):
        parse_selection({"observation": ["tree"]})


def test_selection_ids_must_be_non_empty_strings() -> None:
    with pytest.raises(SchemaError, match=r"observation\[1\]"):
        parse_selection({"observation": ["tree", ""], "track": []})


def test_defaults_map_point_and_line_and_drop_area() -> None:
    defaults = parse_defaults({"point": ["tree"], "line": ["path"], "area": ["lake"]})

    assert defaults_to_selection(defaults).to_dict() == {
        "observation": ["tree"],
        "track": ["path"],
    }


def test_translations_fold_legacy_preset_kind() -> None:
    translations = parse_translations(
        {
            "preset": {"tree": {"name": "Arbre"}, "lake": {"name": "Lac"}},
            "category": {"tree": {"terms[0]": "bois"}},
        }
    )

    assert translations.to_dict() == {
        "category": {
            "tree": {"name": "Arbre", "terms[0]": "bois"},
            "lake": {"name": "Lac"},
        }
    }


def test_translations_tolerate_references_to_unknown_entities() -> None:
    translations = parse_translations({"field": {"ghost": {"label": "Fantôme"}}})

    assert translations.field["ghost"]["label"] == "Fantôme"


def test_translations_reject_unknown_kinds_and_non_string_values() -> None:
    with pytest.raises(SchemaError) as excinfo:
        parse_translations({"icon": {}, "field": {"height": {"label": 3}}})

    paths = [issue.path for issue in excinfo.value.issues]
    assert "icon" in paths
    assert any(path.startswith("field.height") for path in paths)
