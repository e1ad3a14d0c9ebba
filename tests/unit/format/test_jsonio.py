"""JSON entry encoding and position-aware decoding."""

from __future__ import annotations

import pytest

from comapeocat.errors import JSONParseError
from comapeocat.jsonio import dump_json_bytes, load_json


def test_entries_are_indented_utf8() -> None:
    assert dump_json_bytes({"name": "Árbol", "terms": []}) == (
        '{\n  "name": "Árbol",\n  "terms": []\n}'.encode()
    )


def test_load_accepts_bytes_and_text() -> None:
    assert load_json(b'{"a": 1}', source="x.json") == {"a": 1}
    assert load_json('["b"]', source="x.json") == ["b"]


def test_parse_error_reports_line_and_column() -> None:
    with pytest.raises(JSONParseError) as excinfo:
        load_json('{\n  "a": 1,\n  "b": \n}', source="fields.json")

    error = excinfo.value
    assert error.source == "fields.json"
    assert error.line == 4
    assert error.column == 1
    assert str(error).startswith("fields.json: invalid JSON at line 4")


@pytest.mark.parametrize("text", ["NaN", '{"a": Infinity}', "[-Infinity]"])
def test_non_standard_constants_are_rejected(text: str) -> None:
    with pytest.raises(JSONParseError, match="non-standard JSON constant"):
        load_json(text, source="x.json")


def test_invalid_encoding_is_a_parse_error() -> None:
    with pytest.raises(JSONParseError, match="invalid text encoding"):
        load_json(b'{"a": "\xff"}', source="x.json")
