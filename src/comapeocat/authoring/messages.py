"""
comapeocat — translatable message extraction.

File: src/comapeocat/authoring/messages.py

Purpose
- Extract the user-visible strings of an authoring directory into a messages
  document, and turn translated messages back into archive translation sets.

Message ids
- ``category.<id>.name``
- ``field.<id>.label``, ``field.<id>.helperText``, ``field.<id>.placeholder``
- ``field.<id>.options[value=<json>].label``

Property references are dotted paths. A segment may be followed by ``[n]`` (list
index) or ``[key=<json>]`` (first list item whose ``key`` equals the JSON value).
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, TypeAlias

from comapeocat.authoring.read_files import SourceFile, SourceKind
from comapeocat.schema.category import parse_category_input
from comapeocat.schema.field import SelectOneField, option_value_key, parse_field
from comapeocat.schema.messages import (
    Message,
    MessageId,
    format_message_id,
    parse_message_id,
)

_JSON_DECODER: Final[json.JSONDecoder] = json.JSONDecoder()
_DIGITS: Final[frozenset[str]] = frozenset("0123456789")


@dataclass(frozen=True, slots=True)
class Selector:
    key: str
    value: Any


PathSegment: TypeAlias = str | int | Selector


def extract_messages(sources: Iterable[SourceFile]) -> dict[str, dict[str, str]]:
    """Collect translatable strings from category and field sources, sorted by id."""

    messages: dict[str, Message] = {}
    for source in sources:
        if source.kind is SourceKind.CATEGORY:
            category = parse_category_input(source.value, source=source.id).category
            messages[format_message_id("category", source.id, "name")] = Message(
                message=category.name,
                description=f"The name of category '{source.id}'",
            )
        elif source.kind is SourceKind.FIELD:
            messages.update(_field_messages(source.id, source.value))
    return {message_id: messages[message_id].to_dict() for message_id in sorted(messages)}


def _field_messages(field_id: str, raw: object) -> dict[str, Message]:
    parsed = parse_field(raw, source=field_id)
    out = {
        format_message_id("field", field_id, "label"): Message(
            message=parsed.label, description=f"Label for field '{field_id}'"
        )
    }
    if parsed.helper_text is not None:
        out[format_message_id("field", field_id, "helperText")] = Message(
            message=parsed.helper_text,
            description=f"Descriptive text shown under the label for field '{field_id}'",
        )
    if parsed.placeholder is not None:
        out[format_message_id("field", field_id, "placeholder")] = Message(
            message=parsed.placeholder,
            description=(
                f"Example input for field '{field_id}' (only visible for text and number fields)"
            ),
        )
    if isinstance(parsed, SelectOneField):
        for option in parsed.options:
            encoded = json.dumps(option.value, ensure_ascii=False)
            shown = option.value if isinstance(option.value, str) else encoded
            out[format_message_id("field", field_id, f"options[value={encoded}].label")] = Message(
                message=option.label,
                description=f"Label for option '{shown}' of field '{field_id}'",
            )
    return out


def messages_to_translations(
    messages: Mapping[str, Message],
) -> dict[str, dict[str, dict[str, str]]]:
    """Group translated messages as ``{kind: {doc_id: {property_ref: text}}}``.

    Messages with empty text are skipped.
    """

    translations: dict[str, dict[str, dict[str, str]]] = {"category": {}, "field": {}}
    for message_id, value in messages.items():
        if not value.message:
            continue
        parsed = _require_message_id(message_id)
        properties = translations[parsed.kind].setdefault(parsed.doc_id, {})
        properties[parsed.property_ref] = value.message
    return translations


def _require_message_id(message_id: str) -> MessageId:
    parsed = parse_message_id(message_id)
    if parsed is None:
        raise ValueError(f"invalid message id: {message_id}")
    return parsed


def parse_property_ref(property_ref: str) -> tuple[PathSegment, ...]:
    """Split a property reference into keys, list indexes and selectors.

    Raises ``ValueError`` when the reference is malformed.
    """

    segments: list[PathSegment] = []
    key: list[str] = []
    in_key = False
    after_bracket = False
    position = 0
    length = len(property_ref)
    while position < length:
        char = property_ref[position]
        if char == "\\" and position + 1 < length:
            key.append(property_ref[position + 1])
            in_key = True
            position += 2
            continue
        if char == ".":
            if in_key:
                segments.append("".join(key))
                key.clear()
                in_key = False
            elif not after_bracket:
                raise ValueError(f"empty property name in {property_ref!r}")
            after_bracket = False
            position += 1
            continue
        if char == "[":
            if in_key:
                segments.append("".join(key))
                key.clear()
                in_key = False
            segment, position = _parse_bracket(property_ref, position)
            segments.append(segment)
            after_bracket = True
            continue
        if after_bracket:
            raise ValueError(f"expected '.' or '[' after ']' in {property_ref!r}")
        key.append(char)
        in_key = True
        position += 1

    if in_key:
        segments.append("".join(key))
    elif not after_bracket:
        raise ValueError(f"empty property name in {property_ref!r}")
    return tuple(segments)


def _parse_bracket(text: str, start: int) -> tuple[PathSegment, int]:
    close = text.find("]", start)
    if close == -1:
        raise ValueError(f"unclosed '[' in {text!r}")
    body = text[start + 1 : close]
    if body and set(body) <= _DIGITS:
        return int(body), close + 1

    equals = text.find("=", start)
    if equals == -1 or equals == start + 1:
        raise ValueError(f"invalid selector in {text!r}")
    selector_key = text[start + 1 : equals]
    if "]" in selector_key:
        raise ValueError(f"invalid selector in {text!r}")
    try:
        value, end = _JSON_DECODER.raw_decode(text, equals + 1)
    except json.JSONDecodeError as exc:
        raise ValueError(f"invalid selector value in {text!r}") from exc
    if end >= len(text) or text[end] != "]":
        raise ValueError(f"unclosed selector in {text!r}")
    return Selector(key=selector_key, value=value), end + 1


def has_property(document: object, property_ref: str) -> bool:
    """Report whether ``property_ref`` resolves to a value inside ``document``."""

    try:
        segments = parse_property_ref(property_ref)
    except ValueError:
        return False

    current = document
    for segment in segments:
        if isinstance(segment, Selector):
            if not _is_list(current):
                return False
            wanted = option_value_key(segment.value)
            match = next(
                (
                    item
                    for item in current
                    if isinstance(item, Mapping)
                    and segment.key in item
                    and option_value_key(item[segment.key]) == wanted
                ),
                None,
            )
            if match is None:
                return False
            current = match
        elif isinstance(segment, int):
            if not _is_list(current) or segment >= len(current):
                return False
            current = current[segment]
        else:
            if not isinstance(current, Mapping) or segment not in current:
                return False
            current = current[segment]
    return True


def _is_list(value: object) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


__all__ = [
    "PathSegment",
    "Selector",
    "extract_messages",
    "has_property",
    "messages_to_translations",
    "parse_message_id",
    "parse_property_ref",
]
