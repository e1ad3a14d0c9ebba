"""
comapeocat — authoring messages contract.

File: src/comapeocat/schema/messages.py

Purpose
- Validate ``messages/<lang>.json`` authoring files and parse their message ids.

Message id grammar
- ``<kind>.<id>.<propertyRef>`` where kind is ``category``, ``field`` or the legacy
  ``preset`` (read as ``category``).
- Backslash, dot and ``[`` inside ids are escaped with a backslash.
- ``propertyRef`` is a dotted path that may contain ``[n]`` or ``[value=<json>]``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Final

from comapeocat.errors import SchemaError
from comapeocat.schema._common import IssueCollector, as_object, as_str, join, require_keys

MESSAGE_ID_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?P<kind>category|preset|field)\.(?P<id>(?:\\.|[^.\\])+)\.(?P<property>.+)$",
    re.DOTALL,
)
_ESCAPE_PATTERN: Final[re.Pattern[str]] = re.compile(r"([\\.\[])")
_UNESCAPE_PATTERN: Final[re.Pattern[str]] = re.compile(r"\\(.)", re.DOTALL)


@dataclass(frozen=True, slots=True)
class Message:
    message: str
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"description": self.description, "message": self.message}


@dataclass(frozen=True, slots=True)
class MessageId:
    kind: str
    doc_id: str
    property_ref: str


def escape_id(doc_id: str) -> str:
    return _ESCAPE_PATTERN.sub(r"\\\1", doc_id)


def format_message_id(kind: str, doc_id: str, property_ref: str) -> str:
    return f"{kind}.{escape_id(doc_id)}.{property_ref}"


def parse_message_id(message_id: str) -> MessageId | None:
    """Split a message id into its parts, or return ``None`` when it is malformed."""

    match = MESSAGE_ID_PATTERN.match(message_id)
    if match is None:
        return None
    kind = "category" if match.group("kind") == "preset" else match.group("kind")
    return MessageId(
        kind=kind,
        doc_id=_UNESCAPE_PATTERN.sub(r"\1", match.group("id")),
        property_ref=match.group("property"),
    )


def parse_messages(raw: object, *, source: str = "messages") -> dict[str, Message]:
    issues = IssueCollector()
    payload = as_object(raw, "", issues)
    if payload is None:
        raise SchemaError(source, issues.items())

    messages: dict[str, Message] = {}
    for message_id, value in payload.items():
        if parse_message_id(message_id) is None:
            issues.add(message_id, "invalid message id; expected <category|field>.<id>.<property>")
            continue
        entry = as_object(value, message_id, issues)
        if entry is None or not require_keys(entry, ("message",), message_id, issues):
            continue
        text = as_str(entry["message"], join(message_id, "message"), issues)
        description: str | None = ""
        if entry.get("description") is not None:
            description = as_str(entry["description"], join(message_id, "description"), issues)
        if text is None or description is None:
            continue
        messages[message_id] = Message(message=text, description=description)

    if issues.has_issues:
        raise SchemaError(source, issues.items())
    return messages


__all__ = [
    "MESSAGE_ID_PATTERN",
    "Message",
    "MessageId",
    "escape_id",
    "format_message_id",
    "parse_message_id",
    "parse_messages",
]
