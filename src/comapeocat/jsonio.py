"""JSON encoding for archive entries and position-aware decoding."""

from __future__ import annotations

import json
from typing import Any

from comapeocat.errors import JSONParseError


def dump_json_bytes(value: Any) -> bytes:
    """Serialize ``value`` as 2-space indented UTF-8 JSON."""

    return json.dumps(value, indent=2, ensure_ascii=False).encode("utf-8")


def load_json(data: bytes | str, *, source: str) -> Any:
    """Parse JSON text, raising ``JSONParseError`` with line/column context."""

    try:
        return json.loads(data, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise JSONParseError(source, exc.lineno, exc.colno, exc.msg) from exc
    except UnicodeDecodeError as exc:
        raise JSONParseError(source, 1, 1, f"invalid text encoding: {exc.reason}") from exc
    except ValueError as exc:
        raise JSONParseError(source, 1, 1, str(exc)) from exc


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


__all__ = ["dump_json_bytes", "load_json"]
