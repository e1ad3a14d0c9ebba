"""Field schema contract: a tagged variant over text, number and select inputs."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, ClassVar, TypeAlias

from comapeocat.errors import SchemaError
from comapeocat.schema._common import (
    IssueCollector,
    as_list,
    as_object,
    as_str,
    join,
    require_keys,
    type_name,
)

OptionValue: TypeAlias = str | int | bool | None


class FieldType(StrEnum):
    TEXT = "text"
    NUMBER = "number"
    SELECT_ONE = "selectOne"
    SELECT_MULTIPLE = "selectMultiple"


class TextAppearance(StrEnum):
    SINGLELINE = "singleline"
    MULTILINE = "multiline"


@dataclass(frozen=True, slots=True)
class SelectOption:
    label: str
    value: OptionValue

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "value": self.value}


@dataclass(frozen=True, slots=True)
class _BaseField:
    tag_key: str
    label: str
    placeholder: str | None = None
    helper_text: str | None = None

    type: ClassVar[FieldType]

    def _base_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.type.value, "tagKey": self.tag_key, "label": self.label}
        if self.placeholder is not None:
            out["placeholder"] = self.placeholder
        if self.helper_text is not None:
            out["helperText"] = self.helper_text
        return out


@dataclass(frozen=True, slots=True)
class TextField(_BaseField):
    appearance: TextAppearance = TextAppearance.MULTILINE

    type: ClassVar[FieldType] = FieldType.TEXT

    def to_dict(self) -> dict[str, Any]:
        out = self._base_dict()
        out["appearance"] = self.appearance.value
        return out


@dataclass(frozen=True, slots=True)
class NumberField(_BaseField):
    type: ClassVar[FieldType] = FieldType.NUMBER

    def to_dict(self) -> dict[str, Any]:
        return self._base_dict()


@dataclass(frozen=True, slots=True)
class SelectOneField(_BaseField):
    options: tuple[SelectOption, ...] = ()

    type: ClassVar[FieldType] = FieldType.SELECT_ONE

    def to_dict(self) -> dict[str, Any]:
        out = self._base_dict()
        out["options"] = [option.to_dict() for option in self.options]
        return out


@dataclass(frozen=True, slots=True)
class SelectMultipleField(SelectOneField):
    type: ClassVar[FieldType] = FieldType.SELECT_MULTIPLE


Field: TypeAlias = TextField | NumberField | SelectOneField | SelectMultipleField

_ALLOWED_TYPES = ", ".join(item.value for item in FieldType)


def parse_field(raw: object, *, source: str = "field") -> Field:
    """Validate raw field JSON and raise ``SchemaError`` on failure."""

    issues = IssueCollector()
    parsed = _validate_field(raw, "", issues)
    if parsed is None:
        raise SchemaError(source, issues.items())
    return parsed


def _validate_field(raw: object, path: str, issues: IssueCollector) -> Field | None:
    payload = as_object(raw, path, issues)
    if payload is None:
        return None
    if not require_keys(payload, ("type", "tagKey", "label"), path, issues):
        return None

    try:
        field_type = FieldType(payload["type"])
    except ValueError:
        issues.add(
            join(path, "type"),
            f"invalid value {payload['type']!r}; expected one of: {_ALLOWED_TYPES}",
        )
        return None

    tag_key = as_str(payload["tagKey"], join(path, "tagKey"), issues, min_length=1)
    label = as_str(payload["label"], join(path, "label"), issues, min_length=1)
    placeholder: str | None = None
    if payload.get("placeholder") is not None:
        placeholder = as_str(payload["placeholder"], join(path, "placeholder"), issues)
    helper_text: str | None = None
    if payload.get("helperText") is not None:
        helper_text = as_str(payload["helperText"], join(path, "helperText"), issues)

    if field_type is FieldType.TEXT:
        appearance = TextAppearance.MULTILINE
        if payload.get("appearance") is not None:
            try:
                appearance = TextAppearance(payload["appearance"])
            except ValueError:
                issues.add(
                    join(path, "appearance"),
                    f"invalid value {payload['appearance']!r}; expected singleline or multiline",
                )
        if tag_key is None or label is None or issues.has_issues:
            return None
        return TextField(
            tag_key=tag_key,
            label=label,
            placeholder=placeholder,
            helper_text=helper_text,
            appearance=appearance,
        )

    if field_type is FieldType.NUMBER:
        if tag_key is None or label is None or issues.has_issues:
            return None
        return NumberField(
            tag_key=tag_key, label=label, placeholder=placeholder, helper_text=helper_text
        )

    options_path = join(path, "options")
    options = None
    if "options" not in payload:
        issues.add(options_path, "missing required field")
    else:
        options = _validate_options(payload["options"], options_path, issues)
    if tag_key is None or label is None or options is None or issues.has_issues:
        return None
    select_type = SelectOneField if field_type is FieldType.SELECT_ONE else SelectMultipleField
    return select_type(
        tag_key=tag_key,
        label=label,
        placeholder=placeholder,
        helper_text=helper_text,
        options=options,
    )


def option_value_key(value: OptionValue) -> tuple[str, OptionValue]:
    """Identity of an option value where ``True`` and ``1`` stay distinct."""

    return (type_name(value), value)


def _validate_options(
    value: object, path: str, issues: IssueCollector
) -> tuple[SelectOption, ...] | None:
    items = as_list(value, path, issues)
    if items is None:
        return None
    if not items:
        issues.add(path, "must contain at least one option")
        return None

    options: list[SelectOption] = []
    seen: set[tuple[str, OptionValue]] = set()
    valid = True
    for index, item in enumerate(items):
        item_path = join(path, index)
        payload = as_object(item, item_path, issues)
        if payload is None:
            valid = False
            continue
        if not require_keys(payload, ("label", "value"), item_path, issues):
            valid = False
            continue
        label = as_str(payload["label"], join(item_path, "label"), issues, min_length=1)
        option_value = payload["value"]
        if option_value is not None and not isinstance(option_value, (str, bool, int, float)):
            issues.add(
                join(item_path, "value"),
                f"option value must be a string, integer, boolean or null, "
                f"got {type_name(option_value)}",
            )
            valid = False
            continue
        if label is None:
            valid = False
            continue
        if isinstance(option_value, float):
            if not math.isfinite(option_value) or not option_value.is_integer():
                message = f"option value must be an integer, got {option_value!r}"
                issues.add(join(item_path, "value"), message)
                valid = False
                continue
            option_value = int(option_value)
        key = option_value_key(option_value)
        if key in seen:
            issues.add(join(item_path, "value"), f"duplicate option value {option_value!r}")
            valid = False
            continue
        seen.add(key)
        options.append(SelectOption(label=label, value=option_value))
    return tuple(options) if valid else None


__all__ = [
    "Field",
    "FieldType",
    "NumberField",
    "OptionValue",
    "SelectMultipleField",
    "SelectOneField",
    "SelectOption",
    "TextAppearance",
    "TextField",
    "option_value_key",
    "parse_field",
]
