"""Archive metadata contract: strict author input plus the stamped stored form."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Final

from comapeocat.errors import SchemaError
from comapeocat.schema._common import (
    IssueCollector,
    as_number,
    as_object,
    as_str,
    reject_unknown_keys,
    require_keys,
)

MAX_NAME_LENGTH: Final[int] = 100
MAX_VERSION_LENGTH: Final[int] = 20

_INPUT_KEYS: Final[frozenset[str]] = frozenset({"name", "version"})


@dataclass(frozen=True, slots=True)
class Metadata:
    name: str
    version: str | None = None
    build_date_value: int | None = None
    builder_name: str | None = None
    builder_version: str | None = None

    def stamped(
        self,
        build_date_value: int,
        *,
        builder_name: str | None = None,
        builder_version: str | None = None,
    ) -> Metadata:
        return replace(
            self,
            build_date_value=build_date_value,
            builder_name=builder_name,
            builder_version=builder_version,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name}
        if self.version is not None:
            out["version"] = self.version
        if self.build_date_value is not None:
            out["buildDateValue"] = self.build_date_value
        if self.builder_name is not None:
            out["builderName"] = self.builder_name
        if self.builder_version is not None:
            out["builderVersion"] = self.builder_version
        return out


def parse_metadata_input(raw: object, *, source: str = "metadata") -> Metadata:
    """Validate author-supplied metadata; unknown keys are rejected."""

    issues = IssueCollector()
    payload = as_object(raw, "", issues)
    if payload is not None:
        reject_unknown_keys(payload, _INPUT_KEYS, "", issues)
        name, version = _validate_name_and_version(payload, issues)
        if name is not None and not issues.has_issues:
            return Metadata(name=name, version=version)
    raise SchemaError(source, issues.items())


def parse_metadata(raw: object, *, source: str = "metadata") -> Metadata:
    """Validate stored metadata as read from an archive; unknown keys are stripped."""

    issues = IssueCollector()
    payload = as_object(raw, "", issues)
    if payload is None:
        raise SchemaError(source, issues.items())
    name, version = _validate_name_and_version(payload, issues)

    build_date_value: int | None = None
    if require_keys(payload, ("buildDateValue",), "", issues):
        parsed = as_number(payload["buildDateValue"], "buildDateValue", issues)
        if parsed is not None:
            build_date_value = int(parsed)

    builder_name: str | None = None
    if payload.get("builderName") is not None:
        builder_name = as_str(payload["builderName"], "builderName", issues, min_length=1)
    builder_version: str | None = None
    if payload.get("builderVersion") is not None:
        builder_version = as_str(
            payload["builderVersion"], "builderVersion", issues, min_length=1
        )

    if name is None or issues.has_issues:
        raise SchemaError(source, issues.items())
    return Metadata(
        name=name,
        version=version,
        build_date_value=build_date_value,
        builder_name=builder_name,
        builder_version=builder_version,
    )


def _validate_name_and_version(
    payload: dict[str, object], issues: IssueCollector
) -> tuple[str | None, str | None]:
    name: str | None = None
    if require_keys(payload, ("name",), "", issues):
        name = as_str(
            payload["name"], "name", issues, min_length=1, max_length=MAX_NAME_LENGTH
        )
    version: str | None = None
    if payload.get("version") is not None:
        version = as_str(
            payload["version"], "version", issues, min_length=1, max_length=MAX_VERSION_LENGTH
        )
    return name, version


__all__ = [
    "MAX_NAME_LENGTH",
    "MAX_VERSION_LENGTH",
    "Metadata",
    "parse_metadata",
    "parse_metadata_input",
]
