"""Archive format version parsing and compatibility checks."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final

from comapeocat.constants import SUPPORTED_MAJOR_VERSION
from comapeocat.errors import InvalidVersionError, UnsupportedVersionError

_VERSION_PATTERN: Final[re.Pattern[str]] = re.compile(r"(?P<major>[0-9]+)\.(?P<minor>[0-9]+)")


@dataclass(frozen=True, slots=True, order=True)
class FormatVersion:
    major: int
    minor: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


def parse_version(text: str) -> FormatVersion:
    """Parse a ``MAJOR.MINOR`` marker; surrounding whitespace is ignored."""

    match = _VERSION_PATTERN.fullmatch(text.strip())
    if match is None:
        raise InvalidVersionError(text)
    return FormatVersion(major=int(match.group("major")), minor=int(match.group("minor")))


def decode_version(data: bytes) -> FormatVersion:
    try:
        text = data.decode("ascii")
    except UnicodeDecodeError as exc:
        raise InvalidVersionError(data.decode("utf-8", errors="replace")) from exc
    return parse_version(text)


def check_version_supported(
    version: FormatVersion, *, supported_major: int = SUPPORTED_MAJOR_VERSION
) -> FormatVersion:
    """Reject versions whose major component is newer than this package understands.

    Any minor version of a supported major is readable.
    """

    if version.major > supported_major:
        raise UnsupportedVersionError(str(version), supported_major)
    return version


def negotiate_version(text: str) -> FormatVersion:
    return check_version_supported(parse_version(text))


__all__ = [
    "FormatVersion",
    "check_version_supported",
    "decode_version",
    "negotiate_version",
    "parse_version",
]
