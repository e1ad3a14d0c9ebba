"""
comapeocat — BCP-47 language tag normalization.

File: src/comapeocat/language.py

Purpose
- Canonicalize translation language tags and reject tags that do not name a real
  language (and, when present, a real region).

Functional requirements
- Syntax and canonical casing/ordering come from ``langcodes``.
- The primary language subtag must be an ISO 639-1 or ISO 639-3 code (``pycountry``).
- A region subtag must be an ISO 3166-1 alpha-2 code or a UN M.49 area code.
"""

from __future__ import annotations

from typing import Final

import langcodes
import pycountry

from comapeocat.errors import LanguageTagError

# UN M.49 macro-geographical regions and sub-regions usable as BCP-47 region subtags.
UN_M49_AREA_CODES: Final[frozenset[str]] = frozenset(
    (
        "001 002 003 005 009 011 013 014 015 017 018 019 021 029 030 034 035 039 "
        "053 054 057 061 142 143 145 150 151 154 155 202 419"
    ).split()
)


def normalize_language_tag(tag: str) -> str:
    """Return the canonical form of ``tag`` or raise ``LanguageTagError``."""

    if not isinstance(tag, str) or not tag.strip():
        raise LanguageTagError(str(tag), "tag must be a non-empty string")
    try:
        normalized = langcodes.standardize_tag(tag.strip())
        parsed = langcodes.Language.get(normalized)
    except ValueError as exc:
        raise LanguageTagError(tag, str(exc)) from exc

    language = parsed.language
    if not language or not _is_known_language(language):
        raise LanguageTagError(tag, f"unknown primary language subtag {language!r}")
    territory = parsed.territory
    if territory and not _is_known_region(territory):
        raise LanguageTagError(tag, f"unknown region subtag {territory!r}")
    return normalized


def is_valid_language_tag(tag: str) -> bool:
    try:
        normalize_language_tag(tag)
    except LanguageTagError:
        return False
    return True


def _is_known_language(code: str) -> bool:
    if len(code) == 2:
        return pycountry.languages.get(alpha_2=code) is not None
    if len(code) == 3:
        return pycountry.languages.get(alpha_3=code) is not None
    return False


def _is_known_region(code: str) -> bool:
    if code.isdigit():
        return code in UN_M49_AREA_CODES or pycountry.countries.get(numeric=code) is not None
    return pycountry.countries.get(alpha_2=code.upper()) is not None


__all__ = ["UN_M49_AREA_CODES", "is_valid_language_tag", "normalize_language_tag"]
