"""
Street and city name normalizers.

Brings street suffix spellings into the canonical "str." form and
shortens hyphenated city names, following German postal conventions.
"""

import re
from typing import Dict, List, Optional

from .base import Normalizer

# Street suffix spellings rewritten to their canonical form, in order.
# "str" without a following period is only rewritten at a word end so
# that "straße" has already been handled when it is reached.
_STREET_SUFFIX_PATTERNS: List[tuple[re.Pattern, str]] = [
    (re.compile(r"straße\b", re.I), "str."),
    (re.compile(r"strasse\b", re.I), "str."),
    (re.compile(r"str(?!\.)\b", re.I), "str."),
    (re.compile(r"pl\.", re.I), "platz"),
]

# Abbreviations expanded when looking for a street under another spelling
_STREET_ABBREVS: Dict[str, str] = {
    "Dr.": "Doktor",
    "Bgm.": "Bürgermeister",
    "Prof.": "Professor",
    "St.": "Sankt",
}


def _keep_case(replacement: str):
    """
    Build a substitution for a suffix match.

    A capitalized match at the start of a word ("Straße des 17. Juni",
    "Müller-Straße") keeps its capital; everything else, including the tail
    of an upper-case name ("HAUPTSTRASSE"), gets the lower-case canonical form.
    """
    def substitute(match: re.Match) -> str:
        start = match.start()
        word_start = start == 0 or not match.string[start - 1].isalnum()
        if word_start and match.group(0)[0].isupper():
            return replacement[0].upper() + replacement[1:]
        return replacement
    return substitute


def normalize_street_name(street: str) -> str:
    """
    Rewrite street suffix spellings to the canonical abbreviation.

    "Hauptstraße" → "Hauptstr.", "Hauptstrasse 5" → "Hauptstr. 5",
    "Hauptstr 5" → "Hauptstr. 5", "Marktpl." → "Marktplatz",
    "HAUPTSTRASSE 1" → "HAUPTstr. 1".
    """
    if not street:
        return street
    t = street
    for pattern, replacement in _STREET_SUFFIX_PATTERNS:
        t = pattern.sub(_keep_case(replacement), t)
    return t


def normalize_city_name(city: str) -> str:
    """Cut a hyphenated city name at the first hyphen ("Berlin-Mitte" → "Berlin")."""
    if city and "-" in city:
        return city.split("-", 1)[0].strip()
    return city


def canonical_street_key(street: str) -> str:
    """Comparison key for street names: canonical spelling, case folded, single spaces."""
    return re.sub(r"\s+", " ", normalize_street_name(street or "")).strip().lower()


def street_name_variants(street: str) -> List[str]:
    """
    Spelling variants of a street name with common abbreviations expanded.

    The input itself is always the first variant; "Dr.-Bgm.-Müller-Str." yields
    "Doktor-Bgm.-Müller-Str.", "Dr.-Bürgermeister-Müller-Str." and
    "Doktor-Bürgermeister-Müller-Str.".
    """
    if not street:
        return []
    variants = [street]
    for abbrev, full in _STREET_ABBREVS.items():
        pattern = re.compile(re.escape(abbrev), re.I)
        expanded = [pattern.sub(full, v) for v in variants if pattern.search(v)]
        variants.extend(v for v in expanded if v not in variants)
    return variants


class StreetNameNormalizer(Normalizer):
    """Normalizes street suffixes (straße/strasse/str → str., pl. → platz)."""

    def normalize(self, value: str, context: Optional[str] = None) -> str:
        if not value:
            return ""
        t = re.sub(r"\s+", " ", str(value)).strip()
        return normalize_street_name(t)


class CityNameNormalizer(Normalizer):
    """Normalizes city names by dropping everything after the first hyphen."""

    def normalize(self, value: str, context: Optional[str] = None) -> str:
        if not value:
            return ""
        return normalize_city_name(str(value).strip())
