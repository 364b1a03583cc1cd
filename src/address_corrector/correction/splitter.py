"""
Separate house numbers from street names.
"""

import re

# "12a Musterstraße"
_RE_LEADING_NUMBER = re.compile(r"^(\d+[A-Za-z]?)[\s,]+(.+)$")
# "Musterstraße 12a"
_RE_TRAILING_NUMBER = re.compile(r"^(.+?)[\s,]+(\d+[A-Za-z]?)$")
# Free-standing house number inside other text, ranges like "12/14" or "3-5b" allowed
_RE_HOUSE_NUMBER = re.compile(r"(?<![\w/-])(\d{1,5}[A-Za-z]?(?:[/-]\d{1,5}[A-Za-z]?)?)(?![\w/-])")
HOUSE_NUMBER_TOKEN = re.compile(r"^\d+[A-Za-z]?$")
HOUSE_NUMBER = re.compile(r"^\d{1,5}[A-Za-z]?(?:[/-]\d{1,5}[A-Za-z]?)?$")


def split_street_and_number(street: str) -> tuple[str, str]:
    """
    Split a house number off a street.

    A leading number wins over a trailing one; without either the street
    comes back unchanged with an empty number.

    Examples:
        split_street_and_number("Musterstraße 12a") → ("Musterstraße", "12a")
        split_street_and_number("12a Musterstraße") → ("Musterstraße", "12a")
        split_street_and_number("Musterstraße") → ("Musterstraße", "")

    Returns:
        Tuple of (street, street_number)
    """
    street = (street or "").strip()

    match = _RE_LEADING_NUMBER.match(street)
    if match:
        return match.group(2).strip(), match.group(1)

    match = _RE_TRAILING_NUMBER.match(street)
    if match:
        return match.group(1).strip(), match.group(2)

    return street, ""


def tidy_fragment(text: str) -> str:
    """Collapse whitespace and drop dangling separators left behind by a removal."""
    t = re.sub(r"\s+", " ", text or "")
    t = re.sub(r"\s+,", ",", t)
    t = re.sub(r",(\s*,)+", ",", t)
    return t.strip(" ,;")


def extract_house_number(text: str) -> tuple[str, str]:
    """
    Find the first free-standing house number in text.

    Returns:
        Tuple of (house_number, remaining_text); ("", text) if none found
    """
    if not text:
        return "", text or ""
    match = _RE_HOUSE_NUMBER.search(text)
    if not match:
        return "", text
    remainder = text[:match.start()] + text[match.end():]
    return match.group(1), tidy_fragment(remainder)


def is_house_number(value: str) -> bool:
    return bool(value) and bool(HOUSE_NUMBER.match(value.strip()))
