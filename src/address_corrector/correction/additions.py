"""
Move address additions (care-of names, venue names) out of the street field.

Order forms regularly carry "Dieter Strödicke Pielstraße 8" or
"Hauptstr. 5 Hotel Adler" in the street line. Two heuristics pull the
extra text into address_addition:

- positional: text in front of (or behind) a recognizable street name,
  anchored on a street suffix word and a trailing house number
- keyword: a venue keyword such as "Hotel" or "Pension" and everything
  after it
"""

import html
import logging
import re
from typing import Optional

from .models import AddressFields
from .splitter import HOUSE_NUMBER_TOKEN

logger = logging.getLogger(__name__)

STREET_INDICATORS = (
    "straße", "strasse", "str.", "str", "weg", "platz", "allee", "ring",
    "gasse", "ufer", "chaussee", "damm", "pfad", "steig",
)

# Words that start German street names ("Am Ring", "An der Alten Gasse")
STREET_NAME_PREFIXES = frozenset({
    "am", "an", "auf", "aus", "bei", "beim", "hinter", "im", "in", "vor", "vorm",
    "vom", "von", "zu", "zum", "zur", "unter", "über", "der", "die", "das", "dem",
    "den", "des", "alte", "alter", "alten", "neue", "neuer", "neuen", "große",
    "großer", "kleine", "kleiner", "obere", "oberer", "untere", "unterer",
    "hohe", "hoher", "lange", "langer", "st.", "sankt",
})

ADDITION_KEYWORDS = (
    "Landgasthof",
    "Hotel",
    "Praxis",
    "Haus",
    "Wohnanlage",
    "Appartement",
    "Ferienwohnung",
    "Bauernhof",
    "Gästehaus",
    "Pension",
    "Restaurant",
    "Gasthof",
    "Schloss",
    "Villa",
)

_KEYWORD_PATTERNS = [
    (keyword, re.compile(r"\b" + re.escape(keyword) + r"\b(.*)$", re.I | re.S))
    for keyword in ADDITION_KEYWORDS
]

_QUOTES = re.compile("[\"“”„‟″]")


def _street_suffix(word: str) -> Optional[str]:
    """Street indicator a word ends with, if any."""
    w = word.lower().rstrip(",;")
    for indicator in STREET_INDICATORS:
        if w.endswith(indicator):
            return indicator
    return None


def _is_bare_indicator(word: str, indicator: str) -> bool:
    """True for a standalone suffix word like "Gasse" as opposed to "Pielstraße"."""
    return word.lower().rstrip(",;") == indicator


def extract_leading_addition(fields: AddressFields) -> AddressFields:
    """
    Split text around a street name into address_addition.

    Needs a house number token and, before it, a word ending in a street
    indicator. The last such word wins, so a name like "Anna Döring" in
    front of the street is not read as one. The street name is that word,
    the word before it when the indicator stands alone ("Alte Gasse"), and
    any street name prefix words further left ("Am", "An der"). Words left
    of the street name and words between it and the house number become
    the addition.

    "Dieter Strödicke Pielstraße 8" → street "Pielstraße 8",
    address_addition "Dieter Strödicke".
    """
    if not fields.street:
        return fields

    words = fields.street.split()

    number_index = None
    for i in range(len(words) - 1, -1, -1):
        if HOUSE_NUMBER_TOKEN.match(words[i]):
            number_index = i
            break
    if number_index is None:
        return fields

    suffix_index = None
    for i in range(number_index - 1, -1, -1):
        indicator = _street_suffix(words[i])
        if indicator:
            suffix_index = i
            break
    if suffix_index is None:
        return fields

    start = suffix_index
    if _is_bare_indicator(words[suffix_index], _street_suffix(words[suffix_index])) and start > 0:
        start -= 1
    while start > 0 and words[start - 1].lower() in STREET_NAME_PREFIXES:
        start -= 1

    name_end = suffix_index + 1
    # "Platz der Republik 3", "Straße des 17. Juni 5": the name continues
    if name_end < number_index and words[name_end].lower() in STREET_NAME_PREFIXES:
        name_end = number_index

    leading = " ".join(words[:start])
    middle = " ".join(words[name_end:number_index])
    if not leading and not middle:
        return fields

    fields.street = " ".join(words[start:name_end] + words[number_index:])
    fields.append_addition(leading)
    fields.append_addition(middle)
    logger.debug(f"Moved '{leading}' / '{middle}' from street to address_addition")
    return fields


def extract_keyword_addition(fields: AddressFields) -> AddressFields:
    """
    Move a venue keyword and the text after it from street to address_addition.

    HTML entities are decoded and quote characters removed first. Keywords
    match as whole words, case-insensitive, in ADDITION_KEYWORDS order.
    """
    if not fields.street:
        return fields

    street = html.unescape(fields.street)
    street = _QUOTES.sub("", street)

    for keyword, pattern in _KEYWORD_PATTERNS:
        match = pattern.search(street)
        if match:
            addition = f"{keyword} {match.group(1).strip()}".strip()
            street = street[:match.start()].strip()
            fields.append_addition(addition)
            logger.debug(f"Moved venue '{addition}' from street to address_addition")
            break

    fields.set("street", street.strip())
    return fields


def extract_additions(fields: AddressFields) -> AddressFields:
    """Apply the positional, then the keyword extraction."""
    return extract_keyword_addition(extract_leading_addition(fields))
