"""
String similarity used for street and city matching.

The blended score favours strings that share a long common prefix, which
is how misspelled German street names usually differ from the reference
("Bahnhofstr." vs "Bahnhofstrasse").
"""

from typing import Iterable, Optional

from rapidfuzz.distance import Levenshtein, Prefix

# Weights of the blended score
_LEVENSHTEIN_WEIGHT = 0.3
_PREFIX_WEIGHT = 0.4
_LENGTH_WEIGHT = 0.3

DEFAULT_THRESHOLD = 0.7

_UMLAUT_FOLD = str.maketrans({"ä": "a", "ö": "o", "ü": "u", "ß": "s", "Ä": "A", "Ö": "O", "Ü": "U"})

_SOUNDEX_CODES = {
    **dict.fromkeys("BFPV", "1"),
    **dict.fromkeys("CGJKQSXZ", "2"),
    **dict.fromkeys("DT", "3"),
    "L": "4",
    **dict.fromkeys("MN", "5"),
    "R": "6",
}


def score(a: str, b: str) -> float:
    """
    Similarity of two strings in [0.0, 1.0].

    Weighted sum of normalized Levenshtein similarity (30%), common
    prefix ratio (40%) and length ratio (30%). Only equal strings score 1.0.

    Args:
        a: First string
        b: Second string

    Returns:
        Similarity score
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0

    max_len = max(len(a), len(b))
    min_len = min(len(a), len(b))

    levenshtein_score = 1 - Levenshtein.distance(a, b) / max_len
    prefix_score = Prefix.similarity(a, b) / min_len
    length_score = 1 - abs(len(a) - len(b)) / max_len

    return (
        levenshtein_score * _LEVENSHTEIN_WEIGHT
        + prefix_score * _PREFIX_WEIGHT
        + length_score * _LENGTH_WEIGHT
    )


def best_match(query: str, candidates: Iterable[str]) -> tuple[Optional[str], float]:
    """Return the strictly highest scoring candidate and its score (first seen wins ties)."""
    best: Optional[str] = None
    highest = 0.0
    for candidate in candidates:
        s = score(query, candidate)
        if s > highest:
            highest = s
            best = candidate
    return best, highest


def select_best_match(
    query: str,
    candidates: Iterable[str],
    threshold: float = DEFAULT_THRESHOLD,
) -> Optional[str]:
    """
    Pick the candidate most similar to query.

    Returns the best candidate only if its score exceeds threshold,
    otherwise None.
    """
    best, highest = best_match(query, candidates)
    return best if highest > threshold else None


def soundex(value: str) -> str:
    """
    SOUNDEX code of a name (first letter plus three digits).

    Umlauts and ß are folded to their base letters first; characters
    outside A-Z are skipped. Returns "" for input without letters.
    """
    letters = [c for c in value.translate(_UMLAUT_FOLD).upper() if "A" <= c <= "Z"]
    if not letters:
        return ""

    first = letters[0]
    code = [first]
    previous = _SOUNDEX_CODES.get(first, "")
    for c in letters[1:]:
        digit = _SOUNDEX_CODES.get(c, "")
        if digit and digit != previous:
            code.append(digit)
        # H and W do not separate letters with the same code
        if c not in "HW":
            previous = digit
    return "".join(code)[:4].ljust(4, "0")


def sounds_alike(a: str, b: str) -> bool:
    code = soundex(a)
    return bool(code) and code == soundex(b)
