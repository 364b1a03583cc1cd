"""
Input checks and parsing for single-line addresses.
"""

import re
from typing import Any

from ..utils.errors import InvalidAddressInput
from .models import AddressFields

MIN_INPUT_LENGTH = 5

_RE_POSTAL_CODE = re.compile(r"^[0-9]{5}$")
_RE_POSTAL_CODE_CITY = re.compile(r"(?<!\d)(\d{5})(?!\d)\s*(.*)$")


def is_valid_input(address: Any) -> bool:
    """A raw address line must be a string of at least MIN_INPUT_LENGTH characters."""
    return isinstance(address, str) and len(address.strip()) >= MIN_INPUT_LENGTH


def is_valid_postal_code(postal_code: Any) -> bool:
    """German postal codes are exactly five digits."""
    return isinstance(postal_code, str) and bool(_RE_POSTAL_CODE.match(postal_code.strip()))


def parse_address_line(line: Any) -> AddressFields:
    """
    Split a one-line address into fields.

    Comma-separated parts are read as "[addition, ...] street, PLZ city";
    the comma before the postal code is optional
    ("Hauptstr. 5 10115 Berlin").

    Raises:
        InvalidAddressInput: If the line is too short or has no postal code
    """
    if not is_valid_input(line):
        raise InvalidAddressInput(line, f"expected a string of at least {MIN_INPUT_LENGTH} characters")

    parts = [p.strip() for p in line.split(",") if p.strip()]

    for i in range(len(parts) - 1, -1, -1):
        match = _RE_POSTAL_CODE_CITY.search(parts[i])
        if match:
            break
    else:
        raise InvalidAddressInput(line, "no 5-digit postal code found")

    postal_code = match.group(1)
    city = match.group(2).strip()
    trailing = parts[i + 1:]
    if not city and trailing:
        city = trailing.pop(0)

    leading = parts[:i]
    before = parts[i][:match.start()].strip()
    if before:
        leading.append(before)

    street = leading.pop() if leading else None
    fields = AddressFields(street=street, postal_code=postal_code, city=city)
    for fragment in leading + trailing:
        fields.append_addition(fragment)
    return fields
