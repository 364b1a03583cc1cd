"""
Interfaces the correction pipeline is written against.

A Normalizer rewrites one address field into its canonical spelling; a
ReferenceResolver answers reference-data questions as LookupResult values.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Sequence, TypeVar

from .models import LookupResult, StreetRecord
from .similarity import DEFAULT_THRESHOLD, select_best_match

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Normalizer(ABC):
    """Rewrites an address field value into its canonical spelling."""

    @abstractmethod
    def normalize(self, value: str, context: Optional[str] = None) -> str:
        """
        Canonical form of value; "" for an empty value.

        Args:
            value: Raw field value
            context: Postal code the value belongs to, where known
        """
        pass

    def normalize_batch(self, values: Sequence[str], context: Optional[str] = None) -> List[str]:
        return [self.normalize(v, context) for v in values]


class ReferenceResolver(ABC):
    """
    Abstract base for reference-data lookups.

    The correction pipeline only talks to this interface. Public methods
    never raise: subclasses implement the protected ``_query_*`` methods,
    and any exception they raise is logged and returned as a
    ``LookupResult`` with status ERROR. Implementations must be safe for
    concurrent read-only use.
    """

    def _lookup(self, name: str, query: Callable[[], T], empty: Callable[[T], bool]) -> LookupResult[T]:
        try:
            value = query()
        except Exception as e:
            logger.warning(f"Reference lookup '{name}' failed: {e}")
            return LookupResult.failure(f"{type(e).__name__}: {e}")
        if empty(value):
            return LookupResult.not_found()
        return LookupResult.found(value)

    # --- Public contract -----------------------------------------------------

    def find_closest_city(self, city_name: str, postal_code: str) -> LookupResult[str]:
        """
        Best matching city name for a postal code.

        Falls back to the input unchanged when nothing matches, so an OK
        result always carries a name.
        """
        return self._lookup(
            "find_closest_city",
            lambda: self._query_closest_city(city_name, postal_code) or city_name,
            lambda v: not v,
        )

    def validate_postal_code(self, postal_code: str, city: str) -> LookupResult[bool]:
        """Whether the postal code belongs to the city (value False if not)."""
        return self._lookup(
            "validate_postal_code",
            lambda: bool(self._query_validate_postal_code(postal_code, city)),
            lambda v: False,
        )

    def find_city_district(
        self,
        city: str,
        postal_code: str,
        street: Optional[str] = None,
    ) -> LookupResult[str]:
        """District (Ortsteil) for a postal code, preferring the street's own district."""
        return self._lookup(
            "find_city_district",
            lambda: self._query_city_district(city, postal_code, street),
            lambda v: not v,
        )

    def find_streets_by_postal_code(self, postal_code: str) -> LookupResult[List[str]]:
        """Current street names of a postal code."""
        return self._lookup(
            "find_streets_by_postal_code",
            lambda: list(self._query_streets_by_postal_code(postal_code)),
            lambda v: not v,
        )

    def get_streets_with_details(self, postal_code: str) -> LookupResult[List[StreetRecord]]:
        """Street records of a postal code, including former names."""
        return self._lookup(
            "get_streets_with_details",
            lambda: list(self._query_streets_with_details(postal_code)),
            lambda v: not v,
        )

    def street_exists(self, street_name: str, postal_code: str) -> LookupResult[bool]:
        """Case-insensitive exact match of street_name among the postal code's streets."""
        streets = self.find_streets_by_postal_code(postal_code)
        if streets.failed:
            return LookupResult.failure(streets.error or "street lookup failed")
        wanted = (street_name or "").lower()
        return LookupResult.found(any(s.lower() == wanted for s in streets.value_or([])))

    def find_similar_street(
        self,
        street_name: str,
        candidates: Sequence[str],
        threshold: float = DEFAULT_THRESHOLD,
    ) -> str:
        """Best candidate scoring above threshold, or street_name itself."""
        if not candidates:
            return street_name
        return select_best_match(street_name, candidates, threshold) or street_name

    # --- Backend queries -----------------------------------------------------

    @abstractmethod
    def _query_closest_city(self, city_name: str, postal_code: str) -> Optional[str]:
        pass

    @abstractmethod
    def _query_validate_postal_code(self, postal_code: str, city: str) -> bool:
        pass

    @abstractmethod
    def _query_city_district(self, city: str, postal_code: str, street: Optional[str]) -> Optional[str]:
        pass

    @abstractmethod
    def _query_streets_by_postal_code(self, postal_code: str) -> Sequence[str]:
        pass

    @abstractmethod
    def _query_streets_with_details(self, postal_code: str) -> Sequence[StreetRecord]:
        pass
