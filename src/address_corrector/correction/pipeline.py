"""
The address correction pipeline.

Runs the ordered correction stages over one private copy of the input
fields and scores how much had to be changed or guessed:

1. Addition extraction (venue keywords, names in front of the street)
2. Normalization of street and city spelling
3. Street existence check, recovering the street from other fields
4. House number split
5. Rename resolution and fuzzy street correction
6. City correction (optional)
7. Postal code / city validation
8. District resolution
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Mapping, Optional

from ..utils.pipeline_mixin import PipelineMixin
from .additions import extract_keyword_addition, extract_leading_addition
from .base import ReferenceResolver
from .models import AddressFields, CorrectionConfig, CorrectionEvent, CorrectionResult
from .normalizers import (
    CityNameNormalizer,
    StreetNameNormalizer,
    canonical_street_key,
    normalize_street_name,
    street_name_variants,
)
from .similarity import best_match, score
from .splitter import extract_house_number, is_house_number, split_street_and_number, tidy_fragment


@dataclass
class CorrectionRun:
    """State of one pipeline run: the fields being corrected and the score so far."""
    fields: AddressFields
    original_street: Optional[str] = None
    confidence: float = 1.0
    events: List[CorrectionEvent] = field(default_factory=list)
    known_streets: Optional[List[str]] = None

    def adjust(self, stage: str, delta: float, description: str) -> None:
        """Apply a confidence delta, never going below 0.0."""
        self.confidence = max(0.0, self.confidence + delta)
        self.events.append(CorrectionEvent(stage, description, delta))

    def note(self, stage: str, description: str) -> None:
        self.events.append(CorrectionEvent(stage, description))


class CorrectionPipeline(PipelineMixin):
    """
    Corrects a set of German address fields against reference data.

    The resolver, config and logger are passed in explicitly; the pipeline
    keeps no state between runs, so one instance can serve many requests.
    """

    STAGE_LABEL = 'Correction'

    def __init__(
        self,
        resolver: ReferenceResolver,
        config: Optional[CorrectionConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            resolver: Reference data lookups
            config: Thresholds and confidence deltas (defaults to CorrectionConfig())
            logger: Diagnostics sink (defaults to this module's logger)
        """
        self.resolver = resolver
        self.config = config or CorrectionConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.street_normalizer = StreetNameNormalizer()
        self.city_normalizer = CityNameNormalizer()

    def run(self, fields: AddressFields | Mapping[str, Any], progress: bool = False) -> CorrectionResult:
        """
        Correct one address.

        Args:
            fields: AddressFields or a plain mapping of field names to values;
                the input is never modified
            progress: Print a coloured line per stage

        Returns:
            CorrectionResult with the corrected fields and confidence score
        """
        if isinstance(fields, AddressFields):
            fields = fields.copy()
        else:
            fields = AddressFields.from_mapping(fields)

        run = CorrectionRun(fields=fields, original_street=fields.street)
        run = self._execute_pipeline(run, progress=progress)

        confidence = run.confidence
        if self.config.clamp_confidence:
            confidence = min(1.0, confidence)

        return CorrectionResult(fields=run.fields, confidence_score=confidence, events=run.events)

    def _load_pipeline(self) -> Iterable[tuple[str, Callable, dict[str, Any]]]:
        return [
            ('Addition Extraction', self._extract_additions, {}),
            ('Normalization', self._normalize, {}),
            ('Street Existence', self._check_street_exists, {}),
            ('House Number Split', self._split_house_number, {}),
            ('Rename Resolution', self._resolve_street_name, {}),
            ('City Correction', self._correct_city, {}),
            ('Postal Code Validation', self._validate_postal_code, {}),
            ('District Resolution', self._resolve_district, {}),
        ]

    # --- Helpers -------------------------------------------------------------

    def _known_streets(self, run: CorrectionRun) -> List[str]:
        """Reference streets of the run's postal code, fetched once per run."""
        if run.known_streets is None:
            result = self.resolver.find_streets_by_postal_code(run.fields.postal_code or "")
            if result.failed:
                self.logger.warning(f"Street lookup for {run.fields.postal_code} failed: {result.error}")
            run.known_streets = result.value_or([])
        return run.known_streets

    @staticmethod
    def _canonical_match(street: str, streets: Iterable[str]) -> Optional[str]:
        """Reference street spelled like street once both are in canonical form."""
        key = canonical_street_key(street)
        for known in streets:
            if canonical_street_key(known) == key:
                return known
        return None

    @staticmethod
    def _strip_street(text: str, street: str) -> Optional[str]:
        """Text with the first occurrence of street removed (canonical comparison), None if absent."""
        text = re.sub(r"\s+", " ", normalize_street_name(text)).strip()
        key = canonical_street_key(street)
        idx = text.lower().find(key)
        if idx < 0:
            return None
        return text[:idx] + text[idx + len(key):]

    # --- Stages --------------------------------------------------------------

    def _extract_additions(self, run: CorrectionRun) -> CorrectionRun:
        extract_leading_addition(run.fields)
        extract_keyword_addition(run.fields)
        return run

    def _normalize(self, run: CorrectionRun) -> CorrectionRun:
        f = run.fields
        if f.street:
            f.set("street", self.street_normalizer.normalize(f.street, f.postal_code))
        if f.city:
            f.set("city", self.city_normalizer.normalize(f.city, f.postal_code))
        return run

    def _check_street_exists(self, run: CorrectionRun) -> CorrectionRun:
        stage = 'street_existence'
        f = run.fields

        # Checked as given: a house number still attached to the street fails here
        if f.street and f.postal_code:
            exists = self.resolver.street_exists(f.street, f.postal_code)
            if exists.value_or(False) or self._canonical_match(f.street, self._known_streets(run)):
                return run

        run.adjust(
            stage,
            -self.config.street_not_found_penalty,
            f"Street '{f.street}' not found for postal code {f.postal_code}",
        )
        if not f.postal_code:
            return run

        streets = self._known_streets(run)
        if not streets:
            return run
        if f.street and self._recover_by_best_match(run, streets):
            return run
        self._recover_from_other_fields(run, streets)
        return run

    def _recover_by_best_match(self, run: CorrectionRun, streets: List[str]) -> bool:
        """Replace the street with the closest reference street, keeping any house number."""
        f = run.fields
        keys: dict[str, str] = {}
        for known in streets:
            keys.setdefault(canonical_street_key(known), known)

        matched: Optional[str] = None
        highest = 0.0
        for variant in street_name_variants(f.street):
            key, s = best_match(canonical_street_key(variant), keys)
            if key is not None and s > highest:
                matched, highest = key, s

        if matched is None or highest < self.config.similarity_threshold:
            return False

        known = keys[matched]
        remainder = self._strip_street(f.street, known)
        if remainder is None:
            remainder = split_street_and_number(f.street)[1]
        remainder = tidy_fragment(remainder)

        before = f.street
        f.set("street", normalize_street_name(known))
        if remainder:
            if is_house_number(remainder):
                f.set("street_number", remainder)
            else:
                number, rest = extract_house_number(remainder)
                if number:
                    f.set("street_number", number)
                f.append_addition(rest)

        run.note('street_existence', f"Street '{before}' matched reference street '{known}' ({highest:.2f})")
        self.logger.info(f"Street '{before}' recovered as '{f.street}'")
        return True

    def _field_matches(self, candidate_key: str, known_key: str) -> bool:
        if self.config.field_recovery_mode == "exact":
            return candidate_key == known_key
        return bool(known_key) and known_key in candidate_key

    def _recover_from_other_fields(self, run: CorrectionRun, streets: List[str]) -> bool:
        """Look for a reference street in company, then address_addition, and swap it in."""
        f = run.fields
        for source in ("company", "address_addition"):
            value = getattr(f, source)
            if not value:
                continue
            candidate, number = split_street_and_number(value)
            candidate_key = canonical_street_key(candidate)
            for known in streets:
                if self._field_matches(candidate_key, canonical_street_key(known)):
                    self._swap_street(run, source, value, known, number)
                    return True
        return False

    def _swap_street(self, run: CorrectionRun, source: str, value: str, known: str, number: str) -> None:
        f = run.fields
        old_street = f.street

        leftover = self._strip_street(value, known) or ""
        if number:
            leftover = re.sub(rf"(?<!\w){re.escape(number)}(?!\w)", "", leftover, count=1)
        leftover = tidy_fragment(leftover)

        f.set("street", normalize_street_name(known))
        if old_street and is_house_number(old_street):
            if not f.street_number:
                f.set("street_number", old_street)
            old_street = None

        if source == "company":
            f.set("company", " ".join(p for p in (old_street, leftover) if p))
        else:
            f.set("address_addition", leftover)
            f.append_addition(old_street)

        if number and not f.street_number:
            f.set("street_number", number)

        run.note('street_existence', f"Street '{known}' taken from {source}")
        self.logger.info(f"Street '{known}' recovered from {source} (previous street: '{old_street}')")

    def _split_house_number(self, run: CorrectionRun) -> CorrectionRun:
        f = run.fields
        if f.street:
            street, number = split_street_and_number(f.street)
            f.set("street", street)
            if number:
                f.set("street_number", number)

        if not f.street_number and f.address_addition:
            number, rest = extract_house_number(f.address_addition)
            if number:
                f.set("street_number", number)
                f.set("address_addition", rest)
                run.note('house_number', f"House number '{number}' taken from address_addition")
        return run

    def _resolve_street_name(self, run: CorrectionRun) -> CorrectionRun:
        stage = 'street_correction'
        f = run.fields
        if not (f.postal_code and f.street):
            return run

        details = self.resolver.get_streets_with_details(f.postal_code)
        if details.failed:
            self.logger.warning(f"Street history lookup for {f.postal_code} failed: {details.error}")

        key = canonical_street_key(f.street)
        for record in details.value_or([]):
            if not record.old_name:
                continue
            old_key = canonical_street_key(record.old_name)
            if old_key == key and old_key != canonical_street_key(record.current_name):
                before = f.street
                f.set("street", normalize_street_name(record.current_name))
                f.set("original_street", run.original_street)
                run.adjust(stage, self.config.rename_bonus, f"Renamed street '{before}' replaced by '{f.street}'")
                self.logger.info(f"Street renamed: '{before}' -> '{f.street}'")
                return run

        streets = self._known_streets(run)
        if not streets or self._canonical_match(f.street, streets):
            return run

        candidates = list(dict.fromkeys(self.street_normalizer.normalize_batch(streets, f.postal_code)))
        corrected = self.resolver.find_similar_street(f.street, candidates, self.config.similarity_threshold)
        if corrected and corrected != f.street:
            before = f.street
            similarity = score(before, corrected)
            f.set("street", corrected)
            run.adjust(
                stage,
                -(1.0 - similarity) * self.config.fuzzy_penalty_weight,
                f"Street '{before}' corrected to '{corrected}' ({similarity:.2f})",
            )
            self.logger.info(f"Street corrected: '{before}' -> '{corrected}'")
        return run

    def _correct_city(self, run: CorrectionRun) -> CorrectionRun:
        f = run.fields
        if not (self.config.correct_city and f.city and f.postal_code):
            return run

        result = self.resolver.find_closest_city(f.city, f.postal_code)
        if result.failed:
            self.logger.warning(f"City lookup for '{f.city}' failed: {result.error}")
        corrected = result.value_or(f.city)
        if corrected != f.city:
            before = f.city
            similarity = score(before, corrected)
            f.set("city", corrected)
            run.adjust(
                'city_correction',
                -(1.0 - similarity) * self.config.fuzzy_penalty_weight,
                f"City '{before}' corrected to '{corrected}' ({similarity:.2f})",
            )
            self.logger.info(f"City corrected: '{before}' -> '{corrected}'")
        return run

    def _validate_postal_code(self, run: CorrectionRun) -> CorrectionRun:
        f = run.fields
        if not (f.postal_code and f.city):
            return run

        result = self.resolver.validate_postal_code(f.postal_code, f.city)
        if result.failed:
            self.logger.warning(f"Postal code validation for {f.postal_code} failed: {result.error}")
        if not result.value_or(False):
            self.logger.warning(f"Postal code {f.postal_code} does not match city '{f.city}'")
            run.adjust(
                'postal_code_validation',
                -self.config.postal_code_mismatch_penalty,
                f"Postal code {f.postal_code} does not match city '{f.city}'",
            )
        return run

    def _resolve_district(self, run: CorrectionRun) -> CorrectionRun:
        f = run.fields
        if not (f.postal_code and f.city):
            return run

        result = self.resolver.find_city_district(f.city, f.postal_code, f.street)
        if result.failed:
            self.logger.warning(f"District lookup for {f.postal_code} failed: {result.error}")
        district = result.value_or(None)
        if district:
            f.set("district", district)
        else:
            run.adjust(
                'district_resolution',
                -self.config.district_missing_penalty,
                f"No district found for {f.postal_code} {f.city}",
            )
        return run
