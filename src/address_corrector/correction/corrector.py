"""
Entry point for correcting addresses, either as fields or as one line.
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional

from .base import ReferenceResolver
from .models import AddressFields, CorrectionConfig, CorrectionResult
from .pipeline import CorrectionPipeline
from .resolvers import DuckDBReferenceResolver
from .validators import parse_address_line


class AddressCorrector:
    """
    Corrects German addresses against a reference store.

    Usage:
        corrector = AddressCorrector.from_settings()
        result = corrector.correct_address_components({
            "street": "Hauptstr 1", "postal_code": "10115", "city": "Berlin-Mitte",
        })
        result.fields.street, result.confidence_score
    """

    def __init__(
        self,
        resolver: ReferenceResolver,
        config: Optional[CorrectionConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.resolver = resolver
        self.pipeline = CorrectionPipeline(resolver, config=config, logger=logger)

    @classmethod
    def from_settings(cls, settings: Any = None, logger: Optional[logging.Logger] = None) -> "AddressCorrector":
        """Open the reference database named in settings (read-only) and build a corrector."""
        if settings is None:
            from ..settings import settings
        resolver = DuckDBReferenceResolver.from_path(settings.ddb_path, read_only=True)
        return cls(resolver, config=CorrectionConfig.from_settings(settings), logger=logger)

    def correct_address_components(
        self,
        fields: AddressFields | Mapping[str, Any],
        progress: bool = False,
    ) -> CorrectionResult:
        """Correct a set of address fields; missing fields are allowed."""
        return self.pipeline.run(fields, progress=progress)

    def correct_address_line(self, line: str, progress: bool = False) -> CorrectionResult:
        """
        Parse and correct a one-line address such as "Hauptstr 1, 10115 Berlin".

        Raises:
            InvalidAddressInput: If the line is empty, too short or has no postal code
        """
        return self.pipeline.run(parse_address_line(line), progress=progress)

    def correct_batch(self, records: Iterable[Mapping[str, Any]]) -> List[CorrectionResult]:
        return [self.pipeline.run(record) for record in records]
