"""
- Models: Data structures (AddressFields, CorrectionResult, StreetRecord, ...)
- Base classes: Abstract interfaces (Normalizer, ReferenceResolver)
- Normalizers: Street and city name normalization
- Similarity: String scoring for fuzzy street matching
- Splitter / Additions: House number and address addition extraction
- Resolvers: DuckDB reference store
- Pipeline: The ordered correction stages
"""

from .models import (
    AddressFields,
    CorrectionConfig,
    CorrectionEvent,
    CorrectionResult,
    DistrictRecord,
    LocalityRecord,
    LookupResult,
    LookupStatus,
    StreetRecord,
)

from .base import (
    Normalizer,
    ReferenceResolver,
)

from .normalizers import (
    StreetNameNormalizer,
    CityNameNormalizer,
    normalize_street_name,
    normalize_city_name,
    street_name_variants,
)

from .similarity import (
    score,
    select_best_match,
    soundex,
)

from .splitter import (
    split_street_and_number,
    extract_house_number,
)

from .additions import (
    extract_leading_addition,
    extract_keyword_addition,
    extract_additions,
)

from .resolvers import (
    DuckDBReferenceResolver,
)

from .pipeline import (
    CorrectionPipeline,
)

from .validators import (
    is_valid_input,
    is_valid_postal_code,
    parse_address_line,
)

from .corrector import (
    AddressCorrector,
)

__all__ = [
    # Models
    "AddressFields",
    "CorrectionConfig",
    "CorrectionEvent",
    "CorrectionResult",
    "DistrictRecord",
    "LocalityRecord",
    "LookupResult",
    "LookupStatus",
    "StreetRecord",
    # Base classes
    "Normalizer",
    "ReferenceResolver",
    # Normalizers
    "StreetNameNormalizer",
    "CityNameNormalizer",
    "normalize_street_name",
    "normalize_city_name",
    "street_name_variants",
    # Similarity
    "score",
    "select_best_match",
    "soundex",
    # Splitting and extraction
    "split_street_and_number",
    "extract_house_number",
    "extract_leading_addition",
    "extract_keyword_addition",
    "extract_additions",
    # Resolvers
    "DuckDBReferenceResolver",
    # Pipeline
    "CorrectionPipeline",
    # Validation
    "is_valid_input",
    "is_valid_postal_code",
    "parse_address_line",
    # Entry point
    "AddressCorrector",
]
