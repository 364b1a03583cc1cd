"""
Core data models for address correction.

AddressFields is the mutable record a single correction run works on.
Reference records are frozen pydantic models validated from the
reference store; LookupResult is the contract every resolver call
returns instead of raising.
"""

from dataclasses import dataclass, field, fields as dataclass_fields, replace
from enum import StrEnum
from typing import Any, Generic, Mapping, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, field_validator

T = TypeVar("T")


def _clean(value: Any) -> Optional[str]:
    """Coerce a raw field value to a string, mapping blank values to None."""
    if value is None:
        return None
    text = str(value)
    if not text.strip():
        return None
    return text


def strip_postal_code(postal_code: Any) -> str:
    """Postal codes are compared without leading zeros ("01067" == "1067")."""
    return str(postal_code or "").strip().lstrip("0")


@dataclass
class AddressFields:
    """
    The set of address fields a correction run reads and rewrites.

    None means unset. Empty and whitespace-only strings are stored as
    None, so "not given" and "given but empty" behave the same. Any other
    string, including "0", is a set value.
    """
    company: Optional[str] = None
    street: Optional[str] = None
    street_number: Optional[str] = None
    address_addition: Optional[str] = None
    postal_code: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    original_street: Optional[str] = None

    def __post_init__(self):
        for f in dataclass_fields(self):
            setattr(self, f.name, _clean(getattr(self, f.name)))

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in dataclass_fields(cls))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AddressFields":
        """Build from a loose mapping; unknown keys are ignored, missing keys allowed."""
        names = cls.field_names()
        return cls(**{k: v for k, v in data.items() if k in names})

    def is_set(self, name: str) -> bool:
        return getattr(self, name) is not None

    def set(self, name: str, value: Any) -> None:
        if name not in self.field_names():
            raise AttributeError(f"Unknown address field '{name}'")
        setattr(self, name, _clean(value))

    def append_addition(self, fragment: Optional[str]) -> None:
        """Comma-append a fragment to address_addition; blank fragments are ignored."""
        fragment = _clean(fragment)
        if fragment is None:
            return
        fragment = fragment.strip()
        if self.address_addition:
            self.address_addition = f"{self.address_addition}, {fragment}"
        else:
            self.address_addition = fragment

    def copy(self) -> "AddressFields":
        return replace(self)

    def format_address(self) -> str:
        """Single-line postal form: "Street Number, PLZ City"."""
        address = ""
        if self.street:
            address += self.street
            if self.street_number:
                address += f" {self.street_number}"
        if self.postal_code or self.city:
            place = " ".join(p for p in (self.postal_code, self.city) if p)
            address = f"{address}, {place}" if address else place
        return address

    def to_dict(self) -> dict[str, Optional[str]]:
        return {name: getattr(self, name) for name in self.field_names()}


@dataclass(frozen=True)
class CorrectionEvent:
    """One correction or confidence adjustment made by a pipeline stage."""
    stage: str
    description: str
    delta: float = 0.0


@dataclass(frozen=True)
class CorrectionResult:
    """Corrected fields plus the confidence the pipeline has in them."""
    fields: AddressFields
    confidence_score: float = 1.0
    events: list[CorrectionEvent] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = self.fields.to_dict()
        data["confidence_score"] = self.confidence_score
        return data


class LookupStatus(StrEnum):
    """Outcome of a reference lookup."""
    OK = "ok"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True)
class LookupResult(Generic[T]):
    """
    Value returned by every ReferenceResolver query.

    Failures travel as data (status ERROR plus a message) so the pipeline
    can degrade a stage without exception handling.
    """
    status: LookupStatus
    value: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def found(cls, value: T) -> "LookupResult[T]":
        return cls(LookupStatus.OK, value)

    @classmethod
    def not_found(cls) -> "LookupResult[T]":
        return cls(LookupStatus.NOT_FOUND)

    @classmethod
    def failure(cls, error: str) -> "LookupResult[T]":
        return cls(LookupStatus.ERROR, error=error)

    @property
    def ok(self) -> bool:
        return self.status is LookupStatus.OK

    @property
    def failed(self) -> bool:
        return self.status is LookupStatus.ERROR

    def value_or(self, default: T) -> T:
        if self.ok and self.value is not None:
            return self.value
        return default


class _ReferenceRecord(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @field_validator("postal_code", mode="before", check_fields=False)
    @classmethod
    def _strip_leading_zeros(cls, value: Any) -> str:
        return strip_postal_code(value)


class StreetRecord(_ReferenceRecord):
    """A street of a postal code, with the name it had before a rename."""
    postal_code: str
    current_name: str
    old_name: Optional[str] = None
    version: int = 0
    district_key: Optional[str] = None

    @field_validator("old_name", "district_key", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Optional[str]:
        return _clean(value)

    @property
    def was_renamed(self) -> bool:
        return bool(self.old_name) and self.old_name != self.current_name


class LocalityRecord(_ReferenceRecord):
    postal_code: str
    name: str


class DistrictRecord(_ReferenceRecord):
    district_key: str
    postal_code: str
    name: str
    version: int = 0
    status: str = "A"


@dataclass
class CorrectionConfig:
    """Tunables of a correction run."""
    similarity_threshold: float = 0.7
    field_recovery_mode: str = "contains"  # "contains" or "exact"
    clamp_confidence: bool = False
    correct_city: bool = False

    # Confidence deltas
    street_not_found_penalty: float = 0.1
    rename_bonus: float = 0.1
    fuzzy_penalty_weight: float = 0.3
    postal_code_mismatch_penalty: float = 0.2
    district_missing_penalty: float = 0.1

    def __post_init__(self):
        if self.field_recovery_mode not in ("contains", "exact"):
            raise ValueError(
                f"field_recovery_mode must be 'contains' or 'exact', got '{self.field_recovery_mode}'"
            )

    @classmethod
    def from_settings(cls, settings: Any = None, **overrides: Any) -> "CorrectionConfig":
        """Create a config from application settings, with optional overrides."""
        if settings is None:
            from ..settings import settings
        values: dict[str, Any] = {
            "similarity_threshold": settings.similarity_threshold,
            "field_recovery_mode": settings.field_recovery_mode,
            "clamp_confidence": settings.clamp_confidence,
            "correct_city": settings.correct_city,
        }
        values.update(overrides)
        return cls(**values)
