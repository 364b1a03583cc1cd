"""Correction of German postal addresses against reference street and locality data."""

from .correction import AddressCorrector, AddressFields, CorrectionResult, CorrectionPipeline

__all__ = ["AddressCorrector", "AddressFields", "CorrectionResult", "CorrectionPipeline"]
