"""Pricing extraction, normalization and validation."""

from .models import (
    UNAVAILABLE,
    AccommodationType,
    CurrencyCheck,
    CurrencyConversion,
    MissingPricePolicy,
    NormalizationError,
    NormalizationOptions,
    NormalizationResult,
    NormalizationSummary,
    NormalizedPriceEntry,
    NumberFormatCheck,
    PriceBounds,
    PriceCell,
    PriceRounding,
    PriceValidationOptions,
    PriceValidationResult,
    PricingMatrix,
    PricingMetadata,
    ReasonablenessCheck,
    Severity,
    ValidationIssue,
)
from .extractor import PricingExtractor
from .normalizer import PricingNormalizer, normalize_pricing_matrix, round_half_up
from .validator import PriceValidator

__all__ = [
    "UNAVAILABLE",
    "AccommodationType",
    "CurrencyCheck",
    "CurrencyConversion",
    "MissingPricePolicy",
    "NormalizationError",
    "NormalizationOptions",
    "NormalizationResult",
    "NormalizationSummary",
    "NormalizedPriceEntry",
    "NumberFormatCheck",
    "PriceBounds",
    "PriceCell",
    "PriceRounding",
    "PriceValidationOptions",
    "PriceValidationResult",
    "PricingMatrix",
    "PricingMetadata",
    "ReasonablenessCheck",
    "Severity",
    "ValidationIssue",
    "PricingExtractor",
    "PricingNormalizer",
    "normalize_pricing_matrix",
    "round_half_up",
    "PriceValidator",
]
