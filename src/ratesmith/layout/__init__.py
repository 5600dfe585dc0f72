"""Sheet layout and metadata detection."""

from .models import (
    CurrencyDetection,
    InclusionsRegion,
    LayoutPattern,
    LayoutResult,
    LayoutType,
    PricingSection,
    ResortName,
    SheetMetadata,
    SpecialPeriod,
    ValidityPeriod,
)
from .detector import LayoutDetector
from .metadata import MetadataExtractor

__all__ = [
    "CurrencyDetection",
    "InclusionsRegion",
    "LayoutPattern",
    "LayoutResult",
    "LayoutType",
    "PricingSection",
    "ResortName",
    "SheetMetadata",
    "SpecialPeriod",
    "ValidityPeriod",
    "LayoutDetector",
    "MetadataExtractor",
]
