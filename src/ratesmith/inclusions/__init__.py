"""Inclusions section detection and inclusion text processing."""

from .models import (
    DetectionSource,
    DisplayStyle,
    Emphasis,
    InclusionItem,
    InclusionsDetectionResult,
    InclusionsProcessingResult,
    InclusionsSection,
)
from .detector import InclusionsSectionDetector
from .processor import InclusionsTextProcessor, clean_text

__all__ = [
    "DetectionSource",
    "DisplayStyle",
    "Emphasis",
    "InclusionItem",
    "InclusionsDetectionResult",
    "InclusionsProcessingResult",
    "InclusionsSection",
    "InclusionsSectionDetector",
    "InclusionsTextProcessor",
    "clean_text",
]
