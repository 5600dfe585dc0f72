"""RateSmith - Pricing and content classification pipeline for partner spreadsheets."""

__version__ = "0.1.0"

from .classify import ContentClassifier
from .grid import Worksheet, load_worksheet
from .inclusions import InclusionsSectionDetector, InclusionsTextProcessor
from .layout import LayoutDetector, MetadataExtractor
from .mapping import ColumnMapper, TabularImporter, TemplateManager
from .pipeline import SheetAnalysis, SheetImportPipeline
from .pricing import PriceValidator, PricingExtractor, PricingNormalizer
from .validation import DataValidationEngine

__all__ = [
    "ContentClassifier",
    "Worksheet",
    "load_worksheet",
    "InclusionsSectionDetector",
    "InclusionsTextProcessor",
    "LayoutDetector",
    "MetadataExtractor",
    "ColumnMapper",
    "TabularImporter",
    "TemplateManager",
    "SheetAnalysis",
    "SheetImportPipeline",
    "PriceValidator",
    "PricingExtractor",
    "PricingNormalizer",
    "DataValidationEngine",
]
