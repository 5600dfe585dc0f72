"""End-to-end analysis of one worksheet."""

import logging
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field

from .classify import ContentClassifier
from .grid import Worksheet
from .inclusions import (
    InclusionsDetectionResult,
    InclusionsProcessingResult,
    InclusionsSectionDetector,
    InclusionsTextProcessor,
)
from .layout import LayoutDetector, LayoutResult, MetadataExtractor, SheetMetadata
from .pricing import (
    NormalizationOptions,
    NormalizationResult,
    PriceValidationOptions,
    PriceValidationResult,
    PriceValidator,
    PricingExtractor,
    PricingMatrix,
    PricingNormalizer,
)

logger = logging.getLogger(__name__)


class SheetAnalysis(BaseModel):
    """Everything learned about a sheet. Stages that found nothing stay None."""

    sheet_name: str
    layout: Optional[LayoutResult] = None
    metadata: Optional[SheetMetadata] = None
    matrix: Optional[PricingMatrix] = None
    normalization: Optional[NormalizationResult] = None
    issues: Optional[PriceValidationResult] = None
    inclusions: Optional[InclusionsDetectionResult] = None
    processed_inclusions: Optional[InclusionsProcessingResult] = None
    suggestions: list[str] = Field(default_factory=list)

    @property
    def has_pricing(self) -> bool:
        return self.normalization is not None and bool(self.normalization.data)


class SheetImportPipeline:
    """Runs layout, metadata, pricing and inclusions detection over a sheet.

    A stage that fails is logged and reported as a suggestion; later stages
    still run on whatever earlier stages produced.
    """

    def __init__(
        self,
        classifier: Optional[ContentClassifier] = None,
        normalization_options: Optional[NormalizationOptions] = None,
        validation_options: Optional[PriceValidationOptions] = None,
    ):
        self.classifier = classifier or ContentClassifier()
        self.normalizer = PricingNormalizer(normalization_options, classifier=self.classifier)
        self.validator = PriceValidator(validation_options, classifier=self.classifier)
        self.processor = InclusionsTextProcessor()

    def analyze(self, worksheet: Worksheet) -> SheetAnalysis:
        """Analyze a worksheet without raising."""
        analysis = SheetAnalysis(sheet_name=worksheet.name)
        if worksheet.is_empty():
            analysis.suggestions.append(f"Sheet '{worksheet.name}' is empty")
            return analysis

        detector = LayoutDetector(worksheet, classifier=self.classifier)
        metadata_extractor = MetadataExtractor(worksheet)

        analysis.layout = self._stage(analysis, "layout detection", detector.detect_layout)
        analysis.metadata = self._stage(
            analysis, "metadata extraction", metadata_extractor.extract_metadata
        )

        extractor = PricingExtractor(
            worksheet,
            classifier=self.classifier,
            layout_detector=detector,
            metadata_extractor=metadata_extractor,
        )
        analysis.matrix = self._stage(analysis, "pricing extraction", extractor.extract_pricing_matrix)
        if analysis.matrix is not None:
            analysis.normalization = self._stage(
                analysis, "normalization", lambda: self.normalizer.normalize_pricing(analysis.matrix)
            )
        if analysis.normalization is not None:
            analysis.issues = self._stage(
                analysis, "price validation", lambda: self.validator.validate(analysis.normalization.data)
            )

        inclusions_detector = InclusionsSectionDetector(worksheet, classifier=self.classifier)
        analysis.inclusions = self._stage(
            analysis, "inclusions detection", inclusions_detector.detect_inclusions_sections
        )
        if analysis.inclusions is not None and analysis.inclusions.sections:
            lines = [line for section in analysis.inclusions.sections for line in section.content]
            analysis.processed_inclusions = self._stage(
                analysis, "inclusions processing", lambda: self.processor.process_inclusions(lines)
            )

        self._collect_suggestions(analysis)
        logger.info(
            f"Analyzed sheet '{worksheet.name}': "
            f"{len(analysis.normalization.data) if analysis.normalization else 0} price entries, "
            f"{len(analysis.inclusions.sections) if analysis.inclusions else 0} inclusions sections"
        )
        return analysis

    def _stage(self, analysis: SheetAnalysis, name: str, run: Callable[[], Any]) -> Any:
        try:
            return run()
        except Exception as e:
            logger.exception(f"Stage '{name}' failed for sheet '{analysis.sheet_name}'")
            analysis.suggestions.append(f"Could not complete {name}: {e}")
            return None

    @staticmethod
    def _collect_suggestions(analysis: SheetAnalysis):
        found = []
        if analysis.layout is not None:
            found.extend(analysis.layout.suggestions)
        if analysis.matrix is None:
            found.append(
                "No pricing data could be extracted. Check that months and prices are "
                "laid out in a single table."
            )
        if analysis.normalization is not None:
            found.extend(analysis.normalization.errors)
            found.extend(analysis.normalization.warnings)
        if analysis.issues is not None:
            found.extend(issue.suggestion for issue in analysis.issues.issues if issue.suggestion)
        if analysis.inclusions is not None:
            found.extend(analysis.inclusions.suggestions)
        if analysis.processed_inclusions is not None:
            found.extend(analysis.processed_inclusions.suggestions)

        for suggestion in found:
            if suggestion not in analysis.suggestions:
                analysis.suggestions.append(suggestion)
