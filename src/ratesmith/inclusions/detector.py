"""Detection of "what's included" blocks on a worksheet."""

import logging
import re
from typing import NamedTuple, Optional

from ..classify import ContentClassifier, ListFormat
from ..classify.markers import dominant_format, line_format, strip_list_marker
from ..classify.scoring import combine, flag_bonus, tiered_bonus
from ..config import settings
from ..grid import Worksheet
from .models import DetectionSource, InclusionsDetectionResult, InclusionsSection

logger = logging.getLogger(__name__)

HEADER_KEYWORDS = (
    "inclusions",
    "inclusion",
    "included",
    "includes",
    "package includes",
    "what's included",
    "what is included",
    "included in price",
    "price includes",
    "package contains",
    "contains",
    "features",
    "amenities",
    "services included",
    "included services",
)

# Common inclusion words; a section mentioning them is more believable
INCLUSION_WORDS = (
    "breakfast",
    "wifi",
    "wi-fi",
    "parking",
    "pool",
    "gym",
    "spa",
    "transfer",
    "meal",
    "drink",
    "towel",
    "cleaning",
)

TRAILING_HEADER_WORDS = ("inclusions", "includes", "amenities", "features")

MAX_HEADER_LENGTH = 60
MIN_PATTERN_ITEMS = 3
MIN_SECTION_CONFIDENCE = 0.3
ACCOMMODATION_LOOKBACK = 3
SHORT_ITEM_LENGTH = 10

NUMERIC_ONLY = re.compile(r"^[\d\s.,€£$¥%+\-]+$")
HAS_WORD = re.compile(r"[^\W\d_]{3,}")


class _Candidate(NamedTuple):
    row: int
    col: int
    header_text: Optional[str]
    source: DetectionSource


class InclusionsSectionDetector:
    """Finds inclusions sections, one per column, with format and confidence.

    A section starts under a keyword header such as "What's Included" or, at
    lower confidence, at a run of at least three bulleted or numbered lines.
    Content ends after ``blank_run_terminator`` consecutive blank cells or at
    the next keyword header.
    """

    def __init__(
        self,
        worksheet: Worksheet,
        classifier: Optional[ContentClassifier] = None,
        scan_rows: Optional[int] = None,
        dedup_distance: Optional[int] = None,
        blank_run_terminator: Optional[int] = None,
    ):
        self.worksheet = worksheet
        self.classifier = classifier or ContentClassifier()
        self.scan_rows = scan_rows or settings.inclusion_scan_rows
        self.dedup_distance = (
            settings.section_dedup_distance if dedup_distance is None else dedup_distance
        )
        self.blank_run_terminator = blank_run_terminator or settings.blank_run_terminator
        self.min_length = settings.inclusion_min_length

    def detect_inclusions_sections(self) -> InclusionsDetectionResult:
        """Find every inclusions section, best first."""
        sections = []
        for candidate in self._candidates():
            section = self._analyze(candidate)
            if section is not None and section.confidence > MIN_SECTION_CONFIDENCE:
                sections.append(section)

        sections = self._deduplicate(sections)
        sections.sort(key=lambda s: (-s.confidence, s.start_row, s.start_col))

        by_type: dict[str, InclusionsSection] = {}
        global_section: Optional[InclusionsSection] = None
        for section in sections:
            if section.accommodation_type:
                by_type.setdefault(section.accommodation_type, section)
            elif global_section is None:
                global_section = section

        confidence = 0.0
        if sections:
            confidence = combine(sections[0].confidence, flag_bonus(len(sections) > 1, 0.1))

        logger.info(
            f"Found {len(sections)} inclusions sections in sheet '{self.worksheet.name}'"
        )
        return InclusionsDetectionResult(
            sections=sections,
            by_accommodation_type=by_type,
            global_inclusions=global_section,
            confidence=confidence,
            suggestions=self._suggestions(sections),
        )

    def best_section(self) -> Optional[InclusionsSection]:
        sections = self.detect_inclusions_sections().sections
        return sections[0] if sections else None

    def has_inclusions(self) -> bool:
        return self.detect_inclusions_sections().confidence > MIN_SECTION_CONFIDENCE

    # Candidate discovery

    def _candidates(self) -> list[_Candidate]:
        candidates = []
        for row in range(self.worksheet.row_count):
            for col in range(self.worksheet.col_count):
                text = self.worksheet.text(row, col)
                if not text:
                    continue
                if self.is_header(text):
                    candidates.append(_Candidate(row, col, text, DetectionSource.KEYWORD))
                elif self._starts_marked_run(row, col):
                    candidates.append(_Candidate(row - 1, col, None, DetectionSource.PATTERN))
        return candidates

    def is_header(self, text: str) -> bool:
        """Whether a cell reads like an inclusions heading."""
        if len(text) > MAX_HEADER_LENGTH or line_format(text) is not None:
            return False
        lowered = text.lower().strip()
        if not any(keyword in lowered for keyword in HEADER_KEYWORDS):
            return False
        # "Airport transfers included" is an item, "Hotel inclusions" a heading
        lowered = lowered.rstrip(":").strip()
        return (
            text.rstrip().endswith(":")
            or lowered.startswith(HEADER_KEYWORDS)
            or lowered.endswith(TRAILING_HEADER_WORDS)
        )

    def _starts_marked_run(self, row: int, col: int) -> bool:
        if line_format(self.worksheet.text(row, col)) is None:
            return False
        above = self.worksheet.text(row - 1, col)
        return line_format(above) is None and not self.is_header(above)

    # Section analysis

    def _analyze(self, candidate: _Candidate) -> Optional[InclusionsSection]:
        content = []
        end_row = candidate.row
        blanks = 0
        last_row = min(self.worksheet.row_count, candidate.row + 1 + self.scan_rows)
        for row in range(candidate.row + 1, last_row):
            text = self.worksheet.text(row, candidate.col)
            if not text:
                blanks += 1
                if blanks >= self.blank_run_terminator:
                    break
                continue
            blanks = 0
            if self.is_header(text) and content:
                break
            if candidate.source == DetectionSource.PATTERN and line_format(text) is None:
                break
            if self.is_inclusion_line(text):
                content.append(text)
                end_row = row

        if not content:
            return None
        if candidate.source == DetectionSource.PATTERN and len(content) < MIN_PATTERN_ITEMS:
            return None

        fmt = dominant_format(content)
        return InclusionsSection(
            header_text=candidate.header_text,
            content=content,
            format=fmt,
            accommodation_type=self._accommodation_type(candidate),
            confidence=self._confidence(candidate.source, content, fmt),
            source=candidate.source,
            start_row=candidate.row if candidate.header_text else candidate.row + 1,
            end_row=end_row,
            start_col=candidate.col,
            end_col=candidate.col,
        )

    def is_inclusion_line(self, text: str) -> bool:
        """Whether a line inside a run counts as an inclusion.

        Numeric-only lines, bare month names, bare accommodation names and
        lines shorter than the minimum length are skipped.
        """
        core = strip_list_marker(text)
        if len(core) < self.min_length:
            return False
        if NUMERIC_ONLY.match(core) or not HAS_WORD.search(core):
            return False
        lowered = core.lower().rstrip(".:")
        dictionaries = self.classifier.dictionaries
        if lowered in dictionaries.full_months or lowered in dictionaries.abbreviated_months:
            return False
        match = self.classifier.detect_accommodation_type(lowered)
        if match.is_accommodation and match.type.lower() == lowered:
            return False
        return True

    def _accommodation_type(self, candidate: _Candidate) -> Optional[str]:
        """Accommodation named by the header or by the nearest cell above it."""
        if candidate.header_text:
            match = self.classifier.detect_accommodation_type(candidate.header_text)
            if match.is_accommodation:
                return match.type
        first = candidate.row - 1 if candidate.header_text else candidate.row
        for row in range(first, first - ACCOMMODATION_LOOKBACK, -1):
            text = self.worksheet.text(row, candidate.col)
            if not text:
                continue
            match = self.classifier.detect_accommodation_type(text)
            if match.is_accommodation:
                return match.type
        return None

    @staticmethod
    def _confidence(source: DetectionSource, content: list[str], fmt: ListFormat) -> float:
        average_length = sum(len(item) for item in content) / len(content)
        mentions_inclusions = any(
            word in item.lower() for item in content for word in INCLUSION_WORDS
        )
        return combine(
            0.3,
            0.3 if source == DetectionSource.KEYWORD else 0.1,
            tiered_bonus(len(content), [(5, 0.2), (3, 0.15), (1, 0.1)]),
            flag_bonus(fmt != ListFormat.PLAIN_TEXT, 0.15),
            flag_bonus(average_length > 20, 0.1),
            flag_bonus(mentions_inclusions, 0.1),
        )

    def _deduplicate(self, sections: list[InclusionsSection]) -> list[InclusionsSection]:
        """Drop near-duplicates and overlapping runs, keeping higher confidence."""
        kept: list[InclusionsSection] = []
        for section in sorted(sections, key=lambda s: -s.confidence):
            if not any(self._duplicates(section, other) for other in kept):
                kept.append(section)
        return kept

    def _duplicates(self, section: InclusionsSection, other: InclusionsSection) -> bool:
        """Same header near the same spot, or overlapping rows in one column.

        Side-by-side sections tagged with different accommodation types are
        never duplicates of each other.
        """
        same_header = (section.header_text or "").lower() == (other.header_text or "").lower()
        near = (
            abs(section.start_row - other.start_row) <= self.dedup_distance
            and abs(section.start_col - other.start_col) <= self.dedup_distance
        )
        same_owner = section.accommodation_type == other.accommodation_type
        overlapping = section.start_col == other.start_col and not (
            section.end_row < other.start_row or other.end_row < section.start_row
        )
        return (same_header and near and same_owner) or overlapping

    @staticmethod
    def _suggestions(sections: list[InclusionsSection]) -> list[str]:
        if not sections:
            return [
                "No inclusions sections detected. Add a clearly labeled \"Inclusions\" "
                "or \"What's Included\" section.",
                "Use bullet points or numbered lists to format inclusion items clearly.",
            ]

        suggestions = []
        average = sum(s.confidence for s in sections) / len(sections)
        if average < settings.low_confidence_threshold:
            suggestions.append(
                "Inclusions detection confidence is low. Consider using clearer section "
                "headers like \"Package Includes\" or \"What's Included\"."
            )
        if all(s.format == ListFormat.PLAIN_TEXT for s in sections):
            suggestions.append(
                "Use bullet points (•) or numbered lists (1., 2., 3.) to format inclusions "
                "for better recognition."
            )
        if any(
            len(strip_list_marker(item)) < SHORT_ITEM_LENGTH for s in sections for item in s.content
        ):
            suggestions.append(
                "Some inclusion items are very short. Provide more descriptive inclusion details."
            )
        return suggestions
