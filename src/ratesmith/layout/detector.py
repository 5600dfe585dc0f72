"""Sheet layout detection."""

import logging
import re
from typing import Optional

from ..classify import ContentClassifier, ContentType, ListFormat
from ..classify.markers import dominant_format, line_format
from ..classify.scoring import combine, count_bonus, flag_bonus
from ..config import settings
from ..grid import Worksheet
from .models import InclusionsRegion, LayoutPattern, LayoutResult, LayoutType, PricingSection

logger = logging.getLogger(__name__)

# Relative importance of each archetype in the overall confidence
LAYOUT_WEIGHTS = {
    LayoutType.MONTHS_ROWS: 0.4,
    LayoutType.MONTHS_COLUMNS: 0.4,
    LayoutType.PRICING_MATRIX: 0.3,
    LayoutType.INCLUSIONS_LIST: 0.2,
}

PRICING_LAYOUTS = (LayoutType.MONTHS_ROWS, LayoutType.MONTHS_COLUMNS, LayoutType.PRICING_MATRIX)


class LayoutDetector:
    """Detects months-in-rows, months-in-columns, pricing-matrix and inclusions layouts.

    Each archetype is scored independently by running the content classifier
    over the sheet. The best-scoring archetype is the primary layout; other
    archetypes above ``min_secondary_confidence`` are reported as secondary,
    since one sheet often carries both a price grid and an inclusions list.
    """

    INCLUSION_KEYWORDS = (
        "inclusions",
        "included",
        "includes",
        "package includes",
        "what's included",
        "what is included",
        "package contains",
    )

    NIGHTS_HEADER = re.compile(r"(\d+)\s*(?:nights?|n)\b", re.IGNORECASE)
    PAX_HEADER = re.compile(r"(\d+)\s*(?:pax|people|persons?|p)\b", re.IGNORECASE)

    MONTH_HEADER_ROWS = 5

    def __init__(
        self,
        worksheet: Worksheet,
        classifier: Optional[ContentClassifier] = None,
        scan_rows: Optional[int] = None,
        scan_cols: Optional[int] = None,
        min_secondary_confidence: Optional[float] = None,
        blank_run_terminator: Optional[int] = None,
    ):
        self.worksheet = worksheet
        self.classifier = classifier or ContentClassifier()
        self.scan_rows = scan_rows or settings.layout_scan_rows
        self.scan_cols = scan_cols or settings.layout_scan_cols
        self.min_secondary_confidence = (
            settings.min_secondary_confidence
            if min_secondary_confidence is None
            else min_secondary_confidence
        )
        self.blank_run_terminator = blank_run_terminator or settings.blank_run_terminator
        self._patterns: Optional[list[LayoutPattern]] = None
        self._tokens: dict[tuple[int, int], ContentType] = {}

    # Public API

    def detect_layout(self) -> LayoutResult:
        """Score all archetypes and pick the primary and secondary layouts."""
        patterns = self._all_patterns()
        if not patterns:
            logger.info(f"No layout detected in sheet '{self.worksheet.name}'")
            return LayoutResult(suggestions=self._suggestions(patterns))

        # Stable sort keeps declaration order on ties
        ranked = sorted(patterns, key=lambda p: -p.confidence)
        primary = ranked[0]
        secondary = [p for p in ranked[1:] if p.confidence >= self.min_secondary_confidence]

        result = LayoutResult(
            primary_layout=primary,
            secondary_layouts=secondary,
            suggestions=self._suggestions(ranked),
            confidence=self._overall_confidence(ranked),
        )
        logger.info(
            f"Sheet '{self.worksheet.name}': primary layout {primary.type.value} "
            f"({primary.confidence:.2f}), {len(secondary)} secondary"
        )
        return result

    def find_pricing_section(self) -> Optional[PricingSection]:
        """Locate the pricing block, or None when the sheet has no prices."""
        candidates = [p for p in self._ranked() if p.type in PRICING_LAYOUTS]
        if not candidates:
            return None
        pattern = candidates[0]

        if pattern.type == LayoutType.PRICING_MATRIX:
            section = self._section_from_matrix(pattern)
        else:
            section = PricingSection(
                orientation=pattern.type,
                header_row=pattern.metadata["header_row"],
                label_col=pattern.metadata["label_col"],
                start_row=pattern.start_row,
                end_row=pattern.end_row,
                start_col=pattern.start_col,
                end_col=pattern.end_col,
                accommodation_types=pattern.metadata.get("accommodation_types", []),
            )

        headers = self._section_headers(section)
        section.nights_options = self._header_numbers(headers, self.NIGHTS_HEADER)
        section.pax_options = self._header_numbers(headers, self.PAX_HEADER)
        return section

    def find_inclusions_section(self) -> Optional[InclusionsRegion]:
        """Locate the best inclusions block, or None."""
        candidates = [p for p in self._ranked() if p.type == LayoutType.INCLUSIONS_LIST]
        if not candidates:
            return None
        pattern = candidates[0]
        return InclusionsRegion(
            start_row=pattern.start_row,
            end_row=pattern.end_row,
            start_col=pattern.start_col,
            end_col=pattern.end_col,
            header_text=pattern.metadata.get("header_text"),
            content=pattern.metadata.get("items", []),
            format=ListFormat(pattern.data_pattern),
        )

    # Archetype scoring

    def _all_patterns(self) -> list[LayoutPattern]:
        if self._patterns is None:
            patterns = []
            for finder in (
                self._detect_months_rows,
                self._detect_months_columns,
                self._detect_pricing_matrix,
                self._detect_inclusions_list,
            ):
                pattern = finder()
                if pattern is not None:
                    patterns.append(pattern)
            self._patterns = patterns
        return self._patterns

    def _ranked(self) -> list[LayoutPattern]:
        return sorted(self._all_patterns(), key=lambda p: -p.confidence)

    def _content_type(self, row: int, col: int) -> ContentType:
        key = (row, col)
        if key not in self._tokens:
            self._tokens[key] = self.classifier.classify_content(self.worksheet.value(row, col)).type
        return self._tokens[key]

    def _is_month(self, row: int, col: int) -> bool:
        return self._content_type(row, col) == ContentType.MONTH

    def _is_price(self, row: int, col: int) -> bool:
        return self._content_type(row, col) == ContentType.PRICE

    def _label_col(self) -> int:
        """Leftmost column holding anything within the scan window."""
        rows = min(self.worksheet.row_count, self.scan_rows)
        for col in range(min(self.worksheet.col_count, self.scan_cols)):
            if not self.worksheet.is_blank_col(col, 0, rows):
                return col
        return 0

    def _accommodation_labels(self, labels: list[str]) -> list[str]:
        found = []
        for label in labels:
            if self.classifier.detect_accommodation_type(label).is_accommodation:
                found.append(label)
        return found

    def _row_headers(self, row: int, start_col: int) -> list[str]:
        if row < 0:
            return []
        texts = (self.worksheet.text(row, col) for col in range(start_col, self.worksheet.col_count))
        return [text for text in texts if text]

    def _last_filled_col(self, rows: range, start_col: int) -> int:
        last = start_col
        for row in rows:
            for col in range(start_col, self.worksheet.col_count):
                if self.worksheet.text(row, col):
                    last = max(last, col)
        return last

    def _detect_months_rows(self) -> Optional[LayoutPattern]:
        label_col = self._label_col()
        limit = min(self.worksheet.row_count, self.scan_rows)

        best: Optional[LayoutPattern] = None
        row = 0
        while row < limit:
            if not self._is_month(row, label_col):
                row += 1
                continue

            start = row
            months = []
            while row < self.worksheet.row_count and self._is_month(row, label_col):
                months.append(self.worksheet.text(row, label_col))
                row += 1
            end = row - 1
            if len(months) < 2:
                continue

            header_row = start - 1
            headers = self._row_headers(header_row, label_col + 1)
            accommodation = self._accommodation_labels(headers)
            confidence = combine(
                min(0.9, 0.3 + count_bonus(len(months), 0.05, 0.6)),
                flag_bonus(bool(headers), 0.2),
                flag_bonus(bool(accommodation), 0.1),
            )
            pattern = LayoutPattern(
                type=LayoutType.MONTHS_ROWS,
                confidence=confidence,
                start_row=start,
                start_col=label_col,
                end_row=end,
                end_col=self._last_filled_col(range(max(header_row, 0), end + 1), label_col),
                headers=headers,
                data_pattern="months-in-first-column",
                metadata={
                    "months_detected": months,
                    "accommodation_types": accommodation,
                    "pricing_structure": "horizontal",
                    "header_row": header_row,
                    "label_col": label_col,
                },
            )
            if best is None or pattern.confidence > best.confidence:
                best = pattern
        return best

    def _detect_months_columns(self) -> Optional[LayoutPattern]:
        label_col = self._label_col()
        best: Optional[LayoutPattern] = None

        for row in range(min(self.worksheet.row_count, self.MONTH_HEADER_ROWS)):
            month_cols = [
                col
                for col in range(label_col + 1, self.worksheet.col_count)
                if self._is_month(row, col)
            ]
            # A merged title repeats one label across every column it covers
            if len({self.worksheet.text(row, col) for col in month_cols}) < 3:
                continue

            row_labels = []
            end_row = row
            blanks = 0
            for below in range(row + 1, self.worksheet.row_count):
                if self.worksheet.is_blank_row(below):
                    blanks += 1
                    if blanks >= self.blank_run_terminator:
                        break
                    continue
                blanks = 0
                label = self.worksheet.text(below, label_col)
                if label and not self._is_price(below, label_col):
                    row_labels.append(label)
                if label or any(self._is_price(below, col) for col in month_cols):
                    end_row = below

            accommodation = self._accommodation_labels(row_labels)
            months = [self.worksheet.text(row, col) for col in month_cols]
            confidence = combine(
                min(0.95, 0.4 + count_bonus(len(months), 0.08, 0.55)),
                flag_bonus(bool(row_labels), 0.2),
                flag_bonus(bool(accommodation), 0.1),
            )
            pattern = LayoutPattern(
                type=LayoutType.MONTHS_COLUMNS,
                confidence=confidence,
                start_row=row,
                start_col=label_col,
                end_row=end_row,
                end_col=month_cols[-1],
                headers=months,
                data_pattern="months-in-header-row",
                metadata={
                    "months_detected": months,
                    "accommodation_types": accommodation,
                    "pricing_structure": "vertical",
                    "header_row": row,
                    "label_col": label_col,
                },
            )
            if best is None or pattern.confidence > best.confidence:
                best = pattern
        return best

    def _detect_pricing_matrix(self) -> Optional[LayoutPattern]:
        label_col = self._label_col()
        best: Optional[LayoutPattern] = None

        row = 0
        while row < self.worksheet.row_count:
            price_cols = self._price_cols(row, label_col)
            if len(price_cols) < 3:
                row += 1
                continue

            start = row
            widest = price_cols
            while row < self.worksheet.row_count:
                cols = self._price_cols(row, label_col)
                if len(cols) < 3:
                    break
                if len(cols) > len(widest):
                    widest = cols
                row += 1
            end = row - 1

            headers = self._row_headers(start - 1, label_col)
            has_label = bool(self.worksheet.text(start, label_col))
            confidence = combine(
                min(0.8, 0.2 + count_bonus(len(widest), 0.08, 0.6)),
                flag_bonus(bool(headers), 0.2),
                flag_bonus(has_label, 0.1),
            )
            pattern = LayoutPattern(
                type=LayoutType.PRICING_MATRIX,
                confidence=confidence,
                start_row=start,
                start_col=label_col,
                end_row=end,
                end_col=widest[-1],
                headers=headers,
                data_pattern="price-matrix",
                metadata={
                    "pricing_structure": "matrix",
                    "price_rows": end - start + 1,
                    "header_row": start - 1,
                    "label_col": label_col,
                },
            )
            if best is None or pattern.confidence > best.confidence:
                best = pattern
        return best

    def _price_cols(self, row: int, label_col: int) -> list[int]:
        return [
            col
            for col in range(label_col + 1, self.worksheet.col_count)
            if self._is_price(row, col)
        ]

    def _detect_inclusions_list(self) -> Optional[LayoutPattern]:
        best: Optional[LayoutPattern] = None
        for row in range(self.worksheet.row_count):
            for col in range(self.worksheet.col_count):
                text = self.worksheet.text(row, col)
                if not text:
                    continue
                lowered = text.lower()
                has_keyword = any(keyword in lowered for keyword in self.INCLUSION_KEYWORDS)
                is_first_marked = line_format(text) is not None and not (
                    line_format(self.worksheet.text(row - 1, col)) if row > 0 else None
                )
                if has_keyword:
                    pattern = self._inclusions_below(row, col, header=True)
                elif is_first_marked:
                    pattern = self._inclusions_below(row - 1, col, header=False)
                else:
                    continue
                if pattern and (best is None or pattern.confidence > best.confidence):
                    best = pattern
        return best

    def _inclusions_below(self, row: int, col: int, header: bool) -> Optional[LayoutPattern]:
        items = []
        end_row = row
        blanks = 0
        for below in range(row + 1, self.worksheet.row_count):
            text = self.worksheet.text(below, col)
            if not text:
                if items:
                    blanks += 1
                    if blanks >= self.blank_run_terminator:
                        break
                continue
            if not header and line_format(text) is None:
                break
            blanks = 0
            items.append(text)
            end_row = below

        fmt = dominant_format(items)
        if header and len(items) < 2:
            return None
        if not header and len(items) < 3:
            return None

        if header:
            confidence = combine(
                min(0.7, 0.3 + count_bonus(len(items), 0.05, 0.4)),
                flag_bonus(fmt != ListFormat.PLAIN_TEXT, 0.2),
            )
        else:
            confidence = combine(min(0.5, 0.2 + count_bonus(len(items), 0.05, 0.3)), 0.1)

        header_text = self.worksheet.text(row, col) if header else None
        return LayoutPattern(
            type=LayoutType.INCLUSIONS_LIST,
            confidence=confidence,
            start_row=row if header else row + 1,
            start_col=col,
            end_row=end_row,
            end_col=col,
            headers=[header_text] if header_text else [],
            data_pattern=fmt.value,
            metadata={"header_text": header_text, "items": items},
        )

    # Pricing section helpers

    def _section_from_matrix(self, pattern: LayoutPattern) -> PricingSection:
        """Infer orientation for a bare price grid from its labels."""
        header_row = pattern.metadata["header_row"]
        label_col = pattern.metadata["label_col"]
        rows = range(pattern.start_row, pattern.end_row + 1)

        header_months = (
            sum(1 for c in range(label_col + 1, pattern.end_col + 1) if self._is_month(header_row, c))
            if header_row >= 0
            else 0
        )
        label_months = sum(1 for r in rows if self._is_month(r, label_col))
        orientation = (
            LayoutType.MONTHS_ROWS if label_months > header_months else LayoutType.MONTHS_COLUMNS
        )
        labels = [self.worksheet.text(r, label_col) for r in rows]
        headers = self._row_headers(header_row, label_col + 1)
        accommodation = self._accommodation_labels(
            headers if orientation == LayoutType.MONTHS_ROWS else labels
        )
        return PricingSection(
            orientation=orientation,
            header_row=header_row,
            label_col=label_col,
            start_row=pattern.start_row if orientation == LayoutType.MONTHS_ROWS else max(header_row, 0),
            end_row=pattern.end_row,
            start_col=label_col,
            end_col=pattern.end_col,
            accommodation_types=accommodation,
        )

    def _section_headers(self, section: PricingSection) -> list[str]:
        if section.orientation == LayoutType.MONTHS_ROWS:
            return self._row_headers(section.header_row, section.label_col + 1)
        return [
            self.worksheet.text(r, section.label_col)
            for r in range(section.header_row + 1, section.end_row + 1)
            if self.worksheet.text(r, section.label_col)
        ]

    @staticmethod
    def _header_numbers(headers: list[str], pattern: re.Pattern) -> list[int]:
        values = []
        for header in headers:
            match = pattern.search(header)
            if match:
                value = int(match.group(1))
                if value not in values:
                    values.append(value)
        return sorted(values)

    # Summaries

    @staticmethod
    def _overall_confidence(patterns: list[LayoutPattern]) -> float:
        if not patterns:
            return 0.0
        weighted = sum(p.confidence * LAYOUT_WEIGHTS[p.type] for p in patterns)
        total = sum(LAYOUT_WEIGHTS[p.type] for p in patterns)
        return weighted / total if total else 0.0

    @staticmethod
    def _suggestions(patterns: list[LayoutPattern]) -> list[str]:
        if not patterns:
            return [
                "No clear layout pattern detected. Please ensure the sheet contains "
                "recognizable month names and pricing data."
            ]

        suggestions = []
        primary = patterns[0]
        if primary.confidence < settings.low_confidence_threshold:
            suggestions.append(
                "Layout detection confidence is low. Consider reformatting the sheet "
                "for better recognition."
            )
        if primary.type == LayoutType.MONTHS_ROWS:
            suggestions.append(
                "Detected months in rows layout. Ensure pricing data is in columns to "
                "the right of month names."
            )
        elif primary.type == LayoutType.MONTHS_COLUMNS:
            suggestions.append(
                "Detected months in columns layout. Ensure pricing data is in rows "
                "below month headers."
            )
        if not any(p.type == LayoutType.INCLUSIONS_LIST for p in patterns):
            suggestions.append(
                "No inclusions section detected. Consider adding a clearly labeled "
                "inclusions section."
            )
        if not any(p.type in PRICING_LAYOUTS for p in patterns):
            suggestions.append(
                "No pricing data detected. Ensure prices are formatted as numbers with "
                "optional currency symbols."
            )
        return suggestions
