"""Raw pricing matrix extraction from a worksheet."""

import logging
import re
from typing import Any, Optional

from ..classify import ContentClassifier, MonthFormat, parse_locale_number
from ..config import settings
from ..grid import Worksheet, cell_reference, cell_text
from ..layout import LayoutDetector, LayoutType, MetadataExtractor, PricingSection
from .models import AccommodationType, PriceCell, PricingMatrix, PricingMetadata

logger = logging.getLogger(__name__)

DEFAULT_ACCOMMODATION = "Standard"
DEFAULT_ACCOMMODATION_CODE = "STD"


class PricingExtractor:
    """Builds a ``PricingMatrix`` from the pricing block of a worksheet.

    Orientation comes from the layout detector. Every cell read goes through
    the worksheet's merge resolver, so a merged price spans all the months or
    tiers it covers. Rows or columns past the first run of
    ``blank_run_terminator`` blanks are left for other detectors.
    """

    NOTE_PATTERNS = [
        re.compile(r"\(([^)]+)\)"),
        re.compile(r"\*+\s*(.+)$"),
        re.compile(r"\bnote:\s*(.+)$", re.IGNORECASE),
    ]

    NIGHTS_PAX_TOKEN = re.compile(
        r"[\s,\-–/]*\(?\b\d+\s*(?:-\s*\d+\s*)?"
        r"(?:nights?|nts?|n|days?|pax|people|persons?|adults?|guests?|p)\b\)?",
        re.IGNORECASE,
    )

    def __init__(
        self,
        worksheet: Worksheet,
        classifier: Optional[ContentClassifier] = None,
        layout_detector: Optional[LayoutDetector] = None,
        metadata_extractor: Optional[MetadataExtractor] = None,
        blank_run_terminator: Optional[int] = None,
    ):
        self.worksheet = worksheet
        self.classifier = classifier or ContentClassifier()
        self.blank_run_terminator = blank_run_terminator or settings.blank_run_terminator
        self.layout_detector = layout_detector or LayoutDetector(
            worksheet, classifier=self.classifier, blank_run_terminator=self.blank_run_terminator
        )
        self.metadata_extractor = metadata_extractor or MetadataExtractor(worksheet)
        self._section: Optional[PricingSection] = None

    def extract_pricing_matrix(self) -> Optional[PricingMatrix]:
        """Extract the pricing block, or None when the sheet has no prices."""
        section = self._pricing_section()
        if section is None:
            logger.info(f"No pricing section found in sheet '{self.worksheet.name}'")
            return None

        if section.orientation == LayoutType.MONTHS_ROWS:
            months, types, grid = self._extract_months_rows(section)
        else:
            months, types, grid = self._extract_months_columns(section)

        if not months or not types:
            logger.warning(
                f"Pricing section in '{self.worksheet.name}' yielded "
                f"{len(months)} periods and {len(types)} accommodation lines"
            )
            return None

        currency = self.detect_currency()
        special = [
            label
            for label in months
            if self.classifier.detect_month(label).format == MonthFormat.SPECIAL
        ]
        validity = self.metadata_extractor.extract_validity()
        matrix = PricingMatrix(
            months=months,
            accommodation_types=types,
            price_grid=grid,
            metadata=PricingMetadata(
                currency=currency,
                resort_name=self.metadata_extractor.extract_resort_name().value,
                special_periods=special,
                season_year=validity.season_year,
            ),
            nights_options=sorted({t.nights for t in types if t.nights is not None}),
            pax_options=sorted({t.pax for t in types if t.pax is not None}),
        )
        logger.info(
            f"Extracted {len(types)}x{len(months)} pricing matrix from "
            f"'{self.worksheet.name}' ({section.orientation.value}, {currency})"
        )
        return matrix

    def detect_currency(self) -> str:
        """Currency of the pricing block, falling back to the whole sheet."""
        section = self._pricing_section()
        if section is not None:
            region = (
                max(section.header_row, 0),
                section.end_row + 1,
                section.label_col,
                section.end_col + 1,
            )
            scoped = self.metadata_extractor.detect_currency(region)
            if not scoped.is_default:
                return scoped.currency
        return self.metadata_extractor.detect_currency().currency

    def _pricing_section(self) -> Optional[PricingSection]:
        if self._section is None:
            self._section = self.layout_detector.find_pricing_section()
        return self._section

    # Orientation-specific walks

    def _extract_months_columns(self, section: PricingSection):
        header = section.header_row
        period_cols = self._period_positions(
            [(col, self.worksheet.text(header, col)) for col in range(section.label_col + 1, self.worksheet.col_count)]
        )
        months = [self.worksheet.text(header, col) for col in period_cols]

        types: list[AccommodationType] = []
        grid: list[list[PriceCell]] = []
        group: Optional[str] = None
        blanks = 0
        for row in range(header + 1, self.worksheet.row_count):
            label = self.worksheet.text(row, section.label_col)
            values = [self.worksheet.value(row, col) for col in period_cols]
            if not label and all(cell_text(v) == "" for v in values):
                blanks += 1
                if blanks >= self.blank_run_terminator:
                    break
                continue
            blanks = 0

            if all(cell_text(v) == "" for v in values):
                if not self.classifier.detect_accommodation_type(label).is_accommodation:
                    continue
                # Label-only row heads the sub-labelled lines below it
                if self._heads_group(row, section.label_col):
                    group = label
                    continue
                group = None

            types.append(self._decompose_label(label, group))
            grid.append([self._price_cell(row, col) for col in period_cols])
        return months, types, grid

    def _extract_months_rows(self, section: PricingSection):
        month_rows = []
        blanks = 0
        for row in range(section.start_row, self.worksheet.row_count):
            if self.worksheet.is_blank_row(row):
                blanks += 1
                if blanks >= self.blank_run_terminator:
                    break
                continue
            blanks = 0
            label = self.worksheet.text(row, section.label_col)
            if label and self.classifier.detect_month(label).is_month:
                month_rows.append(row)

        header = section.header_row
        tier_cols = []
        blanks = 0
        for col in range(section.label_col + 1, self.worksheet.col_count):
            heading = self.worksheet.text(header, col) if header >= 0 else ""
            has_values = any(self.worksheet.text(row, col) for row in month_rows)
            if not heading and not has_values:
                blanks += 1
                if blanks >= self.blank_run_terminator:
                    break
                continue
            # A headed tier with no prices stays as an unavailable line
            blanks = 0
            tier_cols.append(col)

        months = [self.worksheet.text(row, section.label_col) for row in month_rows]
        types = []
        group: Optional[str] = None
        for col in tier_cols:
            heading = self.worksheet.text(header, col) if header >= 0 else ""
            # Merged headings spanning several tiers arrive via the resolver
            above = self.worksheet.text(header - 1, col) if header >= 1 else ""
            if above and self.classifier.detect_accommodation_type(above).is_accommodation:
                group = above
            types.append(self._decompose_label(heading, group))
        grid = [[self._price_cell(row, col) for row in month_rows] for col in tier_cols]
        return months, types, grid

    def _heads_group(self, row: int, label_col: int) -> bool:
        """Whether the next non-blank row is a sub-line such as "2 people"."""
        blanks = 0
        for below in range(row + 1, self.worksheet.row_count):
            if self.worksheet.is_blank_row(below):
                blanks += 1
                if blanks >= self.blank_run_terminator:
                    return False
                continue
            label = self.worksheet.text(below, label_col)
            return not self.classifier.detect_accommodation_type(label).is_accommodation
        return False

    def _period_positions(self, headers: list[tuple[int, str]]) -> list[int]:
        """Columns holding period labels, cut at the first blank run."""
        kept = []
        blanks = 0
        for col, text in headers:
            if not text:
                blanks += 1
                if blanks >= self.blank_run_terminator:
                    break
                continue
            blanks = 0
            kept.append((col, self.classifier.detect_month(text).is_month))
        if any(is_month for _, is_month in kept):
            return [col for col, is_month in kept if is_month]
        return [col for col, _ in kept]

    # Cells and labels

    def _decompose_label(self, label: str, group: Optional[str]) -> AccommodationType:
        """Split "Hotel 2 nights 2 pax" into type name, nights and pax."""
        nights_pax = self.classifier.detect_nights_pax_pattern(label)
        name = self.NIGHTS_PAX_TOKEN.sub("", label).strip(" -–/,:")
        if not name:
            name = group or ""
        elif group and not self.classifier.detect_accommodation_type(name).is_accommodation:
            name = f"{group} {name}"

        if not name:
            return AccommodationType(
                name=DEFAULT_ACCOMMODATION,
                code=DEFAULT_ACCOMMODATION_CODE,
                description=label or "Standard accommodation",
                nights=nights_pax.nights,
                pax=nights_pax.pax,
                pax_max=nights_pax.pax_max,
            )

        match = self.classifier.detect_accommodation_type(name)
        return AccommodationType(
            name=name,
            code=self.classifier.accommodation_code(name),
            description=label,
            category=match.category.value,
            nights=nights_pax.nights,
            pax=nights_pax.pax,
            pax_max=nights_pax.pax_max,
        )

    def _price_cell(self, row: int, col: int) -> PriceCell:
        raw = self.worksheet.value(row, col)
        reference = cell_reference(row, col)
        merged = self.worksheet.is_merged(row, col)
        text = cell_text(raw)

        if not text:
            return PriceCell(
                value=None, raw_value=raw, is_available=False,
                cell_reference=reference, is_merged=merged,
            )
        if self.classifier.is_unavailable_marker(text):
            return PriceCell(
                value=None, raw_value=raw, is_available=False,
                cell_reference=reference, is_merged=merged, notes=text,
            )

        notes = self._extract_notes(text)
        core = text
        for pattern in self.NOTE_PATTERNS:
            core = pattern.sub("", core)
        value = self._parse_price(raw if not isinstance(raw, str) else core.strip(" *"))
        if value is None:
            # "Sold out (June)" keeps its marker in the notes
            if not self._mentions_unavailable(text):
                logger.debug(f"Unparseable price {text!r} at {reference}")
                text = notes or text
            return PriceCell(
                value=None, raw_value=raw, is_available=False,
                cell_reference=reference, is_merged=merged, notes=text,
            )
        return PriceCell(
            value=value, raw_value=raw, is_available=True,
            cell_reference=reference, is_merged=merged, notes=notes,
        )

    def _mentions_unavailable(self, text: str) -> bool:
        """Whether a longer marker such as "sold out" appears as whole words."""
        lowered = text.lower()
        return any(
            re.search(rf"(?<!\w){re.escape(marker)}(?!\w)", lowered)
            for marker in self.classifier.dictionaries.unavailable_markers
            if len(marker) > 3
        )

    def _extract_notes(self, text: str) -> Optional[str]:
        for pattern in self.NOTE_PATTERNS:
            match = pattern.search(text)
            if match:
                return match.group(1).strip()
        return None

    @staticmethod
    def _parse_price(value: Any) -> Optional[float]:
        amount, _ = parse_locale_number(value)
        return amount
