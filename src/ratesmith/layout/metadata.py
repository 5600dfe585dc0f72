"""Resort name, currency and special-period extraction."""

import logging
import re
from datetime import date
from typing import Optional

from ..config import settings
from ..grid import Worksheet
from .models import CurrencyDetection, ResortName, SheetMetadata, SpecialPeriod, ValidityPeriod

logger = logging.getLogger(__name__)

# (row_start, row_end, col_start, col_end), ends exclusive
Region = tuple[int, int, int, int]


class MetadataExtractor:
    """Extracts sheet-level metadata used to label a pricing matrix."""

    # Trailing tokens stripped from a tab name, applied repeatedly
    NAME_NOISE = re.compile(
        r"[\s\-–_|:,]*(?:\(\s*\d{4}[^)]*\)|\b(?:\d{4}(?:\s*[/\-–]\s*\d{2,4})?|prices?|pricing"
        r"|price\s*list|rates?|tariffs?|sheet\s*\d*|season|final|v\d+|draft))[\s\-–_|:,]*$",
        re.IGNORECASE,
    )

    GENERIC_NAMES = {
        "sheet",
        "data",
        "prices",
        "rates",
        "table",
        "summary",
        "total",
        "main",
        "primary",
        "default",
    }

    TITLE_PATTERNS = [
        re.compile(r"\b(?:resort|destination|location)\s*:\s*([A-Za-z][A-Za-z\s\-']+)", re.IGNORECASE),
        re.compile(r"^([A-Za-z][A-Za-z\s\-']{4,}?)\s+(?:resort|hotel|village)\b", re.IGNORECASE),
    ]

    CURRENCY_PATTERNS = [
        ("GBP", re.compile(r"£|\bGBP\b")),
        ("EUR", re.compile(r"€|\bEUR\b")),
        ("USD", re.compile(r"(?<!C)\$|\bUSD\b")),
        ("JPY", re.compile(r"¥|\bJPY\b")),
        ("CHF", re.compile(r"\bCHF\b")),
        ("CAD", re.compile(r"C\$|\bCAD\b")),
    ]

    # (pattern, name, type, description)
    SPECIAL_PERIODS = [
        (r"easter", "Easter", "holiday", "Easter holiday period"),
        (r"peak\s*season", "Peak Season", "season", "High demand period with premium pricing"),
        (r"off\s*season", "Off Season", "season", "Low demand period with reduced pricing"),
        (r"high\s*season", "High Season", "season", "High demand period"),
        (r"low\s*season", "Low Season", "season", "Low demand period"),
        (r"christmas", "Christmas", "holiday", "Christmas holiday period"),
        (r"new\s*year", "New Year", "holiday", "New Year holiday period"),
        (r"summer\s*holidays?", "Summer Holidays", "season", "Summer vacation period"),
        (r"school\s*holidays?", "School Holidays", "season", "School vacation period"),
    ]

    DATE = r"\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4}"
    VALID_FROM = re.compile(rf"valid\s*from\s*:?\s*({DATE})", re.IGNORECASE)
    VALID_TO = re.compile(rf"valid\s*(?:to|until)\s*:?\s*({DATE})", re.IGNORECASE)
    DATE_RANGE = re.compile(rf"({DATE})\s*[-–]\s*({DATE})")
    SEASON_YEAR = re.compile(r"season\s*:?\s*(\d{4})|(\d{4})\s*season", re.IGNORECASE)

    MAX_PERIOD_LABEL = 60

    def __init__(self, worksheet: Worksheet, default_currency: Optional[str] = None):
        self.worksheet = worksheet
        self.default_currency = default_currency or settings.default_currency
        self._period_patterns = [
            (
                re.compile(rf"\b{pattern}\b(?:\s*\(([^)]*)\))?", re.IGNORECASE),
                name,
                period_type,
                description,
            )
            for pattern, name, period_type, description in self.SPECIAL_PERIODS
        ]

    def _region(self, region: Optional[Region], rows: int, cols: int) -> Region:
        if region is not None:
            return region
        return 0, min(self.worksheet.row_count, rows), 0, min(self.worksheet.col_count, cols)

    def _cells(self, region: Region):
        row_start, row_end, col_start, col_end = region
        for row in range(row_start, min(row_end, self.worksheet.row_count)):
            for col in range(col_start, min(col_end, self.worksheet.col_count)):
                text = self.worksheet.text(row, col)
                if text:
                    yield row, col, text

    # Resort name

    def extract_resort_name(self) -> ResortName:
        """Derive the resort name from the tab name, else from a title cell."""
        name = self.worksheet.name.strip()
        previous = None
        while name and name != previous:
            previous = name
            name = self.NAME_NOISE.sub("", name).strip()

        if self._looks_like_resort(name):
            return ResortName(value=name, confidence=0.7, source="sheet-name")

        for _, _, text in self._cells((0, 10, 0, 5)):
            for pattern in self.TITLE_PATTERNS:
                match = pattern.search(text)
                if match and self._looks_like_resort(match.group(1).strip()):
                    return ResortName(value=match.group(1).strip(), confidence=0.6, source="title-cell")

        return ResortName()

    def _looks_like_resort(self, name: str) -> bool:
        if len(name) < 3 or not re.fullmatch(r"[A-Za-z\s\-'&.]+", name):
            return False
        lowered = name.lower()
        if lowered in self.GENERIC_NAMES or re.fullmatch(r"sheet\s*\d*", lowered):
            return False
        return not any(word in lowered for word in ("price", "rate", "month", "total", "summary"))

    # Currency

    def detect_currency(self, region: Optional[Region] = None) -> CurrencyDetection:
        """Majority vote over currency symbols and ISO codes.

        Args:
            region: Optional ``(row_start, row_end, col_start, col_end)`` to scan.
                Defaults to the top-left 50x20 block.

        Returns:
            The winning currency, or the configured default at low confidence.
        """
        counts: dict[str, int] = {}
        for _, _, text in self._cells(self._region(region, 50, 20)):
            for code, pattern in self.CURRENCY_PATTERNS:
                hits = len(pattern.findall(text))
                if hits > 0:
                    counts[code] = counts.get(code, 0) + hits

        total = sum(counts.values())
        if total == 0:
            return CurrencyDetection(
                currency=self.default_currency, confidence=0.3, is_default=True
            )

        winner = None
        for code, _ in self.CURRENCY_PATTERNS:
            if counts.get(code, 0) > counts.get(winner, 0):
                winner = code
        return CurrencyDetection(
            currency=winner,
            confidence=min(0.95, counts[winner] / total),
            occurrences=counts,
        )

    # Special periods

    def identify_special_periods(self, region: Optional[Region] = None) -> list[SpecialPeriod]:
        """Find named pricing windows, with any parenthetical date range."""
        periods: dict[str, SpecialPeriod] = {}
        for row, col, text in self._cells(self._region(region, 100, 20)):
            if len(text) > self.MAX_PERIOD_LABEL:
                continue
            for pattern, name, period_type, description in self._period_patterns:
                match = pattern.search(text)
                if not match or name in periods:
                    continue
                date_range = match.group(1)
                if date_range is None:
                    range_match = self.DATE_RANGE.search(text)
                    date_range = range_match.group(0) if range_match else None
                periods[name] = SpecialPeriod(
                    name=name,
                    period_type=period_type,
                    description=description,
                    label=text,
                    date_range=date_range.strip() if date_range else None,
                    row=row,
                    col=col,
                    confidence=0.9 if date_range else 0.7,
                )
        return list(periods.values())

    # Validity

    def extract_validity(self) -> ValidityPeriod:
        """Read "valid from/to" dates and season year from the sheet header."""
        validity = ValidityPeriod()
        for _, _, text in self._cells((0, 20, 0, 10)):
            match = self.VALID_FROM.search(text)
            if match:
                validity.valid_from = _parse_date(match.group(1))
                validity.confidence = max(validity.confidence, 0.8)
            match = self.VALID_TO.search(text)
            if match:
                validity.valid_to = _parse_date(match.group(1))
                validity.confidence = max(validity.confidence, 0.8)
            match = self.DATE_RANGE.search(text)
            if match and validity.valid_from is None and validity.valid_to is None:
                validity.valid_from = _parse_date(match.group(1))
                validity.valid_to = _parse_date(match.group(2))
                validity.confidence = max(validity.confidence, 0.9)
            match = self.SEASON_YEAR.search(text)
            if match:
                validity.season_year = int(match.group(1) or match.group(2))
                validity.confidence = max(validity.confidence, 0.6)
        return validity

    # Aggregate

    def extract_metadata(self, currency_region: Optional[Region] = None) -> SheetMetadata:
        """Resort name, currency, special periods and validity in one pass."""
        resort = self.extract_resort_name()
        currency = self.detect_currency(currency_region)
        periods = self.identify_special_periods()
        validity = self.extract_validity()
        logger.info(
            f"Metadata for '{self.worksheet.name}': resort={resort.value!r}, "
            f"currency={currency.currency} ({currency.confidence:.2f}), "
            f"{len(periods)} special periods"
        )
        return SheetMetadata(
            resort_name=resort,
            currency=currency,
            special_periods=periods,
            validity=validity,
            confidence={
                "resort_name": resort.confidence,
                "currency": currency.confidence,
                "special_periods": max((p.confidence for p in periods), default=0.0),
                "validity": validity.confidence,
            },
        )


def _parse_date(text: str) -> Optional[date]:
    """Parse a day-first date, expanding two-digit years."""
    parts = re.split(r"[/\-.]", text)
    if len(parts) != 3:
        return None
    try:
        day, month, year = (int(part) for part in parts)
    except ValueError:
        return None
    if year < 100:
        year += 2000 if year < 50 else 1900
    try:
        return date(year, month, day)
    except ValueError:
        return None
