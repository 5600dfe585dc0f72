"""Flattening of pricing matrices into normalized price entries."""

import logging
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..classify import ContentClassifier, MonthFormat
from .models import (
    UNAVAILABLE,
    MissingPricePolicy,
    NormalizationError,
    NormalizationOptions,
    NormalizationResult,
    NormalizedPriceEntry,
    PriceCell,
    PricingMatrix,
)

logger = logging.getLogger(__name__)

PARENTHETICAL = re.compile(r"\s*\([^)]*\)")


def round_half_up(value: float, precision: int) -> float:
    """Round like a price list does: 2.345 -> 2.35, 0.5 -> 1."""
    quantum = Decimal(1).scaleb(-precision)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


class PricingNormalizer:
    """Converts a ``PricingMatrix`` into one entry per month and price line.

    Every (month, accommodation line) cell present in the matrix produces an
    entry unless the missing-price policy is ``skip``, in which case the drop
    is counted and reported as a warning.
    """

    def __init__(
        self,
        options: Optional[NormalizationOptions] = None,
        classifier: Optional[ContentClassifier] = None,
    ):
        self.options = options or NormalizationOptions()
        self.classifier = classifier or ContentClassifier()

    def normalize_pricing(self, matrix: PricingMatrix) -> NormalizationResult:
        """Flatten, convert, round and sort the prices of a matrix."""
        result = NormalizationResult()

        problems = self._validate_matrix(matrix)
        if problems:
            result.errors.extend(problems)
            logger.warning(f"Pricing matrix rejected: {'; '.join(problems)}")
            return result

        policy = self.options.handle_missing_prices
        summary = result.summary

        for type_index, accommodation in enumerate(matrix.accommodation_types):
            row = matrix.price_grid[type_index]
            for month_index, label in enumerate(matrix.months):
                cell = row[month_index]
                special = self._special_period(label)
                if special and special not in summary.special_periods:
                    summary.special_periods.append(special)

                if cell.is_missing:
                    where = cell.cell_reference or f"{label}/{accommodation.name}"
                    if policy == MissingPricePolicy.SKIP:
                        summary.skipped_entries += 1
                        continue
                    if policy == MissingPricePolicy.ERROR:
                        result.errors.append(
                            f"Missing price for {accommodation.name} in {label} ({where})"
                        )
                        continue

                entry = self._build_entry(matrix, label, accommodation, cell, special)
                result.data.append(entry)
                summary.total_entries += 1
                if entry.is_available:
                    summary.available_entries += 1
                else:
                    summary.unavailable_entries += 1

        if summary.skipped_entries:
            result.warnings.append(f"Skipped {summary.skipped_entries} cells with missing prices")

        self._apply_currency_conversion(result.data)
        if self.options.price_rounding.enabled:
            self._apply_rounding(result.data)
        result.data.sort(key=self._sort_key)

        result.success = not result.errors
        logger.info(
            f"Normalized {summary.total_entries} entries "
            f"({summary.available_entries} available, {summary.unavailable_entries} unavailable, "
            f"{summary.skipped_entries} skipped)"
        )
        return result

    # Steps

    @staticmethod
    def _validate_matrix(matrix: PricingMatrix) -> list[str]:
        errors = []
        if not matrix.months:
            errors.append("No months found in pricing matrix")
        if not matrix.accommodation_types:
            errors.append("No accommodation types found in pricing matrix")
        if not matrix.price_grid:
            errors.append("No price data found in pricing matrix")
        if len(matrix.price_grid) != len(matrix.accommodation_types):
            errors.append(
                f"Price grid rows ({len(matrix.price_grid)}) don't match "
                f"accommodation types count ({len(matrix.accommodation_types)})"
            )
        for index, row in enumerate(matrix.price_grid):
            if len(row) != len(matrix.months):
                errors.append(
                    f"Price grid row {index} has {len(row)} cells for {len(matrix.months)} months"
                )
        return errors

    def _build_entry(self, matrix, label, accommodation, cell: PriceCell, special) -> NormalizedPriceEntry:
        available = not cell.is_missing
        return NormalizedPriceEntry(
            month=self._month_label(label),
            accommodation_type=accommodation.name,
            accommodation_code=accommodation.code,
            nights=accommodation.nights or self.options.default_nights,
            pax=accommodation.pax or self.options.default_pax,
            price=cell.value if available else UNAVAILABLE,
            currency=matrix.metadata.currency,
            is_available=available,
            special_period=special if self.options.preserve_special_periods else None,
            cell_reference=cell.cell_reference,
            notes=cell.notes,
        )

    def _apply_currency_conversion(self, entries: list[NormalizedPriceEntry]) -> None:
        conversion = self.options.currency_conversion
        if conversion is None:
            return
        converted = 0
        for entry in entries:
            if entry.currency != conversion.from_currency:
                continue
            if entry.price != UNAVAILABLE:
                entry.price = entry.price * conversion.rate
            entry.currency = conversion.to_currency
            note = f"Converted from {conversion.from_currency}"
            entry.notes = f"{entry.notes} ({note})" if entry.notes else note
            converted += 1
        logger.debug(
            f"Converted {converted} entries {conversion.from_currency} -> {conversion.to_currency}"
        )

    def _apply_rounding(self, entries: list[NormalizedPriceEntry]) -> None:
        precision = self.options.price_rounding.precision
        for entry in entries:
            if entry.price != UNAVAILABLE:
                entry.price = round_half_up(entry.price, precision)

    # Labels

    def _month_label(self, label: str) -> str:
        """Calendar months get their full name; anything else stays verbatim."""
        match = self.classifier.detect_month(label)
        if match.is_month and match.format != MonthFormat.SPECIAL:
            return match.normalized_name
        return label

    def _special_period(self, label: str) -> Optional[str]:
        match = self.classifier.detect_month(label)
        if not match.is_month or match.format != MonthFormat.SPECIAL:
            return None
        keyword = PARENTHETICAL.sub("", label).strip()
        return keyword or match.normalized_name

    def _sort_key(self, entry: NormalizedPriceEntry):
        order = self.classifier.dictionaries.month_order
        if entry.month in order:
            group, position = 0, order.index(entry.month)
        elif entry.special_period is None and not self._special_period(entry.month):
            group, position = 1, 0
        else:
            group, position = 2, 0
        return (
            group,
            position,
            entry.month,
            entry.accommodation_type,
            entry.nights,
            entry.pax,
        )


def normalize_pricing_matrix(
    matrix: PricingMatrix,
    options: Optional[NormalizationOptions] = None,
    strict: bool = False,
) -> NormalizationResult:
    """Normalize with a one-off normalizer.

    Args:
        matrix: Extracted pricing matrix.
        options: Normalization options, defaults when omitted.
        strict: Raise instead of returning an unsuccessful result.

    Raises:
        NormalizationError: If ``strict`` is set and normalization failed.
    """
    result = PricingNormalizer(options).normalize_pricing(matrix)
    if strict and not result.success:
        raise NormalizationError(result.errors)
    return result
