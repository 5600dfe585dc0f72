"""Price and currency validation for normalized pricing entries."""

import logging
import re
from collections import defaultdict
from typing import Callable, Optional

from ..classify import ContentClassifier, NumberFormat, parse_locale_number
from .models import (
    UNAVAILABLE,
    CurrencyCheck,
    NormalizedPriceEntry,
    NumberFormatCheck,
    PriceBounds,
    PriceValidationOptions,
    PriceValidationResult,
    ReasonablenessCheck,
    Severity,
    ValidationIssue,
)

logger = logging.getLogger(__name__)

PriceRule = Callable[[list[NormalizedPriceEntry]], list[ValidationIssue]]

# Per-person-per-night band before category scaling
CURRENCY_BOUNDS = {
    "EUR": PriceBounds(minimum=5, maximum=1000),
    "GBP": PriceBounds(minimum=4, maximum=850),
    "USD": PriceBounds(minimum=6, maximum=1100),
    "JPY": PriceBounds(minimum=500, maximum=150000),
}

CATEGORY_MULTIPLIERS = {
    "villa": 2.0,
    "resort": 1.5,
    "hotel": 1.2,
    "apartment": 1.0,
    "self-catering": 0.8,
    "hostel": 0.5,
}

MISSING_PRICE_WARNING_RATIO = 0.5


class PriceValidator:
    """Runs named price rules over normalized entries.

    Rules are plain callables registered by name. A rule that raises is
    reported as an error issue and the remaining rules still run.
    """

    def __init__(
        self,
        options: Optional[PriceValidationOptions] = None,
        classifier: Optional[ContentClassifier] = None,
    ):
        self.options = options or PriceValidationOptions()
        self.classifier = classifier or ContentClassifier()
        self.rules: dict[str, PriceRule] = {}
        if self.options.currency_consistency_check:
            self.add_rule("currency-consistency", self._currency_consistency)
        if self.options.price_reasonableness_check:
            self.add_rule("price-reasonableness", self._price_reasonableness)
        self.add_rule("zero-prices", self._zero_prices)
        if self.options.price_progression_check:
            self.add_rule("price-progression", self._price_progression)
        self.add_rule("missing-prices", self._missing_prices)

    def add_rule(self, name: str, rule: PriceRule) -> None:
        """Register (or replace) a rule under ``name``."""
        self.rules[name] = rule

    def remove_rule(self, name: str) -> bool:
        """Drop a rule. Returns False when no rule had that name."""
        return self.rules.pop(name, None) is not None

    def validate(self, entries: list[NormalizedPriceEntry]) -> PriceValidationResult:
        """Run every registered rule and collect the issues."""
        issues: list[ValidationIssue] = []
        for name, rule in self.rules.items():
            try:
                issues.extend(rule(entries))
            except Exception as e:
                logger.error(f"Price rule '{name}' failed: {e}")
                issues.append(
                    ValidationIssue(
                        rule=name,
                        severity=Severity.ERROR,
                        field="*",
                        message=f"Validation rule failed: {e}",
                        suggestion="Check the validation rule implementation",
                    )
                )

        summary = {severity.value: 0 for severity in Severity}
        for issue in issues:
            summary[issue.severity.value] += 1
        summary["entries"] = len(entries)

        result = PriceValidationResult(
            is_valid=summary[Severity.ERROR.value] == 0,
            issues=issues,
            summary=summary,
        )
        logger.info(
            f"Validated {len(entries)} prices: {summary['error']} errors, "
            f"{summary['warning']} warnings"
        )
        return result

    # Standalone checks

    def detect_and_validate_currency(self, text: str) -> CurrencyCheck:
        """Map a currency symbol or ISO code in ``text`` to its code."""
        if not isinstance(text, str) or not text.strip():
            return CurrencyCheck(message="Provide a non-empty price string")

        amount, _ = parse_locale_number(text)
        for symbol, code in self.classifier.dictionaries.currency_symbols.items():
            if symbol in text:
                # C$ is Canadian, not US
                if symbol == "$" and re.search(r"C\$", text):
                    code, symbol = "CAD", "C$"
                return CurrencyCheck(
                    currency=code, symbol=symbol, amount=amount, is_valid=True,
                    message=f"Detected {code} from symbol",
                )

        for code in self.classifier.dictionaries.currency_codes:
            if re.search(rf"(?<![A-Za-z]){code}(?![A-Za-z])", text, re.IGNORECASE):
                return CurrencyCheck(
                    currency=code, amount=amount, is_valid=True,
                    message=f"Detected {code} from code",
                )

        return CurrencyCheck(
            amount=amount,
            message="Use a recognized currency symbol (£, $, €) or code (GBP, USD, EUR)",
        )

    def validate_number_format(self, text: str) -> NumberFormatCheck:
        """Detect US, European or plain (ungrouped, dot decimal) numbers and parse the value."""
        value, fmt = parse_locale_number(text)
        if value is None:
            return NumberFormatCheck(
                is_valid=False, format=NumberFormat.UNKNOWN.value,
                message=f"Cannot parse {text!r} as a number",
            )
        return NumberFormatCheck(is_valid=True, value=value, format=fmt.value)

    def check_price_reasonableness(
        self,
        price: float,
        currency: str,
        accommodation_type: str,
        nights: int = 1,
        pax: int = 1,
    ) -> ReasonablenessCheck:
        """Compare the per-person-per-night price with its category band."""
        per_unit = price / max(nights, 1) / max(pax, 1)
        bounds = self._bounds_for(currency, accommodation_type)

        if price < 0:
            message = "Price cannot be negative"
            reasonable = False
        elif per_unit < bounds.minimum:
            message = (
                f"{per_unit:.2f} {currency} per person per night seems unusually low "
                f"(expected at least {bounds.minimum:g})"
            )
            reasonable = False
        elif per_unit > bounds.maximum:
            message = (
                f"{per_unit:.2f} {currency} per person per night seems unusually high "
                f"(expected at most {bounds.maximum:g})"
            )
            reasonable = False
        else:
            message = ""
            reasonable = True

        return ReasonablenessCheck(
            is_reasonable=reasonable,
            per_person_per_night=per_unit,
            minimum=bounds.minimum,
            maximum=bounds.maximum,
            message=message,
        )

    def _bounds_for(self, currency: str, accommodation_type: str) -> PriceBounds:
        category = self._category(accommodation_type)
        if category in self.options.custom_bounds:
            return self.options.custom_bounds[category]
        base = CURRENCY_BOUNDS.get(currency.upper(), CURRENCY_BOUNDS["EUR"])
        multiplier = CATEGORY_MULTIPLIERS.get(category, 1.0)
        return PriceBounds(minimum=base.minimum, maximum=base.maximum * multiplier)

    def _category(self, accommodation_type: str) -> str:
        lowered = accommodation_type.lower()
        if lowered in self.options.custom_bounds:
            return lowered
        match = self.classifier.detect_accommodation_type(accommodation_type)
        return match.category.value if match.is_accommodation else "other"

    # Rules

    def _currency_consistency(self, entries: list[NormalizedPriceEntry]) -> list[ValidationIssue]:
        currencies = sorted({entry.currency for entry in entries})
        issues = []
        if len(currencies) > 1:
            issues.append(
                ValidationIssue(
                    rule="currency-consistency",
                    severity=Severity.ERROR,
                    field="currency",
                    message=f"Multiple currencies detected: {', '.join(currencies)}",
                    value=currencies,
                    suggestion="Ensure all prices use the same currency or apply currency conversion",
                )
            )
        expected = self.options.expected_currency
        if expected and currencies and currencies != [expected]:
            issues.append(
                ValidationIssue(
                    rule="currency-consistency",
                    severity=Severity.ERROR,
                    field="currency",
                    message=f"Expected {expected} but found {', '.join(currencies)}",
                    value=currencies,
                )
            )
        return issues

    def _price_reasonableness(self, entries: list[NormalizedPriceEntry]) -> list[ValidationIssue]:
        issues = []
        for index, entry in enumerate(entries):
            if not entry.is_available or entry.price == UNAVAILABLE or entry.price == 0:
                continue
            check = self.check_price_reasonableness(
                entry.price, entry.currency, entry.accommodation_type, entry.nights, entry.pax
            )
            if not check.is_reasonable:
                issues.append(
                    ValidationIssue(
                        rule="price-reasonableness",
                        severity=Severity.WARNING,
                        field="price",
                        message=check.message,
                        row=index,
                        column=entry.cell_reference,
                        value=entry.price,
                        suggestion="Verify the price or check for missing or extra digits",
                    )
                )
        return issues

    def _zero_prices(self, entries: list[NormalizedPriceEntry]) -> list[ValidationIssue]:
        severity = Severity.INFO if self.options.allow_zero_prices else Severity.WARNING
        return [
            ValidationIssue(
                rule="zero-prices",
                severity=severity,
                field="price",
                message=f"Zero price for {entry.accommodation_type} in {entry.month}",
                row=index,
                column=entry.cell_reference,
                value=entry.price,
                suggestion=(
                    "Zero prices detected - verify these are intentional"
                    if self.options.allow_zero_prices
                    else "Consider marking zero-price entries as unavailable instead"
                ),
            )
            for index, entry in enumerate(entries)
            if entry.is_available and entry.price == 0
        ]

    def _price_progression(self, entries: list[NormalizedPriceEntry]) -> list[ValidationIssue]:
        """Longer stays should never cost less at a fixed month, type and pax."""
        groups: dict[tuple, list[tuple[int, NormalizedPriceEntry]]] = defaultdict(list)
        for index, entry in enumerate(entries):
            if entry.is_available and entry.price != UNAVAILABLE:
                groups[(entry.month, entry.accommodation_type, entry.pax)].append((index, entry))

        issues = []
        for (month, accommodation, pax), members in groups.items():
            members.sort(key=lambda item: item[1].nights)
            for (_, prev), (index, curr) in zip(members, members[1:]):
                if curr.nights > prev.nights and curr.price < prev.price:
                    issues.append(
                        ValidationIssue(
                            rule="price-progression",
                            severity=Severity.WARNING,
                            field="price",
                            message=(
                                f"Price decrease detected for {accommodation} in {month}: "
                                f"{prev.nights}n/{pax}p ({prev.price}) > "
                                f"{curr.nights}n/{pax}p ({curr.price})"
                            ),
                            row=index,
                            column=curr.cell_reference,
                            value=curr.price,
                            suggestion="Verify pricing logic for different nights",
                        )
                    )
        return issues

    def _missing_prices(self, entries: list[NormalizedPriceEntry]) -> list[ValidationIssue]:
        missing = [entry for entry in entries if not entry.is_available]
        if not missing:
            return []
        share = len(missing) / len(entries)
        if share > MISSING_PRICE_WARNING_RATIO:
            return [
                ValidationIssue(
                    rule="missing-prices",
                    severity=Severity.WARNING,
                    field="price",
                    message=f"High percentage of unavailable entries: {share * 100:.1f}%",
                    value=len(missing),
                    suggestion="Review the data source for completeness",
                )
            ]
        return [
            ValidationIssue(
                rule="missing-prices",
                severity=Severity.INFO,
                field="price",
                message=f"{len(missing)} entries marked as unavailable",
                value=len(missing),
                suggestion="Verify unavailable entries are correct",
            )
        ]
