"""Extensible rule engine for field-level validation of tabular data."""

import logging
from collections import Counter
from typing import Any, Callable, Optional, Sequence

from ..classify import ContentClassifier, parse_locale_number
from ..config import settings
from ..grid import cell_text
from .models import (
    BLOCKING,
    FieldIssue,
    FieldRule,
    FieldSummary,
    FieldValidationResult,
    IssueSeverity,
    RuleCheck,
    ValidationContext,
    ValidationReport,
    ValidationSummary,
)

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("month", "price")

KNOWN_ACCOMMODATION_WORDS = (
    "hotel",
    "apartment",
    "villa",
    "resort",
    "self-catering",
    "b&b",
    "bed and breakfast",
    "guesthouse",
    "lodge",
    "cabin",
    "hostel",
    "studio",
    "suite",
    "room",
)

COMMON_ERROR_HINTS = {
    "INVALID_PRICE_FORMAT": "{count} price format errors - ensure prices are numbers with optional currency symbols",
    "REQUIRED_FIELD_EMPTY": "{count} required fields are empty - fill in all mandatory data",
    "INVALID_MONTH": "{count} invalid month formats - use standard month names or abbreviations",
}

COMMON_ERROR_MIN_COUNT = 5
HIGH_ERROR_RATE = 0.5


def _is_empty(value: Any) -> bool:
    return value is None or cell_text(value) == ""


def _issue(
    severity: IssueSeverity,
    code: str,
    message: str,
    value: Any,
    context: ValidationContext,
    /,
    **extra,
) -> FieldIssue:
    return FieldIssue(
        severity=severity,
        code=code,
        message=message,
        field=context.field_name,
        row=context.row,
        column=context.column,
        value=value,
        **extra,
    )


class DataValidationEngine:
    """Validates cells against a registry of field rules.

    Rules are matched by field name or the ``"*"`` wildcard. A rule that
    raises produces a ``RULE_EXECUTION_FAILED`` error for that value and
    never aborts the run.
    """

    def __init__(self, classifier: Optional[ContentClassifier] = None):
        self.classifier = classifier or ContentClassifier()
        self.rules: list[FieldRule] = []
        self.required_fields = set(REQUIRED_FIELDS)
        self._install_default_rules()

    # Registry

    def add_rule(self, rule: FieldRule) -> None:
        self.rules.append(rule)

    def remove_rule(self, rule_id: str) -> bool:
        """Remove every rule with ``rule_id``; False when none matched."""
        before = len(self.rules)
        self.rules = [rule for rule in self.rules if rule.id != rule_id]
        return len(self.rules) != before

    def add_custom_validator(
        self,
        name: str,
        predicate: Callable[[Any, ValidationContext], bool],
        field: str = "*",
        severity: IssueSeverity = IssueSeverity.ERROR,
        message: Optional[str] = None,
    ) -> FieldRule:
        """Register a yes/no predicate as a rule.

        Empty values are skipped; a falsy predicate result becomes a
        ``CUSTOM_VALIDATION_FAILED`` issue with the given severity.
        """

        def check(value: Any, context: ValidationContext) -> list[FieldIssue]:
            if _is_empty(value) or predicate(value, context):
                return []
            return [
                _issue(
                    severity,
                    "CUSTOM_VALIDATION_FAILED",
                    message or f"Value failed custom validator '{name}'",
                    value,
                    context,
                    context={"validator": name},
                )
            ]

        rule = FieldRule(id=f"custom-{name}", name=name, check=check, field=field, severity=severity)
        self.add_rule(rule)
        return rule

    # Validation

    def validate_field(
        self, field_name: str, value: Any, context: Optional[ValidationContext] = None
    ) -> FieldValidationResult:
        """Run every rule that applies to ``field_name`` on one value."""
        context = context or ValidationContext(field_name=field_name)
        if context.field_name is None:
            context.field_name = field_name

        result = FieldValidationResult()
        for rule in self.rules:
            if not rule.applies_to(field_name):
                continue
            try:
                issues = rule.check(value, context)
            except Exception as e:
                logger.warning(f"Validation rule '{rule.id}' raised on {field_name}: {e}")
                issues = [
                    _issue(
                        IssueSeverity.ERROR,
                        "RULE_EXECUTION_FAILED",
                        f'Validation rule "{rule.name}" failed to execute',
                        value,
                        context,
                        context={"rule_id": rule.id, "error": str(e)},
                    )
                ]
            for issue in issues:
                if issue.severity in BLOCKING:
                    result.errors.append(issue)
                elif issue.severity == IssueSeverity.WARNING:
                    result.warnings.append(issue)
                else:
                    result.info.append(issue)

        result.is_valid = not result.errors
        return result

    def validate_data(
        self,
        rows: Sequence[Sequence[Any]],
        headers: Sequence[str],
        field_mappings: Optional[dict[str, str]] = None,
    ) -> ValidationReport:
        """Validate every cell of a dataset.

        Args:
            rows: Data rows aligned with ``headers``.
            headers: Column headers.
            field_mappings: Header -> system field; unmapped headers are
                validated under their own name.

        Returns:
            Report with row attribution, per-column summary and suggestions.
        """
        field_mappings = field_mappings or {}
        summary = ValidationSummary(total_rows=len(rows))
        field_summary = {header: FieldSummary() for header in headers}
        errors: list[FieldIssue] = []
        warnings: list[FieldIssue] = []
        info: list[FieldIssue] = []

        for row_index, row in enumerate(rows):
            row_errors = row_warnings = False
            for col_index, header in enumerate(headers):
                value = row[col_index] if col_index < len(row) else None
                context = ValidationContext(
                    row=row_index,
                    column=header,
                    field_name=field_mappings.get(header, header),
                    headers=list(headers),
                    related_fields={
                        other: row[i] if i < len(row) else None
                        for i, other in enumerate(headers)
                        if i != col_index
                    },
                )
                result = self.validate_field(context.field_name, value, context)
                errors.extend(result.errors)
                warnings.extend(result.warnings)
                info.extend(result.info)

                tally = field_summary[header]
                tally.error_count += len(result.errors)
                tally.warning_count += len(result.warnings)
                if result.is_valid:
                    tally.valid_count += 1
                row_errors = row_errors or bool(result.errors)
                row_warnings = row_warnings or bool(result.warnings)

            if row_errors:
                summary.error_rows += 1
            elif row_warnings:
                summary.warning_rows += 1
            else:
                summary.valid_rows += 1

        for header, tally in field_summary.items():
            codes = Counter(issue.code for issue in errors if issue.column == header)
            tally.common_errors = [code for code, _ in codes.most_common(3)]

        summary.total_errors = len(errors)
        summary.total_warnings = len(warnings)
        summary.critical_errors = sum(1 for e in errors if e.severity == IssueSeverity.CRITICAL)

        report = ValidationReport(
            is_valid=not errors,
            summary=summary,
            errors=errors,
            warnings=warnings,
            info=info,
            field_summary=field_summary,
            suggestions=self._suggestions(errors, warnings, field_summary),
        )
        logger.info(
            f"Validated {summary.total_rows} rows: {summary.valid_rows} valid, "
            f"{summary.error_rows} with errors, {summary.warning_rows} with warnings"
        )
        return report

    @staticmethod
    def _suggestions(
        errors: list[FieldIssue], warnings: list[FieldIssue], field_summary: dict[str, FieldSummary]
    ) -> list[str]:
        suggestions = []
        critical = sum(1 for e in errors if e.severity == IssueSeverity.CRITICAL)
        if critical:
            suggestions.append(f"Fix {critical} critical errors before proceeding")

        for header, tally in field_summary.items():
            checked = tally.valid_count + tally.error_count
            rate = tally.error_count / checked if checked else 0.0
            if rate > HIGH_ERROR_RATE and tally.error_count > COMMON_ERROR_MIN_COUNT:
                suggestions.append(
                    f'Field "{header}" has a high error rate ({round(rate * 100)}%) - review data format'
                )

        for code, count in Counter(e.code for e in errors).most_common():
            if count > COMMON_ERROR_MIN_COUNT and code in COMMON_ERROR_HINTS:
                suggestions.append(COMMON_ERROR_HINTS[code].format(count=count))

        if len(warnings) > len(errors) * 2:
            suggestions.append("Many warnings detected - review data quality to improve accuracy")
        return suggestions

    # Default rules

    def _install_default_rules(self):
        defaults: list[tuple[str, str, str, IssueSeverity, RuleCheck]] = [
            ("required-field", "Required Field", "*", IssueSeverity.ERROR, self._check_required),
            ("price-validation", "Price Validation", "price", IssueSeverity.ERROR, self._check_price),
            ("month-validation", "Month Validation", "month", IssueSeverity.ERROR, self._check_month),
            ("nights-validation", "Nights Validation", "nights", IssueSeverity.WARNING, self._check_nights),
            ("pax-validation", "Pax Validation", "pax", IssueSeverity.WARNING, self._check_pax),
            (
                "accommodation-validation",
                "Accommodation Type Validation",
                "accommodation_type",
                IssueSeverity.WARNING,
                self._check_accommodation,
            ),
        ]
        for rule_id, name, field_name, severity, check in defaults:
            self.add_rule(FieldRule(id=rule_id, name=name, check=check, field=field_name, severity=severity))

    def _check_required(self, value: Any, context: ValidationContext) -> list[FieldIssue]:
        if _is_empty(value) and context.field_name in self.required_fields:
            return [
                _issue(
                    IssueSeverity.ERROR,
                    "REQUIRED_FIELD_EMPTY",
                    f'Required field "{context.field_name}" cannot be empty',
                    value,
                    context,
                    suggestion="Provide a valid value for this required field",
                )
            ]
        return []

    def _check_price(self, value: Any, context: ValidationContext) -> list[FieldIssue]:
        if _is_empty(value):
            return []
        amount, _ = parse_locale_number(value)
        if amount is None:
            return [
                _issue(
                    IssueSeverity.ERROR,
                    "INVALID_PRICE_FORMAT",
                    "Price must be a valid number",
                    value,
                    context,
                    expected_type="number",
                    suggestion="Enter a valid price (e.g., 150.50, €200, $250)",
                )
            ]
        if amount < 0:
            return [
                _issue(
                    IssueSeverity.ERROR,
                    "NEGATIVE_PRICE",
                    "Price cannot be negative",
                    value,
                    context,
                    suggestion="Enter a positive price value",
                )
            ]
        if amount == 0:
            return [
                _issue(
                    IssueSeverity.WARNING,
                    "ZERO_PRICE",
                    "Price is zero - please verify this is correct",
                    value,
                    context,
                    suggestion="Confirm if zero price is intentional",
                )
            ]
        if amount > settings.max_reasonable_price:
            return [
                _issue(
                    IssueSeverity.WARNING,
                    "HIGH_PRICE",
                    "Price seems unusually high - please verify",
                    value,
                    context,
                    suggestion="Double-check if this price is correct",
                )
            ]
        return []

    def _check_month(self, value: Any, context: ValidationContext) -> list[FieldIssue]:
        if _is_empty(value) or self.classifier.detect_month(cell_text(value)).is_month:
            return []
        return [
            _issue(
                IssueSeverity.ERROR,
                "INVALID_MONTH",
                "Invalid month format",
                value,
                context,
                suggestion="Use valid month names (January, Feb, Mar) or special periods (Easter, Peak Season)",
            )
        ]

    def _check_count(
        self, value: Any, context: ValidationContext, label: str, code: str, limit: int
    ) -> list[FieldIssue]:
        if _is_empty(value):
            return []
        amount, _ = parse_locale_number(value)
        if amount is None:
            return [
                _issue(
                    IssueSeverity.ERROR,
                    f"INVALID_{code}_FORMAT",
                    f"{label} must be a valid number",
                    value,
                    context,
                    expected_type="number",
                )
            ]
        if amount < 1:
            return [
                _issue(
                    IssueSeverity.ERROR,
                    f"INVALID_{code}_RANGE",
                    f"{label} must be at least 1",
                    value,
                    context,
                )
            ]
        if amount > limit:
            return [
                _issue(
                    IssueSeverity.WARNING,
                    f"HIGH_{code}_COUNT",
                    f"{label} seems unusually high",
                    value,
                    context,
                    suggestion=f"Verify if this {label.lower()} is correct",
                )
            ]
        return []

    def _check_nights(self, value: Any, context: ValidationContext) -> list[FieldIssue]:
        return self._check_count(value, context, "Number of nights", "NIGHTS", settings.max_reasonable_nights)

    def _check_pax(self, value: Any, context: ValidationContext) -> list[FieldIssue]:
        return self._check_count(value, context, "Number of people", "PAX", settings.max_reasonable_pax)

    def _check_accommodation(self, value: Any, context: ValidationContext) -> list[FieldIssue]:
        if _is_empty(value):
            return []
        lowered = cell_text(value).lower()
        if any(word in lowered for word in KNOWN_ACCOMMODATION_WORDS):
            return []
        if self.classifier.detect_accommodation_type(lowered).is_accommodation:
            return []
        return [
            _issue(
                IssueSeverity.WARNING,
                "UNRECOGNIZED_ACCOMMODATION_TYPE",
                "Accommodation type not recognized",
                value,
                context,
                suggestion="Use standard accommodation types (Hotel, Apartment, Villa, Resort, etc.)",
            )
        ]
