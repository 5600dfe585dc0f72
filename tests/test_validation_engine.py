"""Tests for the field validation engine."""

import pytest

from ratesmith.validation import (
    DataValidationEngine,
    FieldRule,
    IssueSeverity,
    ValidationContext,
)


@pytest.fixture
def engine():
    return DataValidationEngine()


def _codes(result):
    return [issue.code for issue in result.errors + result.warnings + result.info]


class TestValidateField:
    """Test the default rules on single values."""

    def test_required_empty(self, engine):
        result = engine.validate_field("month", "")
        assert not result.is_valid
        assert _codes(result) == ["REQUIRED_FIELD_EMPTY"]

    def test_optional_empty(self, engine):
        assert engine.validate_field("nights", None).is_valid

    @pytest.mark.parametrize(
        "value,code",
        [
            ("abc", "INVALID_PRICE_FORMAT"),
            ("-10", "NEGATIVE_PRICE"),
            ("0", "ZERO_PRICE"),
            ("€25,000", "HIGH_PRICE"),
        ],
    )
    def test_price_codes(self, engine, value, code):
        assert _codes(engine.validate_field("price", value)) == [code]

    def test_zero_price_is_warning(self, engine):
        result = engine.validate_field("price", 0)
        assert result.is_valid
        assert result.warnings[0].severity == IssueSeverity.WARNING

    def test_valid_price(self, engine):
        result = engine.validate_field("price", "€150")
        assert result.is_valid
        assert _codes(result) == []

    def test_month(self, engine):
        assert engine.validate_field("month", "Easter").is_valid
        assert _codes(engine.validate_field("month", "Smarch")) == ["INVALID_MONTH"]

    @pytest.mark.parametrize(
        "value,code",
        [("x", "INVALID_NIGHTS_FORMAT"), ("0", "INVALID_NIGHTS_RANGE"), ("45", "HIGH_NIGHTS_COUNT")],
    )
    def test_nights_codes(self, engine, value, code):
        assert _codes(engine.validate_field("nights", value)) == [code]

    def test_pax_high(self, engine):
        result = engine.validate_field("pax", 30)
        assert result.is_valid
        assert _codes(result) == ["HIGH_PAX_COUNT"]

    def test_accommodation(self, engine):
        assert _codes(engine.validate_field("accommodation_type", "Double room")) == []
        assert _codes(engine.validate_field("accommodation_type", "Yurt")) == [
            "UNRECOGNIZED_ACCOMMODATION_TYPE"
        ]

    def test_context_carried_into_issue(self, engine):
        context = ValidationContext(row=4, column="Cost")
        issue = engine.validate_field("price", "abc", context).errors[0]

        assert issue.row == 4
        assert issue.column == "Cost"
        assert issue.field == "price"


class TestRuleRegistry:
    """Test custom rules and failure handling."""

    def test_custom_validator(self, engine):
        rule = engine.add_custom_validator(
            "even-nights", lambda value, ctx: int(value) % 2 == 0, field="nights",
            severity=IssueSeverity.WARNING,
        )

        assert rule.id == "custom-even-nights"
        result = engine.validate_field("nights", "3")
        assert _codes(result) == ["CUSTOM_VALIDATION_FAILED"]
        assert result.is_valid
        assert engine.validate_field("nights", "").is_valid

    def test_raising_rule(self, engine):
        def explode(value, context):
            raise ValueError("bad rule")

        engine.add_rule(FieldRule(id="explode", name="Explode", check=explode, field="price"))
        result = engine.validate_field("price", "€100")

        assert _codes(result) == ["RULE_EXECUTION_FAILED"]
        assert result.errors[0].context["rule_id"] == "explode"

    def test_remove_rule(self, engine):
        assert engine.remove_rule("price-validation")
        assert engine.validate_field("price", "abc").is_valid
        assert not engine.remove_rule("price-validation")

    def test_required_fields_are_configurable(self, engine):
        engine.required_fields.add("pax")
        assert _codes(engine.validate_field("pax", "")) == ["REQUIRED_FIELD_EMPTY"]


class TestValidateData:
    """Test dataset reports."""

    def test_row_attribution(self, engine):
        rows = [
            ["January", "€150", "7"],
            ["Smarch", "€120", "3"],
            ["March", "0", "3"],
        ]
        report = engine.validate_data(rows, ["Month", "Price", "Nights"], {
            "Month": "month", "Price": "price", "Nights": "nights",
        })

        assert not report.is_valid
        assert report.summary.total_rows == 3
        assert report.summary.valid_rows == 1
        assert report.summary.error_rows == 1
        assert report.summary.warning_rows == 1
        assert report.errors[0].row == 1
        assert report.errors[0].column == "Month"
        assert report.field_summary["Month"].common_errors == ["INVALID_MONTH"]
        assert report.field_summary["Price"].valid_count == 3

    def test_unmapped_headers_use_own_name(self, engine):
        report = engine.validate_data([["", "abc"]], ["month", "price"])
        codes = [issue.code for issue in report.errors]
        assert codes == ["REQUIRED_FIELD_EMPTY", "INVALID_PRICE_FORMAT"]

    def test_short_rows(self, engine):
        report = engine.validate_data([["January"]], ["month", "price"])
        assert report.errors[0].code == "REQUIRED_FIELD_EMPTY"
        assert report.errors[0].field == "price"

    def test_related_fields(self, engine):
        seen = []

        def record(value, context):
            seen.append(dict(context.related_fields))
            return []

        engine.add_rule(FieldRule(id="record", name="Record", check=record, field="price"))
        engine.validate_data([["June", "€100"]], ["Month", "Price"], {"Price": "price"})
        assert seen == [{"Month": "June"}]

    def test_suggestions(self, engine):
        rows = [["Smarch", "abc"] for _ in range(6)]
        report = engine.validate_data(rows, ["Month", "Price"], {"Month": "month", "Price": "price"})

        assert 'Field "Month" has a high error rate (100%) - review data format' in report.suggestions
        assert any(s.startswith("6 price format errors") for s in report.suggestions)
        assert any(s.startswith("6 invalid month formats") for s in report.suggestions)

    def test_many_warnings_suggestion(self, engine):
        rows = [["January", "0"], ["February", "0"], ["March", "0"]]
        report = engine.validate_data(rows, ["Month", "Price"], {"Month": "month", "Price": "price"})

        assert report.is_valid
        assert report.summary.warning_rows == 3
        assert "Many warnings detected - review data quality to improve accuracy" in report.suggestions
