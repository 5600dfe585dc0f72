"""Tests for price and currency validation."""

import pytest

from ratesmith.pricing import (
    UNAVAILABLE,
    NormalizedPriceEntry,
    PriceBounds,
    PriceValidationOptions,
    PriceValidator,
    PricingExtractor,
    PricingNormalizer,
    Severity,
)


def _entry(price, month="January", accommodation="Hotel", nights=1, pax=1, currency="EUR"):
    return NormalizedPriceEntry(
        month=month,
        accommodation_type=accommodation,
        nights=nights,
        pax=pax,
        price=price,
        currency=currency,
        is_available=price != UNAVAILABLE,
    )


class TestValidate:
    """Test the default rule set."""

    def test_clean_sheet(self, months_columns_sheet):
        matrix = PricingExtractor(months_columns_sheet).extract_pricing_matrix()
        entries = PricingNormalizer().normalize_pricing(matrix).data

        result = PriceValidator().validate(entries)

        assert result.is_valid
        assert result.warnings == []
        assert result.summary["entries"] == 12
        missing = [i for i in result.issues if i.rule == "missing-prices"]
        assert missing[0].severity == Severity.INFO

    def test_mixed_currencies(self):
        result = PriceValidator().validate([_entry(100), _entry(90, currency="GBP")])

        assert not result.is_valid
        assert result.errors[0].rule == "currency-consistency"
        assert "EUR, GBP" in result.errors[0].message

    def test_expected_currency(self):
        options = PriceValidationOptions(expected_currency="GBP")
        result = PriceValidator(options).validate([_entry(100)])
        assert "Expected GBP but found EUR" in result.errors[0].message

    def test_zero_price(self):
        result = PriceValidator().validate([_entry(0)])
        zero = [i for i in result.issues if i.rule == "zero-prices"]
        assert zero[0].severity == Severity.WARNING

    def test_zero_price_allowed(self):
        options = PriceValidationOptions(allow_zero_prices=True)
        result = PriceValidator(options).validate([_entry(0)])
        zero = [i for i in result.issues if i.rule == "zero-prices"]
        assert zero[0].severity == Severity.INFO

    def test_unreasonable_price(self):
        result = PriceValidator().validate([_entry(2, accommodation="Apartment")])
        issue = next(i for i in result.issues if i.rule == "price-reasonableness")
        assert issue.severity == Severity.WARNING
        assert "unusually low" in issue.message

    def test_progression_fires_on_decrease(self):
        entries = [_entry(700, nights=7, pax=2), _entry(500, nights=14, pax=2)]
        result = PriceValidator().validate(entries)

        issues = [i for i in result.issues if i.rule == "price-progression"]
        assert len(issues) == 1
        assert issues[0].row == 1

    @pytest.mark.parametrize("prices", [[300, 600, 900], [300, 300, 300], [100, 250, 1000]])
    def test_progression_silent_for_monotone(self, prices):
        entries = [_entry(p, nights=n, pax=2) for p, n in zip(prices, [3, 7, 14])]
        result = PriceValidator().validate(entries)
        assert not [i for i in result.issues if i.rule == "price-progression"]

    def test_many_missing_prices(self):
        entries = [_entry(UNAVAILABLE), _entry(UNAVAILABLE), _entry(100)]
        result = PriceValidator().validate(entries)

        missing = next(i for i in result.issues if i.rule == "missing-prices")
        assert missing.severity == Severity.WARNING
        assert "66.7%" in missing.message

    def test_disabled_checks(self):
        options = PriceValidationOptions(
            currency_consistency_check=False,
            price_reasonableness_check=False,
            price_progression_check=False,
        )
        validator = PriceValidator(options)
        assert set(validator.rules) == {"zero-prices", "missing-prices"}


class TestRuleRegistry:
    """Test adding, removing and failing rules."""

    def test_failing_rule_is_reported(self):
        validator = PriceValidator()

        def broken(entries):
            raise RuntimeError("boom")

        validator.add_rule("broken", broken)
        result = validator.validate([_entry(100)])

        failure = next(i for i in result.issues if i.rule == "broken")
        assert failure.severity == Severity.ERROR
        assert "boom" in failure.message
        assert not result.is_valid

    def test_remove_rule(self):
        validator = PriceValidator()
        assert validator.remove_rule("zero-prices")
        assert not validator.remove_rule("zero-prices")


class TestStandaloneChecks:
    """Test currency, number format and reasonableness helpers."""

    @pytest.mark.parametrize(
        "text,code", [("€100", "EUR"), ("£85.50", "GBP"), ("$120", "USD"), ("C$150", "CAD"), ("100 CHF", "CHF")]
    )
    def test_detect_currency(self, text, code):
        check = PriceValidator().detect_and_validate_currency(text)
        assert check.is_valid
        assert check.currency == code

    def test_detect_currency_missing(self):
        check = PriceValidator().detect_and_validate_currency("100")
        assert not check.is_valid
        assert check.amount == 100.0

    @pytest.mark.parametrize(
        "text,fmt,value",
        [
            ("1,234.56", "us", 1234.56),
            ("1.234,56", "european", 1234.56),
            ("1234.56", "plain", 1234.56),
            ("1234", "plain", 1234.0),
        ],
    )
    def test_number_format(self, text, fmt, value):
        check = PriceValidator().validate_number_format(text)
        assert check.is_valid
        assert check.format == fmt
        assert check.value == pytest.approx(value)

    def test_number_format_invalid(self):
        assert not PriceValidator().validate_number_format("abc").is_valid

    def test_reasonableness_scales_by_category(self):
        validator = PriceValidator()
        villa = validator.check_price_reasonableness(1500, "EUR", "Villa")
        apartment = validator.check_price_reasonableness(1500, "EUR", "Apartment")

        assert villa.is_reasonable
        assert villa.maximum == 2000
        assert not apartment.is_reasonable

    def test_custom_bounds(self):
        options = PriceValidationOptions(custom_bounds={"villa": PriceBounds(minimum=50, maximum=300)})
        check = PriceValidator(options).check_price_reasonableness(
            1000, "EUR", "Villa", nights=2, pax=1
        )
        assert not check.is_reasonable
        assert check.per_person_per_night == 500
