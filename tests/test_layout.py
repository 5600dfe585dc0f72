"""Tests for layout detection and metadata extraction."""

from datetime import date

import pytest

from ratesmith.classify import ListFormat
from ratesmith.grid import Worksheet
from ratesmith.layout import LayoutDetector, LayoutType, MetadataExtractor


class TestLayoutDetector:
    """Test layout archetype scoring."""

    def test_months_in_columns(self, months_columns_sheet):
        result = LayoutDetector(months_columns_sheet).detect_layout()

        primary = result.primary_layout
        assert primary.type == LayoutType.MONTHS_COLUMNS
        assert primary.confidence == pytest.approx(1.0)
        assert primary.headers == ["January", "February", "March", "Easter (18-21 Apr)"]
        assert primary.metadata["header_row"] == 0
        assert primary.end_row == 3

    def test_secondary_layouts(self, months_columns_sheet):
        result = LayoutDetector(months_columns_sheet).detect_layout()

        secondary = {layout.type for layout in result.secondary_layouts}
        assert secondary == {LayoutType.PRICING_MATRIX, LayoutType.INCLUSIONS_LIST}
        assert not any("No inclusions section" in s for s in result.suggestions)

    def test_months_in_rows(self, months_rows_sheet):
        result = LayoutDetector(months_rows_sheet).detect_layout()

        primary = result.primary_layout
        assert primary.type == LayoutType.MONTHS_ROWS
        assert primary.confidence == pytest.approx(0.8)
        assert primary.metadata["months_detected"] == ["Jan", "Feb", "Mar", "Apr"]
        assert primary.metadata["accommodation_types"] == ["Hotel", "Apartment", "Villa"]
        assert any("months in rows" in s for s in result.suggestions)

    def test_no_layout(self):
        sheet = Worksheet(name="Notes", rows=[["Call the resort"], ["Ask about parking"]])
        result = LayoutDetector(sheet).detect_layout()

        assert result.primary_layout is None
        assert result.confidence == 0.0
        assert "No clear layout pattern detected" in result.suggestions[0]

    def test_find_pricing_section_columns(self, months_columns_sheet):
        section = LayoutDetector(months_columns_sheet).find_pricing_section()

        assert section.orientation == LayoutType.MONTHS_COLUMNS
        assert section.header_row == 0
        assert section.label_col == 0
        assert section.nights_options == [3, 7]
        assert section.pax_options == [2]

    def test_find_pricing_section_rows(self, months_rows_sheet):
        section = LayoutDetector(months_rows_sheet).find_pricing_section()

        assert section.orientation == LayoutType.MONTHS_ROWS
        assert section.start_row == 1
        assert section.end_row == 4
        assert section.accommodation_types == ["Hotel", "Apartment", "Villa"]

    def test_find_inclusions_section(self, months_columns_sheet):
        region = LayoutDetector(months_columns_sheet).find_inclusions_section()

        assert region.header_text == "What's Included"
        assert region.format == ListFormat.BULLET_POINTS
        assert len(region.content) == 3

    def test_no_pricing_section(self):
        sheet = Worksheet(name="Notes", rows=[["Inclusions:"], ["• Breakfast"], ["• Pool"]])
        assert LayoutDetector(sheet).find_pricing_section() is None


class TestMetadataExtractor:
    """Test resort name, currency, period and validity extraction."""

    def test_resort_name_from_tab(self, months_columns_sheet):
        resort = MetadataExtractor(months_columns_sheet).extract_resort_name()
        assert resort.value == "Benidorm"
        assert resort.source == "sheet-name"

    def test_resort_name_from_title_cell(self):
        sheet = Worksheet(name="Sheet1", rows=[["Resort: Playa Blanca"], ["Month", "Price"]])
        resort = MetadataExtractor(sheet).extract_resort_name()
        assert resort.value == "Playa Blanca"
        assert resort.source == "title-cell"

    def test_generic_tab_without_title(self):
        sheet = Worksheet(name="Prices 2025", rows=[["Month", "Price"]])
        assert MetadataExtractor(sheet).extract_resort_name().value is None

    @pytest.mark.parametrize("symbol,code", [("€", "EUR"), ("£", "GBP"), ("$", "USD")])
    def test_currency_symbols(self, symbol, code):
        sheet = Worksheet(name="S", rows=[["Hotel", f"{symbol}100", f"{symbol}120"]])
        detection = MetadataExtractor(sheet).detect_currency()
        assert detection.currency == code
        assert not detection.is_default

    def test_currency_majority_vote(self):
        sheet = Worksheet(name="S", rows=[["€100", "€120", "£90"]])
        detection = MetadataExtractor(sheet).detect_currency()
        assert detection.currency == "EUR"
        assert detection.occurrences == {"EUR": 2, "GBP": 1}
        assert detection.confidence == pytest.approx(2 / 3)

    def test_currency_default(self, months_rows_sheet):
        detection = MetadataExtractor(months_rows_sheet).detect_currency()
        assert detection.currency == "EUR"
        assert detection.is_default
        assert detection.confidence == pytest.approx(0.3)

    def test_currency_region(self):
        sheet = Worksheet(name="S", rows=[["£10", "€100"], ["", "€200"]])
        detection = MetadataExtractor(sheet).detect_currency((0, 2, 1, 2))
        assert detection.currency == "EUR"

    def test_special_periods(self, months_columns_sheet):
        periods = MetadataExtractor(months_columns_sheet).identify_special_periods()

        assert [p.name for p in periods] == ["Easter"]
        assert periods[0].date_range == "18-21 Apr"
        assert periods[0].period_type == "holiday"
        assert (periods[0].row, periods[0].col) == (0, 4)

    def test_validity(self):
        sheet = Worksheet(
            name="S",
            rows=[["Valid from 01/04/2025"], ["Valid until 31/10/25"], ["Summer 2025 Season"]],
        )
        validity = MetadataExtractor(sheet).extract_validity()

        assert validity.valid_from == date(2025, 4, 1)
        assert validity.valid_to == date(2025, 10, 31)
        assert validity.season_year == 2025

    def test_extract_metadata(self, months_columns_sheet):
        metadata = MetadataExtractor(months_columns_sheet).extract_metadata()

        assert metadata.resort_name.value == "Benidorm"
        assert metadata.currency.currency == "EUR"
        assert metadata.confidence["special_periods"] == pytest.approx(0.9)
