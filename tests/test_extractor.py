"""Tests for pricing matrix extraction."""

from ratesmith.grid import MergeRange, Worksheet
from ratesmith.pricing import PricingExtractor, PricingNormalizer


class TestMonthsColumnsExtraction:
    """Test extraction with months across the header row."""

    def test_matrix_shape(self, months_columns_sheet):
        matrix = PricingExtractor(months_columns_sheet).extract_pricing_matrix()

        assert matrix.months == ["January", "February", "March", "Easter (18-21 Apr)"]
        assert len(matrix.accommodation_types) == 3
        assert all(len(row) == 4 for row in matrix.price_grid)

    def test_labels_decomposed(self, months_columns_sheet):
        matrix = PricingExtractor(months_columns_sheet).extract_pricing_matrix()

        hotel = matrix.accommodation_types[0]
        assert hotel.name == "Hotel"
        assert hotel.code == "HTL"
        assert hotel.category == "hotel"
        assert (hotel.nights, hotel.pax) == (3, 2)
        assert hotel.description == "Hotel 3 nights 2 pax"
        assert matrix.accommodation_types[2].code == "APT"
        assert matrix.nights_options == [3, 7]
        assert matrix.pax_options == [2]

    def test_metadata(self, months_columns_sheet):
        matrix = PricingExtractor(months_columns_sheet).extract_pricing_matrix()

        assert matrix.metadata.currency == "EUR"
        assert matrix.metadata.resort_name == "Benidorm"
        assert matrix.metadata.special_periods == ["Easter (18-21 Apr)"]

    def test_price_cells(self, months_columns_sheet):
        matrix = PricingExtractor(months_columns_sheet).extract_pricing_matrix()

        first = matrix.price_grid[0][0]
        assert first.value == 450.0
        assert first.cell_reference == "B2"
        assert first.is_available

        unavailable = matrix.price_grid[0][2]
        assert not unavailable.is_available
        assert unavailable.notes == "n/a"

        blank = matrix.price_grid[1][3]
        assert blank.value is None
        assert not blank.is_available

        assert matrix.price_grid[1][2].value == 1000.0

    def test_inclusions_below_are_ignored(self, months_columns_sheet):
        matrix = PricingExtractor(months_columns_sheet).extract_pricing_matrix()
        names = [t.name for t in matrix.accommodation_types]
        assert "What's Included" not in names

    def test_merged_price_spans_months(self, merged_sheet):
        matrix = PricingExtractor(merged_sheet).extract_pricing_matrix()

        villa = matrix.price_grid[0]
        assert [cell.value for cell in villa] == [700.0, 700.0, 900.0]
        assert villa[1].is_merged
        assert not matrix.price_grid[1][1].is_merged
        assert matrix.metadata.currency == "GBP"

    def test_group_heading_row(self):
        sheet = Worksheet(
            name="Tiers",
            rows=[
                ["", "May", "June", "July"],
                ["Villa", "", "", ""],
                ["2 people", 500, 550, 600],
                ["4 people", 700, 750, 800],
            ],
        )
        matrix = PricingExtractor(sheet).extract_pricing_matrix()

        assert [t.name for t in matrix.accommodation_types] == ["Villa", "Villa"]
        assert [t.pax for t in matrix.accommodation_types] == [2, 4]

    def test_price_notes(self):
        sheet = Worksheet(
            name="Notes",
            rows=[
                ["Type", "April", "May", "June"],
                ["Hotel", "€100 (min 3 nights)", "€110", "€120*"],
            ],
        )
        matrix = PricingExtractor(sheet).extract_pricing_matrix()

        cell = matrix.price_grid[0][0]
        assert cell.value == 100.0
        assert cell.notes == "min 3 nights"


class TestMonthsRowsExtraction:
    """Test extraction with months down the first column."""

    def test_matrix(self, months_rows_sheet):
        matrix = PricingExtractor(months_rows_sheet).extract_pricing_matrix()

        assert matrix.months == ["Jan", "Feb", "Mar", "Apr"]
        assert [t.name for t in matrix.accommodation_types] == ["Hotel", "Apartment", "Villa"]
        assert [t.code for t in matrix.accommodation_types] == ["HTL", "APT", "VIL"]
        assert [cell.value for cell in matrix.price_grid[0]] == [100.0, 110.0, 120.0, 130.0]

    def test_sold_out(self, months_rows_sheet):
        matrix = PricingExtractor(months_rows_sheet).extract_pricing_matrix()

        cell = matrix.price_grid[1][1]
        assert not cell.is_available
        assert cell.notes == "sold out"
        assert cell.cell_reference == "C3"

    def test_default_currency(self, months_rows_sheet):
        extractor = PricingExtractor(months_rows_sheet)
        assert extractor.detect_currency() == "EUR"


class TestNoPricing:
    """Test sheets without a pricing block."""

    def test_returns_none(self):
        sheet = Worksheet(name="Notes", rows=[["Call the resort"], ["Ask about parking"]])
        assert PricingExtractor(sheet).extract_pricing_matrix() is None

    def test_merge_outside_block(self):
        sheet = Worksheet(
            name="Header",
            rows=[["Summer rates"], ["Type", "May", "June", "July"], ["Hotel", 80, 90, 100]],
            merges=[MergeRange(top=0, left=0, bottom=0, right=3)],
        )
        matrix = PricingExtractor(sheet).extract_pricing_matrix()
        assert matrix.months == ["May", "June", "July"]


class TestEmptyLines:
    """Test that lines without prices are kept as unavailable."""

    def test_headed_tier_missing_from_ragged_rows(self):
        sheet = Worksheet(
            name="Ragged",
            rows=[
                ["Month", "Hotel", "Apartment", "Villa"],
                ["Jan", 100, 80],
                ["Feb", 110, 85],
                ["Mar", 120, 90],
            ],
        )
        matrix = PricingExtractor(sheet).extract_pricing_matrix()

        assert [t.name for t in matrix.accommodation_types] == ["Hotel", "Apartment", "Villa"]
        villa = matrix.price_grid[2]
        assert [cell.is_available for cell in villa] == [False, False, False]
        assert villa[0].cell_reference == "D2"

        summary = PricingNormalizer().normalize_pricing(matrix).summary
        assert summary.total_entries == 9
        assert summary.unavailable_entries == 3

    def test_trailing_line_without_prices(self):
        sheet = Worksheet(
            name="Trailing",
            rows=[
                ["Type", "January", "February", "March"],
                ["Hotel", "€150", "€160", "€170"],
                ["Apartment", "€100", "", "€120"],
                ["Villa", "", "", ""],
            ],
        )
        matrix = PricingExtractor(sheet).extract_pricing_matrix()

        assert [t.name for t in matrix.accommodation_types] == ["Hotel", "Apartment", "Villa"]
        summary = PricingNormalizer().normalize_pricing(matrix).summary
        assert summary.total_entries == 9
        assert summary.unavailable_entries == 4

    def test_empty_line_followed_by_another_type(self):
        sheet = Worksheet(
            name="Between",
            rows=[
                ["Type", "January", "February", "March"],
                ["Villa", "", "", ""],
                ["Apartment", "€100", "€110", "€120"],
            ],
        )
        matrix = PricingExtractor(sheet).extract_pricing_matrix()

        assert [t.name for t in matrix.accommodation_types] == ["Villa", "Apartment"]
        assert not any(cell.is_available for cell in matrix.price_grid[0])
        assert [t.pax for t in matrix.accommodation_types] == [None, None]


class TestAnnotatedCells:
    """Test prices carrying words next to the amount."""

    def test_annotation_keeps_price(self):
        sheet = Worksheet(
            name="Boards",
            rows=[
                ["Type", "April", "May", "June"],
                ["Hotel", "€150 (full board)", "Sold out (June)", "Closed until May"],
            ],
        )
        matrix = PricingExtractor(sheet).extract_pricing_matrix()
        priced, sold_out, closed = matrix.price_grid[0]

        assert priced.value == 150.0
        assert priced.is_available
        assert priced.notes == "full board"

        assert not sold_out.is_available
        assert sold_out.notes == "Sold out (June)"
        assert not closed.is_available
        assert closed.notes == "Closed until May"


class TestBlankRunTerminator:
    """Test the configurable blank run that ends a block."""

    @staticmethod
    def _gapped_header_sheet():
        return Worksheet(
            name="Gaps",
            rows=[
                ["Type", "January", "February", "March", "", "", "June"],
                ["Hotel", 100, 110, 120, "", "", 150],
            ],
        )

    def test_short_column_gap_is_crossed(self):
        matrix = PricingExtractor(self._gapped_header_sheet()).extract_pricing_matrix()
        assert matrix.months == ["January", "February", "March", "June"]

    def test_column_gap_ends_periods(self):
        extractor = PricingExtractor(self._gapped_header_sheet(), blank_run_terminator=2)
        matrix = extractor.extract_pricing_matrix()
        assert matrix.months == ["January", "February", "March"]

    def test_row_gap(self):
        sheet = Worksheet(
            name="Rows",
            rows=[
                ["Type", "January", "February", "March"],
                ["Hotel", 100, 110, 120],
                [],
                ["Apartment", 80, 90, 95],
            ],
        )

        default = PricingExtractor(sheet).extract_pricing_matrix()
        assert [t.name for t in default.accommodation_types] == ["Hotel", "Apartment"]

        strict = PricingExtractor(sheet, blank_run_terminator=1).extract_pricing_matrix()
        assert [t.name for t in strict.accommodation_types] == ["Hotel"]
