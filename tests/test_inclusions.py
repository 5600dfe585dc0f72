"""Tests for inclusions detection and text processing."""

import pytest

from ratesmith.classify import ListFormat
from ratesmith.grid import Worksheet
from ratesmith.inclusions import (
    DetectionSource,
    DisplayStyle,
    Emphasis,
    InclusionsSectionDetector,
    InclusionsTextProcessor,
    clean_text,
)


@pytest.fixture
def processor():
    return InclusionsTextProcessor()


class TestSectionDetector:
    """Test inclusions section detection."""

    def test_keyword_section(self, months_columns_sheet):
        result = InclusionsSectionDetector(months_columns_sheet).detect_inclusions_sections()

        assert len(result.sections) == 1
        section = result.sections[0]
        assert section.header_text == "What's Included"
        assert section.content == ["• Daily breakfast", "• Free WiFi", "• Airport transfers"]
        assert section.format == ListFormat.BULLET_POINTS
        assert section.source == DetectionSource.KEYWORD
        assert (section.start_row, section.end_row) == (7, 10)
        assert section.confidence == pytest.approx(1.0)
        assert result.global_inclusions == section
        assert result.by_accommodation_type == {}

    def test_no_sections(self, months_rows_sheet):
        detector = InclusionsSectionDetector(months_rows_sheet)
        result = detector.detect_inclusions_sections()

        assert result.sections == []
        assert result.confidence == 0.0
        assert "No inclusions sections detected" in result.suggestions[0]
        assert not detector.has_inclusions()
        assert detector.best_section() is None

    def test_per_accommodation_sections(self):
        sheet = Worksheet(
            name="Packages",
            rows=[
                ["Hotel", "", "Villa"],
                ["Inclusions:", "", "Inclusions:"],
                ["• Breakfast buffet", "", "• Private pool"],
                ["• Daily cleaning", "", "• Welcome pack"],
            ],
        )
        result = InclusionsSectionDetector(sheet).detect_inclusions_sections()

        assert set(result.by_accommodation_type) == {"Hotel", "Villa"}
        assert result.by_accommodation_type["Villa"].content == ["• Private pool", "• Welcome pack"]
        assert result.global_inclusions is None
        assert result.confidence == pytest.approx(1.0)

    def test_nearby_repeated_header_is_dropped(self):
        sheet = Worksheet(
            name="Offset",
            rows=[
                ["Inclusions:", ""],
                ["• Breakfast buffet", "Inclusions:"],
                ["• Daily cleaning", "• Sauna access"],
                ["• Pool towels", "• Gym access"],
            ],
        )
        result = InclusionsSectionDetector(sheet).detect_inclusions_sections()

        assert len(result.sections) == 1
        assert result.sections[0].start_col == 0
        assert result.sections[0].content == ["• Breakfast buffet", "• Daily cleaning", "• Pool towels"]

    def test_nearby_repeated_header_kept_with_distance_zero(self):
        sheet = Worksheet(
            name="Offset",
            rows=[
                ["Inclusions:", ""],
                ["• Breakfast buffet", "Inclusions:"],
                ["• Daily cleaning", "• Sauna access"],
            ],
        )
        detector = InclusionsSectionDetector(sheet, dedup_distance=0)
        assert len(detector.detect_inclusions_sections().sections) == 2

    def test_pattern_section_without_header(self):
        sheet = Worksheet(
            name="List",
            rows=[
                ["Apartment"],
                ["1. Weekly linen change"],
                ["2. Pool access"],
                ["3. Free parking"],
            ],
        )
        result = InclusionsSectionDetector(sheet).detect_inclusions_sections()

        section = result.sections[0]
        assert section.source == DetectionSource.PATTERN
        assert section.format == ListFormat.NUMBERED
        assert section.start_row == 1
        assert section.accommodation_type == "Apartment"

    def test_short_pattern_run_ignored(self):
        sheet = Worksheet(name="List", rows=[["• Breakfast"], ["• Pool"]])
        assert InclusionsSectionDetector(sheet).detect_inclusions_sections().sections == []

    def test_blank_run_ends_section(self):
        sheet = Worksheet(
            name="S",
            rows=[["Inclusions"], ["Breakfast"], [""], [""], [""], ["Unrelated footnote"]],
        )
        section = InclusionsSectionDetector(sheet).best_section()
        assert section.content == ["Breakfast"]
        assert section.format == ListFormat.PLAIN_TEXT

    def test_next_header_ends_section(self):
        sheet = Worksheet(
            name="S",
            rows=[["Inclusions:"], ["• Breakfast"], ["Amenities:"], ["• Sauna"], ["• Gym"]],
        )
        result = InclusionsSectionDetector(sheet).detect_inclusions_sections()
        contents = sorted(s.content for s in result.sections)
        assert contents == [["• Breakfast"], ["• Sauna", "• Gym"]]

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("What's Included", True),
            ("Hotel inclusions", True),
            ("Package includes:", True),
            ("Airport transfers included", False),
            ("• Included towels", False),
            ("Price", False),
        ],
    )
    def test_is_header(self, months_rows_sheet, text, expected):
        assert InclusionsSectionDetector(months_rows_sheet).is_header(text) is expected

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("• Daily breakfast", True),
            ("• 100", False),
            ("- Jan", False),
            ("Hotel", False),
            ("ab", False),
        ],
    )
    def test_is_inclusion_line(self, months_rows_sheet, text, expected):
        assert InclusionsSectionDetector(months_rows_sheet).is_inclusion_line(text) is expected


class TestCleanText:
    """Test inclusion text cleaning."""

    def test_daily_breakfast(self):
        assert clean_text("• daily breakfast.") == "Daily breakfast"

    def test_emphasis_and_whitespace(self):
        assert clean_text("  **Free   WiFi**  ") == "Free WiFi"

    def test_ellipsis_kept(self):
        assert clean_text("and more...") == "And more..."

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("breakfast. .", "Breakfast"),
            ("• - breakfast", "Breakfast"),
            ("**pool** .", "Pool"),
            ("1. 2. spa", "Spa"),
        ],
    )
    def test_stacked_markers(self, text, expected):
        assert clean_text(text) == expected

    @pytest.mark.parametrize(
        "text",
        [
            "• daily breakfast.",
            "2) *Pool access*",
            "  free  parking ",
            "breakfast. .",
            "• - breakfast",
            "  free   wifi  .",
            "**pool** .",
            "1. 2. spa",
            "and more...",
            "\tlate checkout .",
        ],
    )
    def test_idempotent(self, text):
        once = clean_text(text)
        assert clean_text(once) == once


class TestProcessInclusionItem:
    """Test single-item processing."""

    def test_daily_breakfast(self, processor):
        item = processor.process_inclusion_item("• daily breakfast.")

        assert item.cleaned_text == "Daily breakfast"
        assert item.is_valid
        assert item.category == "Dining"
        assert item.confidence == pytest.approx(0.8)

    @pytest.mark.parametrize(
        "text,issue",
        [
            ("ok", "Text too short"),
            ("TBC", "Appears to be placeholder text"),
            ("Item 3", "Appears to be placeholder text"),
            ("12 34", "Contains only numbers"),
            ("a1 b2 c3", "No meaningful words detected"),
        ],
    )
    def test_invalid_items(self, processor, text, issue):
        item = processor.process_inclusion_item(text)
        assert not item.is_valid
        assert item.issues == [issue]

    def test_too_long(self):
        item = InclusionsTextProcessor(max_length=20).process_inclusion_item(
            "Breakfast served daily in the main restaurant"
        )
        assert item.issues == ["Text too long (may be description rather than inclusion)"]

    def test_invalid_confidence_is_scaled(self, processor):
        valid = processor.process_inclusion_item("Pool")
        invalid = processor.process_inclusion_item("TBC")
        assert invalid.confidence < 0.3
        assert valid.confidence > invalid.confidence

    def test_vague_terms_penalized(self, processor):
        plain = processor.process_inclusion_item("Towels for the beach")
        vague = processor.process_inclusion_item("Various towels for the beach")
        assert vague.confidence < plain.confidence

    @pytest.mark.parametrize("text", ["• daily breakfast.", "breakfast. .", "• - breakfast", "1. 2. spa"])
    def test_idempotent(self, processor, text):
        first = processor.process_inclusion_item(text)
        second = processor.process_inclusion_item(first.cleaned_text)

        assert second.cleaned_text == first.cleaned_text
        assert second.is_valid == first.is_valid
        assert second.category == first.category

    @pytest.mark.parametrize(
        "text,emphasis",
        [
            ("**Free WiFi**", Emphasis.BOLD),
            ("• FREE PARKING", Emphasis.BOLD),
            ("*Sea view*", Emphasis.ITALIC),
            ("_Sea view_", Emphasis.ITALIC),
            ("* Sea view", None),
            ("- Free WiFi", None),
        ],
    )
    def test_emphasis(self, processor, text, emphasis):
        assert processor.detect_emphasis(text) == emphasis

    @pytest.mark.parametrize(
        "text,category",
        [
            ("Free WiFi", "Internet"),
            ("Airport transfers", "Transport"),
            ("Outdoor pool", "Facilities"),
            ("Free parking", "Parking"),
            ("Air conditioning", "Climate"),
            ("Sea view balcony", "Amenities"),
            ("Welcome pack", "Other"),
        ],
    )
    def test_categorize(self, processor, text, category):
        assert processor.categorize(text) == category


class TestProcessInclusions:
    """Test batch processing and presentation."""

    def test_batch(self, processor):
        result = processor.process_inclusions(
            ["• Daily breakfast", "• Free WiFi", "• Airport transfers", "• TBC"]
        )

        assert len(result.items) == 4
        assert len(result.valid_items) == 3
        assert [i.raw_text for i in result.invalid_items] == ["• TBC"]
        assert list(result.categories) == ["Dining", "Internet", "Transport"]
        assert 0 < result.overall_quality < 1
        assert "1 inclusion items need attention: • TBC" in result.suggestions

    def test_empty_batch(self, processor):
        result = processor.process_inclusions([])
        assert result.overall_quality == 0.0
        assert "Consider adding more inclusions to provide better value perception." in result.suggestions

    def test_format_for_display(self, processor):
        items = processor.process_inclusions(["**free wifi**", "daily breakfast", "TBC"]).items

        assert processor.format_for_display(items) == ["• **Free wifi**", "• Daily breakfast"]
        assert processor.format_for_display(items, DisplayStyle.NUMBERED) == [
            "1. **Free wifi**",
            "2. Daily breakfast",
        ]
        assert processor.format_for_display(items, DisplayStyle.PLAIN)[1] == "Daily breakfast"

    def test_merge_similar(self, processor):
        items = processor.process_inclusions(
            ["Free WiFi access", "Free WiFi access throughout", "Daily breakfast", "TBC"]
        ).items
        merged = processor.merge_similar_inclusions(items)

        texts = [item.cleaned_text for item in merged]
        assert len(merged) == 2
        assert "Daily breakfast" in texts
        assert any(text.startswith("Free WiFi access") for text in texts)

    def test_group_by_category(self, processor):
        items = processor.process_inclusions(["Outdoor pool", "Gym access", "Daily breakfast"]).items
        groups = processor.group_by_category(items)

        assert list(groups) == ["Facilities", "Dining"]
        assert len(groups["Facilities"]) == 2
