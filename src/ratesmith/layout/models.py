"""Data models for sheet layout and metadata detection."""

from datetime import date
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from ..classify.models import ListFormat


class LayoutType(str, Enum):
    """Layout archetypes, in tie-break order."""

    MONTHS_ROWS = "months-rows"
    MONTHS_COLUMNS = "months-columns"
    PRICING_MATRIX = "pricing-matrix"
    INCLUSIONS_LIST = "inclusions-list"


class LayoutPattern(BaseModel):
    """One detected layout archetype and where it sits in the sheet."""

    type: LayoutType
    confidence: float
    start_row: int
    start_col: int
    end_row: int
    end_col: int
    headers: list[str] = Field(default_factory=list)
    data_pattern: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)


class LayoutResult(BaseModel):
    """Primary and secondary layouts found in a sheet."""

    primary_layout: Optional[LayoutPattern] = None
    secondary_layouts: list[LayoutPattern] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    confidence: float = 0.0


class PricingSection(BaseModel):
    """Bounding box and orientation of a pricing block."""

    orientation: LayoutType  # MONTHS_ROWS or MONTHS_COLUMNS
    header_row: int  # -1 when the block has no header row
    label_col: int
    start_row: int
    end_row: int
    start_col: int
    end_col: int
    accommodation_types: list[str] = Field(default_factory=list)
    nights_options: list[int] = Field(default_factory=list)
    pax_options: list[int] = Field(default_factory=list)


class InclusionsRegion(BaseModel):
    """Bounding box of an inclusions block found during layout detection."""

    start_row: int
    end_row: int
    start_col: int
    end_col: int
    header_text: Optional[str] = None
    content: list[str] = Field(default_factory=list)
    format: ListFormat = ListFormat.PLAIN_TEXT


class ResortName(BaseModel):
    """Resort name derived from the sheet."""

    value: Optional[str] = None
    confidence: float = 0.0
    source: str = "none"  # "sheet-name", "title-cell" or "none"


class CurrencyDetection(BaseModel):
    """Majority-vote currency detection."""

    currency: str
    confidence: float
    occurrences: dict[str, int] = Field(default_factory=dict)
    is_default: bool = False


class SpecialPeriod(BaseModel):
    """A named pricing window such as Easter or Peak Season."""

    name: str
    period_type: str  # "holiday" or "season"
    description: str = ""
    label: str = ""  # Cell text the period was found in
    date_range: Optional[str] = None
    row: Optional[int] = None
    col: Optional[int] = None
    confidence: float = 0.0


class ValidityPeriod(BaseModel):
    """Dates or season year the price list applies to."""

    valid_from: Optional[date] = None
    valid_to: Optional[date] = None
    season_year: Optional[int] = None
    confidence: float = 0.0


class SheetMetadata(BaseModel):
    """Aggregated metadata with per-field confidence."""

    resort_name: ResortName
    currency: CurrencyDetection
    special_periods: list[SpecialPeriod] = Field(default_factory=list)
    validity: ValidityPeriod = Field(default_factory=ValidityPeriod)
    confidence: dict[str, float] = Field(default_factory=dict)
