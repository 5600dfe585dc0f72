"""Data models for single-cell content classification."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class ContentType(str, Enum):
    """Semantic type of a single cell. Declaration order breaks ties."""

    MONTH = "month"
    ACCOMMODATION = "accommodation"
    NIGHTS_PAX = "nights-pax"
    PRICE = "price"
    TEXT = "text"
    EMPTY = "empty"


class ListFormat(str, Enum):
    """Formatting of a list of text lines."""

    BULLET_POINTS = "bullet-points"
    NUMBERED = "numbered"
    PLAIN_TEXT = "plain-text"


class MonthFormat(str, Enum):
    """How a month or period label was written."""

    FULL = "full"
    ABBREVIATED = "abbreviated"
    SPECIAL = "special"


class AccommodationCategory(str, Enum):
    """Broad lodging category."""

    HOTEL = "hotel"
    APARTMENT = "apartment"
    VILLA = "villa"
    RESORT = "resort"
    SELF_CATERING = "self-catering"
    HOSTEL = "hostel"
    OTHER = "other"


class MonthMatch(BaseModel):
    """Result of month detection."""

    is_month: bool
    text: str
    format: Optional[MonthFormat] = None
    normalized_name: str = ""
    confidence: float = 0.0


class AccommodationMatch(BaseModel):
    """Result of accommodation-type detection."""

    is_accommodation: bool
    type: str
    category: AccommodationCategory = AccommodationCategory.OTHER
    confidence: float = 0.0


class NightsPaxMatch(BaseModel):
    """Result of nights/pax pattern extraction."""

    has_nights: bool = False
    nights: Optional[int] = None
    has_pax: bool = False
    pax: Optional[int] = None
    pax_max: Optional[int] = None  # Upper bound for tier labels like "6-11 People"
    pattern: str = ""
    confidence: float = 0.0


class ClassifiedToken(BaseModel):
    """A cell value tagged with its semantic type."""

    type: ContentType
    confidence: float
    parsed_value: Any = None
    details: dict[str, Any] = Field(default_factory=dict)


class MonthSequence(BaseModel):
    """Calendar contiguity check over a list of labels."""

    is_sequence: bool
    months: list[str] = Field(default_factory=list)
    confidence: float = 0.0
    gaps: list[int] = Field(default_factory=list)


class SequenceAnalysis(BaseModel):
    """Dominant content type across a row or column."""

    primary_type: ContentType
    confidence: float
    distribution: dict[str, int] = Field(default_factory=dict)
    tokens: list[ClassifiedToken] = Field(default_factory=list)
