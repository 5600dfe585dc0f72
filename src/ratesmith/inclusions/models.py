"""Data models for inclusions sections and inclusion line items."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from ..classify import ListFormat


class DetectionSource(str, Enum):
    """How an inclusions section was found."""

    KEYWORD = "keyword"  # Under an inclusion keyword header
    PATTERN = "pattern"  # A run of marked lines without a header


class Emphasis(str, Enum):
    BOLD = "bold"
    ITALIC = "italic"


class DisplayStyle(str, Enum):
    """Rendering style for format_for_display."""

    BULLET = "bullet"
    NUMBERED = "numbered"
    PLAIN = "plain"


class InclusionsSection(BaseModel):
    """A block of inclusion lines found on a sheet."""

    header_text: Optional[str] = None
    content: list[str] = Field(default_factory=list)
    format: ListFormat = ListFormat.PLAIN_TEXT
    accommodation_type: Optional[str] = None
    confidence: float = 0.0
    source: DetectionSource = DetectionSource.KEYWORD
    start_row: int
    end_row: int
    start_col: int
    end_col: int


class InclusionsDetectionResult(BaseModel):
    """All inclusions sections of a sheet, best first."""

    sections: list[InclusionsSection] = Field(default_factory=list)
    by_accommodation_type: dict[str, InclusionsSection] = Field(default_factory=dict)
    global_inclusions: Optional[InclusionsSection] = None
    confidence: float = 0.0
    suggestions: list[str] = Field(default_factory=list)


class InclusionItem(BaseModel):
    """One processed inclusion line."""

    raw_text: str
    cleaned_text: str
    is_valid: bool
    issues: list[str] = Field(default_factory=list)
    category: str = "Other"
    confidence: float = 0.0
    emphasis: Optional[Emphasis] = None


class InclusionsProcessingResult(BaseModel):
    """Batch outcome of processing inclusion lines."""

    items: list[InclusionItem] = Field(default_factory=list)
    valid_items: list[InclusionItem] = Field(default_factory=list)
    invalid_items: list[InclusionItem] = Field(default_factory=list)
    categories: dict[str, list[InclusionItem]] = Field(default_factory=dict)
    overall_quality: float = 0.0
    suggestions: list[str] = Field(default_factory=list)
