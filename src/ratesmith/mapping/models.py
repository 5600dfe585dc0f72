"""Data models for header-to-field column mapping and mapping templates."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class DataType(str, Enum):
    """Coercion applied to a mapped column."""

    STRING = "string"
    NUMBER = "number"
    CURRENCY = "currency"
    LIST = "list"


class ColumnMapping(BaseModel):
    """Mapping of a source column header to a system field."""

    excel_column: str
    system_field: str
    data_type: DataType = DataType.STRING
    required: bool = False
    confidence: float = 0.0
    transformer: Optional[str] = None  # Name of a registered string transformer


class MappingSuggestion(BaseModel):
    """Best mapping for one header plus ranked alternatives."""

    mapping: ColumnMapping
    reasons: list[str] = Field(default_factory=list)
    alternatives: list[ColumnMapping] = Field(default_factory=list)


class MappingValidation(BaseModel):
    """Result of checking a set of mappings."""

    is_valid: bool
    errors: list[str] = Field(default_factory=list)


class MappingTemplate(BaseModel):
    """A reusable, named set of column mappings."""

    id: str = ""
    name: str
    description: str = ""
    mappings: list[ColumnMapping] = Field(default_factory=list)
    applicable_patterns: list[str] = Field(default_factory=list)  # Regex fragments
    use_count: int = 0
    last_used: Optional[datetime] = None
    created_at: datetime = Field(default_factory=_utc_now)


class UsageAnalysis(BaseModel):
    """Template usage overview with housekeeping suggestions."""

    total_templates: int
    most_used: list[MappingTemplate] = Field(default_factory=list)
    least_used: list[MappingTemplate] = Field(default_factory=list)
    recently_created: list[MappingTemplate] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class ImportResult(BaseModel):
    """Outcome of importing headers plus rows through a set of mappings."""

    mappings: list[ColumnMapping]
    validation: MappingValidation
    records: list[dict[str, Any]] = Field(default_factory=list)
    report: Optional[Any] = None  # ValidationReport from the field validation engine
    template_id: Optional[str] = None


class TemplateNotFoundError(Exception):
    """Exception raised when a mapping template id does not exist."""

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(f"Template with id {template_id} not found")


class HeadersMissingError(Exception):
    """Exception raised when tabular data has no header row to map from."""

    pass
