"""Data models for field-level validation of tabular data."""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field


def _issue_id() -> str:
    return uuid.uuid4().hex[:12]


class IssueSeverity(str, Enum):
    """Severity of a field issue. Errors and critical issues block import."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


BLOCKING = (IssueSeverity.ERROR, IssueSeverity.CRITICAL)


class FieldIssue(BaseModel):
    """A single problem found in one cell."""

    id: str = Field(default_factory=_issue_id)
    severity: IssueSeverity
    code: str  # e.g. "INVALID_PRICE_FORMAT"
    message: str
    field: Optional[str] = None
    row: Optional[int] = None
    column: Optional[str] = None
    value: Any = None
    expected_type: Optional[str] = None
    suggestion: Optional[str] = None
    context: dict[str, Any] = Field(default_factory=dict)


class FieldValidationResult(BaseModel):
    """Issues for one value, split by severity."""

    is_valid: bool = True
    errors: list[FieldIssue] = Field(default_factory=list)
    warnings: list[FieldIssue] = Field(default_factory=list)
    info: list[FieldIssue] = Field(default_factory=list)


class FieldSummary(BaseModel):
    """Per-column tallies across a dataset."""

    valid_count: int = 0
    error_count: int = 0
    warning_count: int = 0
    common_errors: list[str] = Field(default_factory=list)


class ValidationSummary(BaseModel):
    total_rows: int = 0
    valid_rows: int = 0
    error_rows: int = 0
    warning_rows: int = 0
    total_errors: int = 0
    total_warnings: int = 0
    critical_errors: int = 0


class ValidationReport(BaseModel):
    """Dataset-wide validation outcome."""

    is_valid: bool
    summary: ValidationSummary
    errors: list[FieldIssue] = Field(default_factory=list)
    warnings: list[FieldIssue] = Field(default_factory=list)
    info: list[FieldIssue] = Field(default_factory=list)
    field_summary: dict[str, FieldSummary] = Field(default_factory=dict)
    suggestions: list[str] = Field(default_factory=list)


@dataclass
class ValidationContext:
    """Where a value sits and what surrounds it."""

    row: Optional[int] = None
    column: Optional[str] = None
    field_name: Optional[str] = None
    headers: list[str] = field(default_factory=list)
    related_fields: dict[str, Any] = field(default_factory=dict)


RuleCheck = Callable[[Any, ValidationContext], list[FieldIssue]]


@dataclass
class FieldRule:
    """A named check applied to one field, or to every field when ``field`` is "*"."""

    id: str
    name: str
    check: RuleCheck
    field: str = "*"
    severity: IssueSeverity = IssueSeverity.ERROR
    description: str = ""

    def applies_to(self, field_name: str) -> bool:
        return self.field in ("*", field_name)
