"""Field-level validation of tabular data."""

from .models import (
    FieldIssue,
    FieldRule,
    FieldSummary,
    FieldValidationResult,
    IssueSeverity,
    ValidationContext,
    ValidationReport,
    ValidationSummary,
)
from .engine import DataValidationEngine

__all__ = [
    "FieldIssue",
    "FieldRule",
    "FieldSummary",
    "FieldValidationResult",
    "IssueSeverity",
    "ValidationContext",
    "ValidationReport",
    "ValidationSummary",
    "DataValidationEngine",
]
