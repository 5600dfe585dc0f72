"""Column mapping, mapping templates and template storage."""

from .models import (
    ColumnMapping,
    DataType,
    HeadersMissingError,
    ImportResult,
    MappingSuggestion,
    MappingTemplate,
    MappingValidation,
    TemplateNotFoundError,
    UsageAnalysis,
)
from .mapper import SYSTEM_FIELDS, ColumnMapper, FieldDefinition
from .storage import (
    InMemoryTemplateStorage,
    JsonFileTemplateStorage,
    SQLiteTemplateStorage,
    TemplateStorage,
)
from .manager import DEFAULT_TEMPLATES, TemplateManager
from .importer import TabularImporter

__all__ = [
    "ColumnMapping",
    "DataType",
    "HeadersMissingError",
    "ImportResult",
    "MappingSuggestion",
    "MappingTemplate",
    "MappingValidation",
    "TemplateNotFoundError",
    "UsageAnalysis",
    "SYSTEM_FIELDS",
    "ColumnMapper",
    "FieldDefinition",
    "InMemoryTemplateStorage",
    "JsonFileTemplateStorage",
    "SQLiteTemplateStorage",
    "TemplateStorage",
    "DEFAULT_TEMPLATES",
    "TemplateManager",
    "TabularImporter",
]
