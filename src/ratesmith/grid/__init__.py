"""Worksheet grid model and file loaders."""

from .models import (
    MergeRange,
    MergeResolver,
    Worksheet,
    cell_reference,
    cell_text,
    column_letter,
    is_blank,
)
from .loader import UnsupportedFileError, load_csv, load_worksheet, load_xlsx

__all__ = [
    "MergeRange",
    "MergeResolver",
    "Worksheet",
    "cell_reference",
    "cell_text",
    "column_letter",
    "is_blank",
    "UnsupportedFileError",
    "load_csv",
    "load_worksheet",
    "load_xlsx",
]
