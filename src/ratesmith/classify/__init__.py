"""Single-cell content classification."""

from .models import (
    AccommodationCategory,
    AccommodationMatch,
    ClassifiedToken,
    ContentType,
    ListFormat,
    MonthFormat,
    MonthMatch,
    MonthSequence,
    NightsPaxMatch,
    SequenceAnalysis,
)
from .dictionaries import DEFAULT_DICTIONARIES, ClassifierDictionaries
from .numbers import NumberFormat, parse_locale_number
from .classifier import ContentClassifier

__all__ = [
    "AccommodationCategory",
    "AccommodationMatch",
    "ClassifiedToken",
    "ContentType",
    "ListFormat",
    "MonthFormat",
    "MonthMatch",
    "MonthSequence",
    "NightsPaxMatch",
    "SequenceAnalysis",
    "DEFAULT_DICTIONARIES",
    "ClassifierDictionaries",
    "NumberFormat",
    "parse_locale_number",
    "ContentClassifier",
]
