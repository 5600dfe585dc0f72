"""Locale-aware number parsing shared by the classifier, extractor and mapper."""

import re
from enum import Enum
from typing import Optional

from .dictionaries import CURRENCY_CODES, CURRENCY_SYMBOLS


class NumberFormat(str, Enum):
    """Separator convention detected in a numeric string."""

    US = "us"  # 1,234.56
    EUROPEAN = "european"  # 1.234,56
    PLAIN = "plain"  # 1234 or 1234.5 with no grouping
    UNKNOWN = "unknown"


_SYMBOL_CHARS = "".join(re.escape(symbol) for symbol in CURRENCY_SYMBOLS)
_STRIP_PATTERN = re.compile(
    rf"[{_SYMBOL_CHARS}]|(?<![A-Za-z])(?:{'|'.join(CURRENCY_CODES)})(?![A-Za-z])",
    re.IGNORECASE,
)

_US_GROUPED = re.compile(r"^\d{1,3}(?:,\d{3})+(?:\.\d+)?$")
_EU_GROUPED = re.compile(r"^\d{1,3}(?:\.\d{3})+(?:,\d+)?$")
_EU_DECIMAL = re.compile(r"^\d+,\d{1,2}$")
_PLAIN = re.compile(r"^\d+(?:\.\d+)?$")


def strip_currency(text: str) -> str:
    """Remove currency symbols, ISO codes and internal spaces."""
    stripped = _STRIP_PATTERN.sub("", text)
    return re.sub(r"[\s ']", "", stripped)


def parse_locale_number(text) -> tuple[Optional[float], NumberFormat]:
    """Parse a human-entered number, detecting its separator convention.

    A string with both separators takes the last one as the decimal mark. A
    comma alone is a decimal mark when followed by at most two digits,
    otherwise a thousands separator. Several dots mean European grouping.

    Args:
        text: Raw cell value. Numbers pass through unchanged.

    Returns:
        Tuple of parsed value (or None) and detected format.
    """
    if isinstance(text, bool) or text is None:
        return None, NumberFormat.UNKNOWN
    if isinstance(text, (int, float)):
        return float(text), NumberFormat.PLAIN

    cleaned = strip_currency(str(text).strip())
    if not cleaned:
        return None, NumberFormat.UNKNOWN

    sign = 1.0
    if cleaned.startswith("-"):
        sign = -1.0
        cleaned = cleaned[1:]

    if _PLAIN.match(cleaned):
        return sign * float(cleaned), NumberFormat.PLAIN

    if "," in cleaned and "." in cleaned:
        if cleaned.rfind(".") > cleaned.rfind(","):
            if _US_GROUPED.match(cleaned):
                return sign * float(cleaned.replace(",", "")), NumberFormat.US
        elif _EU_GROUPED.match(cleaned):
            normalized = cleaned.replace(".", "").replace(",", ".")
            return sign * float(normalized), NumberFormat.EUROPEAN
        return None, NumberFormat.UNKNOWN

    if "," in cleaned:
        if _EU_DECIMAL.match(cleaned):
            return sign * float(cleaned.replace(",", ".")), NumberFormat.EUROPEAN
        if _US_GROUPED.match(cleaned):
            return sign * float(cleaned.replace(",", "")), NumberFormat.US
        return None, NumberFormat.UNKNOWN

    if _EU_GROUPED.match(cleaned):
        return sign * float(cleaned.replace(".", "")), NumberFormat.EUROPEAN

    return None, NumberFormat.UNKNOWN
