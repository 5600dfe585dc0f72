"""Static lookup tables used by the content classifiers.

The tables are immutable and handed to classifiers at construction, so a
locale-specific sheet can be handled by building a new ``ClassifierDictionaries``
instead of changing any matching code.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

MONTH_ORDER = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

FULL_MONTHS = MappingProxyType({name.lower(): name for name in MONTH_ORDER})

ABBREVIATED_MONTHS = MappingProxyType(
    {
        "jan": "January",
        "feb": "February",
        "mar": "March",
        "apr": "April",
        "jun": "June",
        "jul": "July",
        "aug": "August",
        "sep": "September",
        "sept": "September",
        "oct": "October",
        "nov": "November",
        "dec": "December",
    }
)

# Pattern -> canonical period name. Order matters: first hit wins.
SPECIAL_PERIODS = MappingProxyType(
    {
        r"\beaster\b": "Easter",
        r"\bpeak\s*season\b": "Peak Season",
        r"\boff\s*season\b": "Off Season",
        r"\bhigh\s*season\b": "High Season",
        r"\blow\s*season\b": "Low Season",
        r"\bchristmas\b": "Christmas",
        r"\bnew\s*year\b": "New Year",
        r"\bsummer\b": "Summer",
        r"\bwinter\b": "Winter",
        r"\bspring\b": "Spring",
        r"\bautumn\b": "Autumn",
        r"\bfall\b": "Fall",
    }
)

# (pattern, display type, category). Evaluated top to bottom.
ACCOMMODATION_PATTERNS = (
    (r"\b(?:boutique|luxury|budget)\s*hotel\b", "Hotel", "hotel"),
    (r"\bhotel\b", "Hotel", "hotel"),
    (r"\b(?:beach|ski|golf)\s*resort\b", "Resort", "resort"),
    (r"\bresort\b", "Resort", "resort"),
    (r"\bself[\s-]?catering\b", "Self-Catering", "self-catering"),
    (r"\bapartments?\b", "Apartment", "apartment"),
    (r"\bapt\b", "Apartment", "apartment"),
    (r"\bstudio\b", "Studio", "apartment"),
    (r"\bflat\b", "Apartment", "apartment"),
    (r"\bvillas?\b", "Villa", "villa"),
    (r"\bhouse\b", "House", "villa"),
    (r"\bcottage\b", "Cottage", "villa"),
    (r"\bcabin\b", "Cabin", "villa"),
    (r"\bhostel\b", "Hostel", "hostel"),
    (r"\bbackpacker", "Hostel", "hostel"),
    (r"\bdorm", "Hostel", "hostel"),
    (r"\bb&b\b", "B&B", "hotel"),
    (r"\bbed\s*(?:and|&)\s*breakfast\b", "B&B", "hotel"),
    (r"\bguest\s*house\b", "Guesthouse", "hotel"),
    (r"\binn\b", "Inn", "hotel"),
    (r"\blodge\b", "Lodge", "hotel"),
    (r"\bsingle\b", "Single Room", "hotel"),
    (r"\bdouble\b", "Double Room", "hotel"),
    (r"\btwin\b", "Twin Room", "hotel"),
    (r"\btriple\b", "Triple Room", "hotel"),
    (r"\bfamily\s*room\b", "Family Room", "hotel"),
    (r"\bsuite\b", "Suite", "hotel"),
)

ACCOMMODATION_CODES = MappingProxyType(
    {
        "hotel": "HTL",
        "self-catering": "SC",
        "apartment": "APT",
        "villa": "VIL",
        "hostel": "HST",
        "resort": "RST",
        "b&b": "BB",
        "guesthouse": "GH",
        "lodge": "LDG",
        "cabin": "CAB",
    }
)

CURRENCY_SYMBOLS = MappingProxyType(
    {
        "€": "EUR",
        "£": "GBP",
        "$": "USD",
        "¥": "JPY",
    }
)

CURRENCY_CODES = ("EUR", "GBP", "USD", "JPY", "CHF", "CAD")

UNAVAILABLE_MARKERS = (
    "n/a",
    "na",
    "not available",
    "unavailable",
    "tbc",
    "tba",
    "closed",
    "sold out",
    "full",
    "no availability",
    "on request",
    "-",
    "--",
)


@dataclass(frozen=True)
class ClassifierDictionaries:
    """Bundle of lookup tables injected into classifiers."""

    full_months: Mapping[str, str] = field(default_factory=lambda: FULL_MONTHS)
    abbreviated_months: Mapping[str, str] = field(default_factory=lambda: ABBREVIATED_MONTHS)
    special_periods: Mapping[str, str] = field(default_factory=lambda: SPECIAL_PERIODS)
    accommodation_patterns: tuple = ACCOMMODATION_PATTERNS
    accommodation_codes: Mapping[str, str] = field(default_factory=lambda: ACCOMMODATION_CODES)
    currency_symbols: Mapping[str, str] = field(default_factory=lambda: CURRENCY_SYMBOLS)
    currency_codes: tuple = CURRENCY_CODES
    unavailable_markers: tuple = UNAVAILABLE_MARKERS
    month_order: tuple = MONTH_ORDER


DEFAULT_DICTIONARIES = ClassifierDictionaries()
