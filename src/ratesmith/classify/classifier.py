"""Single-cell content classification."""

import re
from typing import Any, Optional

from ..grid.models import cell_text
from .dictionaries import DEFAULT_DICTIONARIES, ClassifierDictionaries
from .models import (
    AccommodationCategory,
    AccommodationMatch,
    ClassifiedToken,
    ContentType,
    MonthFormat,
    MonthMatch,
    MonthSequence,
    NightsPaxMatch,
    SequenceAnalysis,
)
from .numbers import parse_locale_number
from .scoring import clamp, combine, flag_bonus, length_penalty, ratio

MONTH_BASE_CONFIDENCE = {
    MonthFormat.FULL: 0.95,
    MonthFormat.ABBREVIATED: 0.85,
    MonthFormat.SPECIAL: 0.7,
}

YEAR_PENALTY = -0.3


def _looks_like_year(amount: float) -> bool:
    return float(amount).is_integer() and 1900 <= amount <= 2100


class ContentClassifier:
    """Classifies spreadsheet cell values into semantic types."""

    # Thresholds a detector result must clear to win the dispatch
    PRICE_THRESHOLD = 0.5
    MONTH_THRESHOLD = 0.5
    ACCOMMODATION_THRESHOLD = 0.5
    NIGHTS_PAX_THRESHOLD = 0.3

    # Trailing noise allowed after a month name, e.g. "Jan 2025", "March-25"
    MONTH_PREFIX_PATTERN = re.compile(r"^([a-z]+)\.?(?:[\s\-/']+\d{2,4})?$")

    NIGHTS_PATTERNS = [
        re.compile(r"(\d+)\s*(?:nights?|nts?|n)\b", re.IGNORECASE),
        re.compile(r"(\d+)\s*days?\b", re.IGNORECASE),
        re.compile(r"\bnights?\s*:?\s*(\d+)", re.IGNORECASE),
    ]

    PAX_RANGE_PATTERN = re.compile(
        r"(\d+)\s*[-–]\s*(\d+)\s*(?:pax|people|persons?|adults?|guests?)\b", re.IGNORECASE
    )
    PAX_PATTERNS = [
        re.compile(r"(\d+)\s*(?:pax|people|persons?|adults?|guests?|p)\b", re.IGNORECASE),
        re.compile(r"\b(?:pax|people|persons?|adults?|guests?)\s*:?\s*(\d+)", re.IGNORECASE),
    ]

    COMBINED_PATTERNS = [
        re.compile(
            r"(\d+)\s*n(?:ights?|ts?)?\s*[/x,\-]?\s*(\d+)\s*"
            r"(?:p|pax|people|persons?|adults?|guests?)\b",
            re.IGNORECASE,
        ),
        re.compile(
            r"(\d+)\s*(?:p|pax|people|persons?|adults?|guests?)\s*[/x,\-]?\s*(\d+)\s*"
            r"n(?:ights?|ts?)?\b",
            re.IGNORECASE,
        ),
    ]

    def __init__(self, dictionaries: Optional[ClassifierDictionaries] = None):
        self.dictionaries = dictionaries or DEFAULT_DICTIONARIES
        self._special_patterns = [
            (re.compile(pattern, re.IGNORECASE), name)
            for pattern, name in self.dictionaries.special_periods.items()
        ]
        self._accommodation_patterns = [
            (re.compile(pattern, re.IGNORECASE), type_name, category)
            for pattern, type_name, category in self.dictionaries.accommodation_patterns
        ]
        symbols = "".join(re.escape(s) for s in self.dictionaries.currency_symbols)
        codes = "|".join(self.dictionaries.currency_codes)
        self._price_pattern = re.compile(
            rf"^(?P<prefix>[{symbols}]|(?:{codes}))?\s*"
            rf"(?P<number>\d[\d.,\s']*)\s*"
            rf"(?P<suffix>[{symbols}]|(?:{codes}))?$",
            re.IGNORECASE,
        )

    # Dispatch

    def classify_content(self, value: Any) -> ClassifiedToken:
        """Classify a single cell value.

        Detectors run in a fixed order: empty, price, month, accommodation,
        nights/pax, then text as the fallback. The first detector that clears
        its threshold wins.
        """
        text = cell_text(value)
        if not text:
            return ClassifiedToken(type=ContentType.EMPTY, confidence=1.0)

        price = self.detect_price(value)
        if price is not None and price[1] >= self.PRICE_THRESHOLD:
            amount, confidence = price
            return ClassifiedToken(
                type=ContentType.PRICE,
                confidence=confidence,
                parsed_value=amount,
                details={"text": text},
            )

        month = self.detect_month(text)
        if month.is_month and month.confidence >= self.MONTH_THRESHOLD:
            return ClassifiedToken(
                type=ContentType.MONTH,
                confidence=month.confidence,
                parsed_value=month.normalized_name,
                details=month.model_dump(mode="json"),
            )

        accommodation = self.detect_accommodation_type(text)
        if (
            accommodation.is_accommodation
            and accommodation.confidence >= self.ACCOMMODATION_THRESHOLD
        ):
            return ClassifiedToken(
                type=ContentType.ACCOMMODATION,
                confidence=accommodation.confidence,
                parsed_value=accommodation.type,
                details=accommodation.model_dump(mode="json"),
            )

        nights_pax = self.detect_nights_pax_pattern(text)
        if (
            nights_pax.has_nights or nights_pax.has_pax
        ) and nights_pax.confidence > self.NIGHTS_PAX_THRESHOLD:
            return ClassifiedToken(
                type=ContentType.NIGHTS_PAX,
                confidence=nights_pax.confidence,
                parsed_value=nights_pax.pattern,
                details=nights_pax.model_dump(mode="json"),
            )

        return ClassifiedToken(
            type=ContentType.TEXT, confidence=0.5, parsed_value=text, details={"text": text}
        )

    def classify_batch(self, values: list[Any]) -> list[ClassifiedToken]:
        """Classify every value of a list."""
        return [self.classify_content(value) for value in values]

    # Detectors

    def detect_price(self, value: Any) -> Optional[tuple[float, float]]:
        """Return ``(amount, confidence)`` when the value reads as a positive price.

        Currency markers and decimal parts raise confidence; a bare positive
        integer is still accepted at a lower score. A bare integer between
        1900 and 2100 reads as a year and scores below ``PRICE_THRESHOLD``.
        """
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            if value <= 0:
                return None
            has_decimal = isinstance(value, float) and not float(value).is_integer()
            return float(value), combine(
                0.6,
                flag_bonus(has_decimal, 0.2),
                flag_bonus(not has_decimal and _looks_like_year(value), YEAR_PENALTY),
            )

        text = cell_text(value)
        match = self._price_pattern.match(text)
        if not match:
            return None
        amount, _ = parse_locale_number(match.group("number").strip())
        if amount is None or amount <= 0:
            return None

        has_currency = bool(match.group("prefix") or match.group("suffix"))
        number = match.group("number").strip()
        has_decimal = bool(re.search(r"[.,]\d{1,2}$", number))
        bare_year = not has_currency and re.fullmatch(r"\d{4}", number) and _looks_like_year(amount)
        return amount, combine(
            0.6,
            flag_bonus(has_currency, 0.3),
            flag_bonus(has_decimal, 0.2),
            flag_bonus(bool(bare_year), YEAR_PENALTY),
        )

    def detect_month(self, text: str) -> MonthMatch:
        """Detect full, abbreviated or special-period month labels."""
        raw = cell_text(text)
        lowered = raw.lower()
        if not lowered:
            return MonthMatch(is_month=False, text=raw)

        name, fmt, exact = self._lookup_month(lowered)
        if name is None:
            for pattern, period in self._special_patterns:
                if pattern.search(lowered):
                    name, fmt = period, MonthFormat.SPECIAL
                    exact = lowered == period.lower()
                    break

        if name is None:
            return MonthMatch(is_month=False, text=raw)

        base = MONTH_BASE_CONFIDENCE[fmt]
        confidence = combine(
            base,
            length_penalty(len(lowered), 12, base, 0.8),
            flag_bonus(not exact and fmt != MonthFormat.SPECIAL, -0.1),
        )
        return MonthMatch(
            is_month=True,
            text=raw,
            format=fmt,
            normalized_name=name,
            confidence=confidence,
        )

    def _lookup_month(self, lowered: str):
        """Exact or prefix-with-year lookup against the month tables."""
        stripped = lowered.rstrip(".")
        if stripped in self.dictionaries.full_months:
            return self.dictionaries.full_months[stripped], MonthFormat.FULL, True
        if stripped in self.dictionaries.abbreviated_months:
            return self.dictionaries.abbreviated_months[stripped], MonthFormat.ABBREVIATED, True

        match = self.MONTH_PREFIX_PATTERN.match(lowered)
        if match:
            word = match.group(1)
            if word in self.dictionaries.full_months:
                return self.dictionaries.full_months[word], MonthFormat.FULL, False
            if word in self.dictionaries.abbreviated_months:
                return self.dictionaries.abbreviated_months[word], MonthFormat.ABBREVIATED, False
        return None, None, False

    def detect_accommodation_type(self, text: str) -> AccommodationMatch:
        """Match accommodation keywords such as hotel, villa or self-catering."""
        raw = cell_text(text)
        lowered = raw.lower()
        if not lowered:
            return AccommodationMatch(is_accommodation=False, type=raw)

        for pattern, type_name, category in self._accommodation_patterns:
            if not pattern.search(lowered):
                continue
            base = 0.95 if lowered == type_name.lower() else 0.7
            confidence = combine(
                base,
                length_penalty(len(lowered), 20, base, 0.8),
                length_penalty(len(lowered.split()), 3, base, 0.9),
            )
            return AccommodationMatch(
                is_accommodation=True,
                type=type_name,
                category=AccommodationCategory(category),
                confidence=confidence,
            )

        return AccommodationMatch(is_accommodation=False, type=raw)

    def detect_nights_pax_pattern(self, text: str) -> NightsPaxMatch:
        """Extract nights and pax counts from labels like "3N/2P" or "4 people"."""
        raw = cell_text(text)
        if not raw:
            return NightsPaxMatch()

        for index, pattern in enumerate(self.COMBINED_PATTERNS):
            match = pattern.search(raw)
            if match:
                first, second = int(match.group(1)), int(match.group(2))
                nights, pax = (first, second) if index == 0 else (second, first)
                return NightsPaxMatch(
                    has_nights=True,
                    nights=nights,
                    has_pax=True,
                    pax=pax,
                    pattern=f"{nights}N/{pax}P",
                    confidence=0.9,
                )

        result = NightsPaxMatch()
        parts = []
        confidence = 0.0

        for pattern in self.NIGHTS_PATTERNS:
            match = pattern.search(raw)
            if match:
                result.has_nights = True
                result.nights = int(match.group(1))
                parts.append(f"{result.nights}N")
                confidence += 0.4
                break

        range_match = self.PAX_RANGE_PATTERN.search(raw)
        if range_match:
            result.has_pax = True
            result.pax = int(range_match.group(1))
            result.pax_max = int(range_match.group(2))
            parts.append(f"{result.pax}-{result.pax_max}P")
            confidence += 0.4
        else:
            for pattern in self.PAX_PATTERNS:
                match = pattern.search(raw)
                if match:
                    result.has_pax = True
                    result.pax = int(match.group(1))
                    parts.append(f"{result.pax}P")
                    confidence += 0.4
                    break

        result.pattern = "/".join(parts)
        result.confidence = clamp(confidence)
        return result

    # Sequences

    def analyze_sequence(self, values: list[Any]) -> SequenceAnalysis:
        """Find the dominant non-empty content type of a row or column."""
        tokens = self.classify_batch(values)
        distribution: dict[str, int] = {}
        for token in tokens:
            distribution[token.type.value] = distribution.get(token.type.value, 0) + 1

        primary = ContentType.TEXT
        best = 0
        for content_type in ContentType:
            if content_type == ContentType.EMPTY:
                continue
            count = distribution.get(content_type.value, 0)
            if count > best:
                primary, best = content_type, count

        non_empty = sum(1 for token in tokens if token.type != ContentType.EMPTY)
        return SequenceAnalysis(
            primary_type=primary,
            confidence=ratio(best, non_empty),
            distribution=distribution,
            tokens=tokens,
        )

    def detect_month_sequence(self, values: list[Any]) -> MonthSequence:
        """Check whether labels run through the calendar in order.

        Needs at least three month labels. A step of one month, or the
        December to January wrap, counts as contiguous. Special periods are
        reported but not placed on the calendar.
        """
        matches = [self.detect_month(cell_text(value)) for value in values]
        months = [match for match in matches if match.is_month]
        if len(months) < 3:
            return MonthSequence(is_sequence=False)

        order = self.dictionaries.month_order
        indices = [order.index(m.normalized_name) for m in months if m.normalized_name in order]

        gaps = [indices[i] - indices[i - 1] for i in range(1, len(indices))]
        sequential = all(gap in (1, -11) for gap in gaps)
        confidence = 0.9 if sequential else max(0.3, ratio(len(months), len(values)))

        return MonthSequence(
            is_sequence=sequential,
            months=[m.normalized_name for m in months],
            confidence=confidence,
            gaps=gaps,
        )

    # Helpers shared by downstream components

    def accommodation_code(self, name: str) -> str:
        """Short code for an accommodation label, e.g. "Hotel" -> "HTL"."""
        lowered = cell_text(name).lower()
        codes = self.dictionaries.accommodation_codes
        if lowered in codes:
            return codes[lowered]
        match = self.detect_accommodation_type(lowered)
        if match.is_accommodation:
            key = match.type.lower()
            if key in codes:
                return codes[key]
            if match.category.value in codes:
                return codes[match.category.value]
        letters = re.sub(r"[^A-Za-z]", "", cell_text(name))
        return letters[:3].upper() or "STD"

    def is_unavailable_marker(self, value: Any) -> bool:
        """True for sentinels such as "n/a", "TBC" or "sold out"."""
        return cell_text(value).lower() in self.dictionaries.unavailable_markers
