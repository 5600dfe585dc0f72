"""Header-to-field column mapping with confidence scoring."""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from ..classify import ContentClassifier, MonthFormat, parse_locale_number
from ..classify.scoring import combine, flag_bonus, ratio
from ..config import settings
from ..grid import cell_text
from .models import (
    ColumnMapping,
    DataType,
    MappingSuggestion,
    MappingTemplate,
    MappingValidation,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldDefinition:
    """A system field that source columns can be mapped onto."""

    name: str
    data_type: DataType
    required: bool
    description: str
    patterns: tuple[str, ...]
    # Name patterns grouped under a concept used for co-occurrence boosts
    concept: Optional[str] = None


@dataclass
class ColumnProfile:
    """What a header and its sample values look like."""

    header: str
    data_type: Optional[DataType]
    samples: list[Any] = field(default_factory=list)
    concepts: set[str] = field(default_factory=set)


SYSTEM_FIELDS = (
    FieldDefinition(
        name="month",
        data_type=DataType.STRING,
        required=True,
        description="Month name or period",
        patterns=(
            r"^(month|mth|period|time)s?$",
            r"^(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)",
        ),
        concept="temporal",
    ),
    FieldDefinition(
        name="accommodation_type",
        data_type=DataType.STRING,
        required=False,
        description="Type of accommodation",
        patterns=(
            r"^(accommodation|accom|type|room)(\s*type)?$",
            r"^(hotel|apartment|villa|resort|self.?catering)$",
        ),
        concept="accommodation",
    ),
    FieldDefinition(
        name="nights",
        data_type=DataType.NUMBER,
        required=False,
        description="Number of nights",
        patterns=(
            r"^(nights?|n|days?)$",
            r"^\d+\s*(nights?|n|days?)$",
            r"^(nights?|n|days?)\s*\d+$",
        ),
        concept="duration",
    ),
    FieldDefinition(
        name="pax",
        data_type=DataType.NUMBER,
        required=False,
        description="Number of people",
        patterns=(
            r"^(pax|people|persons?|adults?|guests?)$",
            r"^\d+\s*(pax|people|persons?|adults?|guests?)$",
            r"^(pax|people|persons?|adults?|guests?)\s*\d+$",
        ),
        concept="quantity",
    ),
    FieldDefinition(
        name="price",
        data_type=DataType.CURRENCY,
        required=True,
        description="Price value",
        patterns=(
            r"^(price|cost|rate|amount|fee)s?$",
            r"^(price|cost|rate)\s*\(?.{0,5}\)?$",
            r"^(€|£|\$|eur|gbp|usd)$",
        ),
        concept="monetary",
    ),
    FieldDefinition(
        name="currency",
        data_type=DataType.STRING,
        required=False,
        description="Currency code",
        patterns=(r"^(currency|curr|ccy)$",),
    ),
    FieldDefinition(
        name="special_period",
        data_type=DataType.STRING,
        required=False,
        description="Special period or season",
        patterns=(
            r"^(special|season|period|event)$",
            r"^(easter|peak|high|low|summer|winter)",
        ),
    ),
    FieldDefinition(
        name="inclusions",
        data_type=DataType.LIST,
        required=False,
        description="Package inclusions",
        patterns=(
            r"^(inclusions?|included|includes)$",
            r"^(package|what.?s.?included)$",
        ),
    ),
    FieldDefinition(
        name="description",
        data_type=DataType.STRING,
        required=False,
        description="General description",
        patterns=(
            r"^(description|desc|details|notes)$",
            r"^(info|information|about)$",
        ),
    ),
)

HEADER_CONCEPTS = {
    "temporal": re.compile(r"month|period|time", re.IGNORECASE),
    "monetary": re.compile(r"price|cost|rate|amount", re.IGNORECASE),
    "duration": re.compile(r"night|day", re.IGNORECASE),
    "quantity": re.compile(r"pax|people|person|adult|guest", re.IGNORECASE),
    "accommodation": re.compile(r"hotel|apartment|villa|accommodation", re.IGNORECASE),
}

LIST_SEPARATORS = re.compile(r"[,;|\n]")

# Named score contributions
HEADER_PATTERN_BOOST = 0.4
TYPE_MATCH_BOOST = 0.3
NUMERIC_PRICE_BOOST = 0.2
VALIDITY_BOOST = 0.2
CONTEXT_BOOST = 0.1
HISTORY_BOOST = 0.2
AMBIGUITY_PENALTY = -0.1


def header_pattern_score(definition: FieldDefinition, header: str) -> float:
    """Boost when the header text matches one of the field's name patterns."""
    matched = any(re.search(p, header.strip(), re.IGNORECASE) for p in definition.patterns)
    return flag_bonus(matched, HEADER_PATTERN_BOOST)


def type_consistency_score(definition: FieldDefinition, data_type: Optional[DataType]) -> float:
    """Boost when the sampled values have the field's data type."""
    if data_type is None:
        return 0.0
    if data_type == definition.data_type:
        return TYPE_MATCH_BOOST
    if definition.data_type == DataType.CURRENCY and data_type == DataType.NUMBER:
        return NUMERIC_PRICE_BOOST
    return 0.0


def validity_score(valid: int, total: int) -> float:
    """Share of sample values the field would accept, scaled."""
    return ratio(valid, total) * VALIDITY_BOOST


class ColumnMapper:
    """Suggests, validates and applies column mappings.

    Known templates feed the historical boost: a header mapped to a field by a
    saved template scores higher for that field next time.
    """

    def __init__(
        self,
        classifier: Optional[ContentClassifier] = None,
        templates: Optional[list[MappingTemplate]] = None,
        min_confidence: Optional[float] = None,
        max_alternatives: Optional[int] = None,
    ):
        self.classifier = classifier or ContentClassifier()
        self.templates = list(templates or [])
        self.min_confidence = (
            settings.mapping_min_confidence if min_confidence is None else min_confidence
        )
        self.max_alternatives = max_alternatives or settings.mapping_max_alternatives
        self.fields = {definition.name: definition for definition in SYSTEM_FIELDS}
        self.transformers: dict[str, Callable[[str], Any]] = {
            "upper": str.upper,
            "lower": str.lower,
            "title": str.title,
            "month_name": self._month_name,
            "accommodation_code": self.classifier.accommodation_code,
        }
        self._validators: dict[str, Callable[[Any], bool]] = {
            "month": lambda v: self.classifier.detect_month(cell_text(v)).is_month,
            "accommodation_type": lambda v: self.classifier.detect_accommodation_type(
                cell_text(v)
            ).is_accommodation,
            "nights": self._is_positive_number,
            "pax": self._is_positive_number,
            "price": self._is_price,
            "currency": self._is_currency,
            "special_period": lambda v: self.classifier.detect_month(cell_text(v)).format
            == MonthFormat.SPECIAL,
            "inclusions": lambda v: bool(cell_text(v)),
            "description": lambda v: bool(cell_text(v)),
        }

    def register_transformer(self, name: str, transformer: Callable[[str], Any]) -> None:
        """Make a named transformer available to string mappings."""
        self.transformers[name] = transformer

    # Suggestions

    def suggest_mappings(
        self, headers: Sequence[str], sample_data: Optional[Sequence[Sequence[Any]]] = None
    ) -> list[MappingSuggestion]:
        """Suggest a system field for each header, best first.

        Args:
            headers: Source column headers.
            sample_data: Optional sample rows aligned with ``headers``.

        Returns:
            One suggestion per header that cleared the minimum confidence,
            sorted by descending confidence.
        """
        profiles = [
            self._profile(header, [row[i] if i < len(row) else None for row in sample_data or []])
            for i, header in enumerate(headers)
        ]
        suggestions = []
        for profile in profiles:
            suggestion = self._suggest_for(profile, profiles)
            if suggestion is not None:
                suggestions.append(suggestion)

        suggestions.sort(key=lambda s: -s.mapping.confidence)
        logger.info(f"Suggested {len(suggestions)} mappings for {len(headers)} headers")
        return suggestions

    def _suggest_for(
        self, profile: ColumnProfile, profiles: list[ColumnProfile]
    ) -> Optional[MappingSuggestion]:
        scored = []
        for definition in SYSTEM_FIELDS:
            confidence, reasons = self._score(definition, profile, profiles)
            if confidence > self.min_confidence:
                scored.append((confidence, definition, reasons))
        if not scored:
            return None

        scored.sort(key=lambda item: -item[0])
        best_confidence, best, reasons = scored[0]
        return MappingSuggestion(
            mapping=self._mapping(profile.header, best, best_confidence),
            reasons=reasons,
            alternatives=[
                self._mapping(profile.header, definition, confidence)
                for confidence, definition, _ in scored[1 : 1 + self.max_alternatives]
            ],
        )

    def _score(
        self, definition: FieldDefinition, profile: ColumnProfile, profiles: list[ColumnProfile]
    ) -> tuple[float, list[str]]:
        reasons = []

        pattern = header_pattern_score(definition, profile.header)
        if pattern:
            reasons.append(f"Column name matches {definition.name} pattern")

        type_score = type_consistency_score(definition, profile.data_type)
        if type_score:
            reasons.append(f"Data type matches expected {definition.data_type.value}")

        validator = self._validators[definition.name]
        valid = sum(1 for value in profile.samples if self._safe_check(validator, value))
        validity = validity_score(valid, len(profile.samples))
        if valid:
            share = round(ratio(valid, len(profile.samples)) * 100)
            reasons.append(f"{share}% of values are valid for {definition.name}")

        context = 0.0
        if definition.name == "price" and any(
            {"temporal", "months"} & other.concepts for other in profiles if other is not profile
        ):
            context = CONTEXT_BOOST
            reasons.append("Appears alongside a month column")
        elif definition.name == "month" and any(
            "monetary" in other.concepts or other.data_type == DataType.CURRENCY
            for other in profiles
            if other is not profile
        ):
            context = CONTEXT_BOOST
            reasons.append("Appears alongside a price column")

        history = 0.0
        if self._historical_match(profile.header, definition.name):
            history = HISTORY_BOOST
            reasons.append("Matches a saved template mapping")

        ambiguity = 0.0
        if profile.concepts and definition.concept in profile.concepts:
            rivals = [
                other
                for other in profiles
                if other is not profile
                and other.data_type == profile.data_type
                and definition.concept in other.concepts
            ]
            if rivals:
                ambiguity = AMBIGUITY_PENALTY
                reasons.append(f"{len(rivals) + 1} columns could be {definition.name}")

        if not (pattern or type_score or validity or history):
            return 0.0, reasons
        return combine(pattern, type_score, validity, context, history, ambiguity), reasons

    def _mapping(self, header: str, definition: FieldDefinition, confidence: float) -> ColumnMapping:
        return ColumnMapping(
            excel_column=header,
            system_field=definition.name,
            data_type=definition.data_type,
            required=definition.required,
            confidence=confidence,
        )

    def _historical_match(self, header: str, field_name: str) -> bool:
        key = header.strip().lower()
        return any(
            mapping.excel_column.strip().lower() == key and mapping.system_field == field_name
            for template in self.templates
            for mapping in template.mappings
        )

    # Column profiling

    def _profile(self, header: str, values: list[Any]) -> ColumnProfile:
        samples = [value for value in values if cell_text(value)]
        concepts = {name for name, pattern in HEADER_CONCEPTS.items() if pattern.search(header)}
        if any(self.classifier.detect_month(cell_text(v)).is_month for v in samples[:5]):
            concepts.add("months")
        return ColumnProfile(
            header=header,
            data_type=self._detect_data_type(samples),
            samples=samples[:10],
            concepts=concepts,
        )

    def _detect_data_type(self, values: list[Any]) -> Optional[DataType]:
        if not values:
            return None
        types = {self._value_type(value) for value in values}
        if len(types) == 1:
            return types.pop()
        if DataType.CURRENCY in types and types <= {DataType.CURRENCY, DataType.NUMBER}:
            return DataType.CURRENCY
        numeric = sum(1 for value in values if self._value_type(value) == DataType.NUMBER)
        if numeric > len(values) * 0.7:
            return DataType.NUMBER
        return DataType.STRING

    def _value_type(self, value: Any) -> DataType:
        if isinstance(value, list):
            return DataType.LIST
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return DataType.NUMBER
        text = cell_text(value)
        price = self.classifier.detect_price(text)
        if price is not None and re.search(r"[^\d.,\s'-]", text):
            return DataType.CURRENCY
        if parse_locale_number(text)[0] is not None:
            return DataType.NUMBER
        if LIST_SEPARATORS.search(text):
            return DataType.LIST
        return DataType.STRING

    # Applying

    def apply_mapping(
        self,
        rows: Sequence[Sequence[Any]],
        mappings: Sequence[ColumnMapping],
        headers: Optional[Sequence[str]] = None,
    ) -> list[dict[str, Any]]:
        """Coerce raw rows into records keyed by system field.

        Without ``headers`` the n-th mapping reads the n-th column. Raw rows
        are never modified, so repeated calls return equal records.
        """
        positions = []
        for index, mapping in enumerate(mappings):
            if headers is not None and mapping.excel_column in headers:
                positions.append(list(headers).index(mapping.excel_column))
            else:
                positions.append(index)

        records = []
        for row in rows:
            record = {}
            for mapping, position in zip(mappings, positions):
                value = row[position] if position < len(row) else None
                record[mapping.system_field] = self.coerce(value, mapping)
            records.append(record)
        return records

    def coerce(self, value: Any, mapping: ColumnMapping) -> Any:
        """Convert one raw value according to the mapping's data type."""
        if isinstance(value, list) and mapping.data_type == DataType.LIST:
            return [cell_text(item) for item in value if cell_text(item)]
        if value is None or cell_text(value) == "":
            return None

        if mapping.data_type == DataType.CURRENCY:
            amount, _ = parse_locale_number(value)
            return amount
        if mapping.data_type == DataType.NUMBER:
            amount, _ = parse_locale_number(value)
            if amount is None:
                return None
            return int(amount) if float(amount).is_integer() else amount
        if mapping.data_type == DataType.LIST:
            return [item.strip() for item in LIST_SEPARATORS.split(cell_text(value)) if item.strip()]

        text = cell_text(value)
        if mapping.transformer:
            transformer = self.transformers.get(mapping.transformer)
            if transformer is None:
                logger.warning(f"Unknown transformer '{mapping.transformer}', passing value through")
                return text
            return transformer(text)
        return text

    # Validation

    def validate_mappings(self, mappings: Sequence[ColumnMapping]) -> MappingValidation:
        """Check that required fields are mapped and no field is mapped twice."""
        errors = []
        mapped = {mapping.system_field for mapping in mappings}
        for definition in SYSTEM_FIELDS:
            if definition.required and definition.name not in mapped:
                errors.append(f"Required field '{definition.name}' is not mapped")

        counts: dict[str, int] = {}
        for mapping in mappings:
            counts[mapping.system_field] = counts.get(mapping.system_field, 0) + 1
        for field_name, count in counts.items():
            if count > 1:
                errors.append(f"Field '{field_name}' is mapped multiple times")

        return MappingValidation(is_valid=not errors, errors=errors)

    # Helpers

    def _month_name(self, text: str) -> str:
        match = self.classifier.detect_month(text)
        return match.normalized_name if match.is_month else text

    @staticmethod
    def _is_price(value: Any) -> bool:
        amount, _ = parse_locale_number(value)
        return amount is not None and amount >= 0

    @staticmethod
    def _is_positive_number(value: Any) -> bool:
        amount, _ = parse_locale_number(value)
        return amount is not None and amount > 0

    def _is_currency(self, value: Any) -> bool:
        text = cell_text(value)
        return text in self.classifier.dictionaries.currency_symbols or (
            text.upper() in self.classifier.dictionaries.currency_codes
        )

    @staticmethod
    def _safe_check(validator: Callable[[Any], bool], value: Any) -> bool:
        try:
            return bool(validator(value))
        except (TypeError, ValueError):
            return False
