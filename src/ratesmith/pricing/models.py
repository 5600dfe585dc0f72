"""Data models for pricing extraction, normalization and validation."""

from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field

from ..config import settings

UNAVAILABLE = "UNAVAILABLE"


class Severity(str, Enum):
    """Severity of a validation issue."""

    ERROR = "error"  # Blocks acceptance
    WARNING = "warning"  # Advisory
    INFO = "info"


class MissingPricePolicy(str, Enum):
    """What to do with blank or unparseable price cells."""

    MARK_UNAVAILABLE = "mark-unavailable"
    SKIP = "skip"
    ERROR = "error"


class AccommodationType(BaseModel):
    """One priced line of a matrix: lodging type plus optional nights/pax."""

    name: str
    code: str
    description: str = ""
    category: str = "other"
    nights: Optional[int] = None
    pax: Optional[int] = None
    pax_max: Optional[int] = None


class PriceCell(BaseModel):
    """A single price as read from the sheet."""

    value: Optional[float] = None
    raw_value: Any = ""
    is_available: bool = True
    cell_reference: Optional[str] = None
    is_merged: bool = False
    notes: Optional[str] = None

    @property
    def is_missing(self) -> bool:
        return self.value is None or not self.is_available


class PricingMetadata(BaseModel):
    """Context attached to an extracted matrix."""

    currency: str
    resort_name: Optional[str] = None
    special_periods: list[str] = Field(default_factory=list)
    season_year: Optional[int] = None


class PricingMatrix(BaseModel):
    """Prices laid out as ``price_grid[type_index][month_index]``."""

    months: list[str]
    accommodation_types: list[AccommodationType]
    price_grid: list[list[PriceCell]]
    metadata: PricingMetadata
    nights_options: list[int] = Field(default_factory=list)
    pax_options: list[int] = Field(default_factory=list)


class NormalizedPriceEntry(BaseModel):
    """One flat price for a month, accommodation type, nights and pax."""

    month: str
    accommodation_type: str
    accommodation_code: Optional[str] = None
    nights: int = Field(ge=1)
    pax: int = Field(ge=1)
    price: Union[float, Literal["UNAVAILABLE"]]
    currency: str
    is_available: bool
    special_period: Optional[str] = None
    cell_reference: Optional[str] = None
    notes: Optional[str] = None


class CurrencyConversion(BaseModel):
    """Multiply prices in ``from_currency`` by ``rate`` and relabel them."""

    from_currency: str
    to_currency: str
    rate: float = Field(gt=0)


class PriceRounding(BaseModel):
    """Round-half-up to ``precision`` decimal places."""

    enabled: bool = True
    precision: int = Field(default_factory=lambda: settings.price_rounding_precision, ge=0)


class NormalizationOptions(BaseModel):
    """Options for flattening a pricing matrix."""

    preserve_special_periods: bool = True
    handle_missing_prices: MissingPricePolicy = MissingPricePolicy.MARK_UNAVAILABLE
    currency_conversion: Optional[CurrencyConversion] = None
    price_rounding: PriceRounding = Field(default_factory=PriceRounding)
    default_nights: int = Field(default=1, ge=1)
    default_pax: int = Field(default=1, ge=1)


class NormalizationSummary(BaseModel):
    """Counts over a normalization run."""

    total_entries: int = 0
    available_entries: int = 0
    unavailable_entries: int = 0
    skipped_entries: int = 0
    special_periods: list[str] = Field(default_factory=list)


class NormalizationResult(BaseModel):
    """Outcome of normalizing a pricing matrix."""

    success: bool = False
    data: list[NormalizedPriceEntry] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    summary: NormalizationSummary = Field(default_factory=NormalizationSummary)


class ValidationIssue(BaseModel):
    """A single finding from a validator."""

    rule: str
    severity: Severity
    field: str
    message: str
    row: Optional[int] = None
    column: Optional[str] = None
    value: Any = None
    suggestion: Optional[str] = None


class PriceBounds(BaseModel):
    """Per-person-per-night price band."""

    minimum: float
    maximum: float


class PriceValidationOptions(BaseModel):
    """Options for the price validator."""

    currency_consistency_check: bool = True
    price_reasonableness_check: bool = True
    price_progression_check: bool = True
    allow_zero_prices: bool = False
    expected_currency: Optional[str] = None
    # Category (e.g. "villa") -> band overriding the scaled default
    custom_bounds: dict[str, PriceBounds] = Field(default_factory=dict)


class PriceValidationResult(BaseModel):
    """Issues found across a set of normalized entries."""

    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)
    summary: dict[str, int] = Field(default_factory=dict)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == Severity.WARNING]


class CurrencyCheck(BaseModel):
    """Result of detecting and checking the currency of a price string."""

    currency: Optional[str] = None
    symbol: Optional[str] = None
    amount: Optional[float] = None
    is_valid: bool = False
    message: str = ""


class NumberFormatCheck(BaseModel):
    """Result of parsing a localized number."""

    is_valid: bool
    value: Optional[float] = None
    format: str = "unknown"
    message: str = ""


class ReasonablenessCheck(BaseModel):
    """Per-person-per-night price compared with its band."""

    is_reasonable: bool
    per_person_per_night: float
    minimum: float
    maximum: float
    message: str = ""


class NormalizationError(Exception):
    """Exception raised when strict normalization fails."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors) or "Normalization failed")
