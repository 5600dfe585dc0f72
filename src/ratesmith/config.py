"""Configuration management for RateSmith."""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


class Settings(BaseModel):
    """Application settings."""

    # Template persistence
    template_db_path: Path = Path(os.getenv("TEMPLATE_DB_PATH", "data/templates.db"))
    template_json_path: Path = Path(os.getenv("TEMPLATE_JSON_PATH", "data/templates.json"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Layout scanning
    layout_scan_rows: int = int(os.getenv("LAYOUT_SCAN_ROWS", "20"))
    layout_scan_cols: int = int(os.getenv("LAYOUT_SCAN_COLS", "20"))
    min_secondary_confidence: float = float(os.getenv("MIN_SECONDARY_CONFIDENCE", "0.3"))
    low_confidence_threshold: float = float(os.getenv("LOW_CONFIDENCE_THRESHOLD", "0.6"))

    # Section termination - consecutive blank rows/cols that end a block
    blank_run_terminator: int = int(os.getenv("BLANK_RUN_TERMINATOR", "3"))

    # Pricing defaults
    default_currency: str = os.getenv("DEFAULT_CURRENCY", "EUR")
    price_rounding_precision: int = int(os.getenv("PRICE_ROUNDING_PRECISION", "2"))

    # Inclusions text bounds (cleaned length)
    inclusion_min_length: int = int(os.getenv("INCLUSION_MIN_LENGTH", "3"))
    inclusion_max_length: int = int(os.getenv("INCLUSION_MAX_LENGTH", "300"))
    inclusion_target_words: int = int(os.getenv("INCLUSION_TARGET_WORDS", "5"))
    inclusion_scan_rows: int = int(os.getenv("INCLUSION_SCAN_ROWS", "30"))
    section_dedup_distance: int = int(os.getenv("SECTION_DEDUP_DISTANCE", "2"))

    # Column mapping
    mapping_min_confidence: float = float(os.getenv("MAPPING_MIN_CONFIDENCE", "0.3"))
    mapping_max_alternatives: int = int(os.getenv("MAPPING_MAX_ALTERNATIVES", "3"))

    # Generic field validation limits
    max_reasonable_price: float = float(os.getenv("MAX_REASONABLE_PRICE", "10000"))
    max_reasonable_nights: int = int(os.getenv("MAX_REASONABLE_NIGHTS", "30"))
    max_reasonable_pax: int = int(os.getenv("MAX_REASONABLE_PAX", "20"))


settings = Settings()
