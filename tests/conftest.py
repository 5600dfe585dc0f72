"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest
import pytest_asyncio

from ratesmith.classify import ContentClassifier
from ratesmith.grid import MergeRange, Worksheet
from ratesmith.mapping import (
    InMemoryTemplateStorage,
    JsonFileTemplateStorage,
    SQLiteTemplateStorage,
)


@pytest.fixture
def classifier() -> ContentClassifier:
    """Classifier with the default dictionaries."""
    return ContentClassifier()


@pytest.fixture
def months_columns_sheet() -> Worksheet:
    """Months across the header row, tiers down the side, inclusions below."""
    return Worksheet(
        name="Benidorm 2025 Prices",
        rows=[
            ["Accommodation", "January", "February", "March", "Easter (18-21 Apr)"],
            ["Hotel 3 nights 2 pax", "€450", "€480", "n/a", "€600"],
            ["Hotel 7 nights 2 pax", "€900", "€950", "€1,000", ""],
            ["Apartment 3 nights 2 pax", "€300", "€320", "€340", "€400"],
            [],
            [],
            [],
            ["What's Included"],
            ["• Daily breakfast"],
            ["• Free WiFi"],
            ["• Airport transfers"],
        ],
    )


@pytest.fixture
def months_rows_sheet() -> Worksheet:
    """Months down the first column, accommodation types across the top."""
    return Worksheet(
        name="Prices",
        rows=[
            ["Month", "Hotel", "Apartment", "Villa"],
            ["Jan", 100, 80, 200],
            ["Feb", 110, "sold out", 210],
            ["Mar", 120, 90, 220],
            ["Apr", 130, 95, 230],
        ],
    )


@pytest.fixture
def merged_sheet() -> Worksheet:
    """A price merged across two months."""
    return Worksheet(
        name="Albufeira",
        rows=[
            ["Type", "June", "July", "August"],
            ["Villa", "£700", None, "£900"],
            ["Apartment", "£400", "£450", "£500"],
        ],
        merges=[MergeRange(top=1, left=1, bottom=1, right=2)],
    )


@pytest_asyncio.fixture
async def sqlite_storage(tmp_path: Path):
    """Create a test SQLite template storage."""
    storage = SQLiteTemplateStorage(tmp_path / "templates.db")
    await storage.initialize()
    yield storage
    await storage.close()


@pytest_asyncio.fixture(params=["memory", "json", "sqlite"])
async def template_storage(request, tmp_path: Path):
    """Every template storage adapter, initialized on a temp path."""
    if request.param == "memory":
        storage = InMemoryTemplateStorage()
    elif request.param == "json":
        storage = JsonFileTemplateStorage(tmp_path / "templates.json")
    else:
        storage = SQLiteTemplateStorage(tmp_path / "templates.db")
    await storage.initialize()
    yield storage
    await storage.close()
