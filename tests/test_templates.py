"""Tests for mapping template storage and management."""

import json

import pytest

from ratesmith.mapping import (
    DEFAULT_TEMPLATES,
    ColumnMapping,
    DataType,
    JsonFileTemplateStorage,
    MappingTemplate,
    SQLiteTemplateStorage,
    TemplateManager,
    TemplateNotFoundError,
)


def _template(name="Partner rates", patterns=("month.*price",)):
    return MappingTemplate(
        name=name,
        description="Test template",
        mappings=[
            ColumnMapping(excel_column="Month", system_field="month", required=True),
            ColumnMapping(
                excel_column="Price", system_field="price", data_type=DataType.CURRENCY, required=True
            ),
        ],
        applicable_patterns=list(patterns),
    )


class TestTemplateStorage:
    """Test every storage adapter against the same contract."""

    @pytest.mark.asyncio
    async def test_save_assigns_identity(self, template_storage):
        """Test saving assigns a new id and resets usage."""
        source = _template().model_copy(update={"id": "mine", "use_count": 9})
        stored = await template_storage.save_template(source)

        assert stored.id and stored.id != "mine"
        assert stored.use_count == 0
        assert stored.last_used is None
        assert stored.created_at is not None

    @pytest.mark.asyncio
    async def test_load_round_trip(self, template_storage):
        """Test saved templates load back with their mappings."""
        stored = await template_storage.save_template(_template())
        loaded = await template_storage.load_templates()

        assert len(loaded) == 1
        assert loaded[0].id == stored.id
        assert loaded[0].mappings[1].data_type == DataType.CURRENCY
        assert loaded[0].applicable_patterns == ["month.*price"]

    @pytest.mark.asyncio
    async def test_update_template(self, template_storage):
        """Test partial updates keep id and created_at."""
        stored = await template_storage.save_template(_template())
        updated = await template_storage.update_template(
            stored.id, {"name": "Renamed", "id": "other", "created_at": None}
        )

        assert updated.name == "Renamed"
        assert updated.id == stored.id
        assert updated.created_at == stored.created_at
        loaded = await template_storage.load_templates()
        assert loaded[0].name == "Renamed"

    @pytest.mark.asyncio
    async def test_update_mappings_from_dicts(self, template_storage):
        """Test mapping patches may be plain dicts."""
        stored = await template_storage.save_template(_template())
        updated = await template_storage.update_template(
            stored.id, {"mappings": [{"excel_column": "Mes", "system_field": "month"}]}
        )
        assert updated.mappings[0].excel_column == "Mes"

    @pytest.mark.asyncio
    async def test_update_unknown(self, template_storage):
        """Test updating a missing template raises."""
        with pytest.raises(TemplateNotFoundError):
            await template_storage.update_template("nope", {"name": "x"})

    @pytest.mark.asyncio
    async def test_delete(self, template_storage):
        """Test deleting removes the template and unknown ids raise."""
        stored = await template_storage.save_template(_template())
        await template_storage.delete_template(stored.id)

        assert await template_storage.load_templates() == []
        with pytest.raises(TemplateNotFoundError):
            await template_storage.delete_template(stored.id)

    @pytest.mark.asyncio
    async def test_increment_usage(self, template_storage):
        """Test usage counts and last_used timestamps."""
        stored = await template_storage.save_template(_template())
        await template_storage.increment_usage(stored.id)
        await template_storage.increment_usage(stored.id)
        await template_storage.increment_usage("unknown")

        loaded = (await template_storage.load_templates())[0]
        assert loaded.use_count == 2
        assert loaded.last_used is not None


class TestJsonFileStorage:
    """Test JSON file specifics."""

    @pytest.mark.asyncio
    async def test_file_contents(self, tmp_path):
        """Test templates are written as a JSON array."""
        path = tmp_path / "nested" / "templates.json"
        storage = JsonFileTemplateStorage(path)
        await storage.initialize()
        await storage.save_template(_template())

        data = json.loads(path.read_text(encoding="utf-8"))
        assert isinstance(data, list)
        assert data[0]["name"] == "Partner rates"

    @pytest.mark.asyncio
    async def test_missing_file_is_empty(self, tmp_path):
        """Test a fresh store loads nothing."""
        storage = JsonFileTemplateStorage(tmp_path / "none.json")
        assert await storage.load_templates() == []


class TestSQLiteStorage:
    """Test SQLite persistence across connections."""

    @pytest.mark.asyncio
    async def test_persists_across_connections(self, sqlite_storage):
        """Test a template survives reopening the database."""
        stored = await sqlite_storage.save_template(_template())
        reopened = SQLiteTemplateStorage(sqlite_storage.db_path)
        await reopened.initialize()
        try:
            loaded = await reopened.load_templates()
        finally:
            await reopened.close()

        assert [t.id for t in loaded] == [stored.id]


class TestTemplateManager:
    """Test template management on top of storage."""

    @pytest.mark.asyncio
    async def test_create_and_find(self, template_storage):
        """Test matching templates by header patterns."""
        manager = TemplateManager(template_storage)
        await manager.create_template("Rates", "", _template().mappings, ["month.*price"])
        await manager.create_template("Hotels", "", _template().mappings, ["hotel"])

        matches = await manager.find_matching_templates(["Month", "Price"])
        assert [t.name for t in matches] == ["Rates"]

    @pytest.mark.asyncio
    async def test_find_ranks_by_hits_then_usage(self, template_storage):
        """Test more pattern hits rank first, then heavier use."""
        manager = TemplateManager(template_storage)
        one = await manager.create_template("One", "", [], ["month"])
        two = await manager.create_template("Two", "", [], ["month", "price"])
        used = await manager.create_template("Used", "", [], ["month"])
        await manager.use_template(used.id)

        matches = await manager.find_matching_templates(["Month", "Price"])
        assert [t.id for t in matches] == [two.id, used.id, one.id]

    @pytest.mark.asyncio
    async def test_invalid_regex_falls_back_to_substring(self, template_storage):
        """Test an invalid pattern is matched as plain text."""
        manager = TemplateManager(template_storage)
        await manager.create_template("Broken", "", [], ["price("])

        assert await manager.find_matching_templates(["Price(EUR)"])
        assert not await manager.find_matching_templates(["Month"])

    @pytest.mark.asyncio
    async def test_popular_and_recent(self, template_storage):
        """Test popularity and recency ordering."""
        manager = TemplateManager(template_storage)
        first = await manager.create_template("First", "", [], [])
        second = await manager.create_template("Second", "", [], [])
        await manager.use_template(second.id)
        await manager.use_template(second.id)
        await manager.use_template(first.id)

        popular = await manager.get_popular_templates()
        assert [t.id for t in popular] == [second.id, first.id]
        recent = await manager.get_recent_templates()
        assert {t.id for t in recent} == {first.id, second.id}
        assert await manager.get_popular_templates(limit=1) == popular[:1]

    @pytest.mark.asyncio
    async def test_default_templates(self, template_storage):
        """Test the built-in templates are created."""
        manager = TemplateManager(template_storage)
        created = await manager.create_default_templates()

        assert [t.name for t in created] == [t.name for t in DEFAULT_TEMPLATES]
        assert len(await manager.get_all_templates()) == 3

    @pytest.mark.asyncio
    async def test_export_import(self, template_storage):
        """Test exported templates import as new templates."""
        manager = TemplateManager(template_storage)
        original = await manager.create_template("Rates", "", _template().mappings, ["month"])

        exported = await manager.export_templates()
        imported = await manager.import_templates(exported)

        assert len(imported) == 1
        assert imported[0].id != original.id
        assert imported[0].mappings == original.mappings
        assert len(await manager.get_all_templates()) == 2

    @pytest.mark.asyncio
    async def test_import_rejects_bad_json(self, template_storage):
        """Test malformed import data raises ValueError."""
        manager = TemplateManager(template_storage)
        with pytest.raises(ValueError):
            await manager.import_templates("{not json")
        with pytest.raises(ValueError):
            await manager.import_templates('{"name": "single"}')

    @pytest.mark.asyncio
    async def test_update_and_delete(self, template_storage):
        """Test update and delete pass through to storage."""
        manager = TemplateManager(template_storage)
        template = await manager.create_template("Rates", "", [], [])

        updated = await manager.update_template(template.id, {"description": "Updated"})
        assert updated.description == "Updated"

        await manager.delete_template(template.id)
        with pytest.raises(TemplateNotFoundError):
            await manager.delete_template(template.id)

    @pytest.mark.asyncio
    async def test_analyze_usage_empty(self, template_storage):
        """Test suggestions for an empty store."""
        analysis = await TemplateManager(template_storage).analyze_usage()

        assert analysis.total_templates == 0
        assert analysis.suggestions == ["Create some default templates to speed up future mappings"]

    @pytest.mark.asyncio
    async def test_analyze_usage(self, template_storage):
        """Test usage analysis lists and suggestions."""
        manager = TemplateManager(template_storage)
        created = await manager.create_default_templates()
        for _ in range(11):
            await manager.use_template(created[0].id)

        analysis = await manager.analyze_usage()

        assert analysis.total_templates == 3
        assert [t.id for t in analysis.most_used] == [created[0].id]
        assert len(analysis.least_used) == 2
        assert any("unused templates" in s for s in analysis.suggestions)
        assert any("variations" in s for s in analysis.suggestions)
