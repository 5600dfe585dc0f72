"""Template management on top of a template storage adapter."""

import json
import logging
import re
from typing import Any, Optional, Sequence

from .models import (
    ColumnMapping,
    DataType,
    MappingTemplate,
    UsageAnalysis,
)
from .storage import InMemoryTemplateStorage, TemplateStorage

logger = logging.getLogger(__name__)

UNUSED_SHARE_THRESHOLD = 0.5
HEAVY_USE_THRESHOLD = 10
ANALYSIS_LIMIT = 5


def _mapping(column: str, field_name: str, data_type: DataType, required: bool = False) -> ColumnMapping:
    return ColumnMapping(
        excel_column=column,
        system_field=field_name,
        data_type=data_type,
        required=required,
        confidence=1.0,
    )


DEFAULT_TEMPLATES = (
    MappingTemplate(
        name="Standard Resort Pricing",
        description="Common mapping for resort pricing files with months and prices",
        mappings=[
            _mapping("Month", "month", DataType.STRING, required=True),
            _mapping("Price", "price", DataType.CURRENCY, required=True),
        ],
        applicable_patterns=["month.*price", "pricing.*table", "resort.*rates"],
    ),
    MappingTemplate(
        name="Hotel Accommodation Pricing",
        description="Mapping for hotel files with accommodation types",
        mappings=[
            _mapping("Month", "month", DataType.STRING, required=True),
            _mapping("Accommodation", "accommodation_type", DataType.STRING),
            _mapping("Price", "price", DataType.CURRENCY, required=True),
        ],
        applicable_patterns=["hotel.*price", "accommodation.*rate", "room.*cost"],
    ),
    MappingTemplate(
        name="Detailed Package Pricing",
        description="Comprehensive mapping including nights, pax, and inclusions",
        mappings=[
            _mapping("Month", "month", DataType.STRING, required=True),
            _mapping("Nights", "nights", DataType.NUMBER),
            _mapping("Pax", "pax", DataType.NUMBER),
            _mapping("Price", "price", DataType.CURRENCY, required=True),
            _mapping("Inclusions", "inclusions", DataType.LIST),
        ],
        applicable_patterns=["package.*pricing", "nights.*pax", "inclusions.*price"],
    ),
)


def pattern_matches(pattern: str, text: str) -> bool:
    """Case-insensitive regex search, or substring search for invalid regex."""
    try:
        return re.search(pattern, text, re.IGNORECASE) is not None
    except re.error:
        return pattern.lower() in text


class TemplateManager:
    """Creates, finds and tracks reusable mapping templates."""

    def __init__(self, storage: Optional[TemplateStorage] = None):
        self.storage = storage or InMemoryTemplateStorage()

    async def create_template(
        self,
        name: str,
        description: str,
        mappings: Sequence[ColumnMapping],
        applicable_patterns: Sequence[str],
    ) -> MappingTemplate:
        """Save a new template built from the given mappings."""
        template = await self.storage.save_template(
            MappingTemplate(
                name=name,
                description=description,
                mappings=list(mappings),
                applicable_patterns=list(applicable_patterns),
            )
        )
        logger.info(f"Created mapping template '{name}' ({template.id})")
        return template

    async def get_all_templates(self) -> list[MappingTemplate]:
        return await self.storage.load_templates()

    async def get_popular_templates(self, limit: Optional[int] = None) -> list[MappingTemplate]:
        """Templates by descending use count."""
        templates = sorted(await self.storage.load_templates(), key=lambda t: -t.use_count)
        return templates[:limit] if limit else templates

    async def get_recent_templates(self, limit: int = 5) -> list[MappingTemplate]:
        """Templates that have been used, most recent first."""
        used = [t for t in await self.storage.load_templates() if t.last_used is not None]
        used.sort(key=lambda t: t.last_used, reverse=True)
        return used[:limit]

    async def find_matching_templates(self, headers: Sequence[str]) -> list[MappingTemplate]:
        """Templates whose patterns match the joined headers.

        Ranked by number of matching patterns, then by use count.
        """
        header_text = " ".join(headers).lower()
        scored = []
        for template in await self.storage.load_templates():
            hits = sum(1 for p in template.applicable_patterns if pattern_matches(p, header_text))
            if hits:
                scored.append((hits, template))
        scored.sort(key=lambda item: (-item[0], -item[1].use_count))
        return [template for _, template in scored]

    async def use_template(self, template_id: str) -> None:
        await self.storage.increment_usage(template_id)

    async def update_template(self, template_id: str, patch: dict[str, Any]) -> MappingTemplate:
        return await self.storage.update_template(template_id, patch)

    async def delete_template(self, template_id: str) -> None:
        await self.storage.delete_template(template_id)
        logger.info(f"Deleted mapping template {template_id}")

    async def export_templates(self) -> str:
        """Serialize every template to a JSON string."""
        templates = await self.storage.load_templates()
        return json.dumps([t.model_dump(mode="json") for t in templates], indent=2)

    async def import_templates(self, data: str) -> list[MappingTemplate]:
        """Store templates from exported JSON as new templates with new ids.

        Raises:
            ValueError: If ``data`` is not a JSON array of templates.
        """
        try:
            items = json.loads(data)
        except json.JSONDecodeError as e:
            raise ValueError(f"Failed to import templates: {e}") from e
        if not isinstance(items, list):
            raise ValueError("Failed to import templates: expected a JSON array")

        imported = []
        for item in items:
            template = MappingTemplate.model_validate(item)
            imported.append(await self.storage.save_template(template))
        logger.info(f"Imported {len(imported)} mapping templates")
        return imported

    async def create_default_templates(self) -> list[MappingTemplate]:
        """Store the built-in resort, hotel and package templates."""
        created = []
        for template in DEFAULT_TEMPLATES:
            created.append(await self.storage.save_template(template))
        return created

    async def analyze_usage(self) -> UsageAnalysis:
        """Summarize template usage and suggest housekeeping."""
        templates = await self.storage.load_templates()
        newest_first = sorted(templates, key=lambda t: t.created_at, reverse=True)
        most_used = sorted((t for t in templates if t.use_count > 0), key=lambda t: -t.use_count)
        unused = [t for t in newest_first if t.use_count == 0]

        suggestions = []
        if not templates:
            suggestions.append("Create some default templates to speed up future mappings")
        if templates and len(unused) > len(templates) * UNUSED_SHARE_THRESHOLD:
            suggestions.append("Consider reviewing unused templates and removing outdated ones")
        if most_used and most_used[0].use_count > HEAVY_USE_THRESHOLD:
            suggestions.append(
                "Consider creating variations of your most-used templates for different scenarios"
            )

        return UsageAnalysis(
            total_templates=len(templates),
            most_used=most_used[:ANALYSIS_LIMIT],
            least_used=unused[:ANALYSIS_LIMIT],
            recently_created=newest_first[:ANALYSIS_LIMIT],
            suggestions=suggestions,
        )
