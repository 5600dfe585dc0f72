"""Import of headed tabular rows through column mappings."""

import logging
from typing import Any, Optional, Sequence

from ..grid import cell_text
from ..validation import DataValidationEngine
from .manager import TemplateManager
from .mapper import ColumnMapper
from .models import ColumnMapping, HeadersMissingError, ImportResult

logger = logging.getLogger(__name__)


class TabularImporter:
    """Maps, validates and coerces bulk rows in one pass."""

    def __init__(
        self,
        mapper: Optional[ColumnMapper] = None,
        engine: Optional[DataValidationEngine] = None,
        manager: Optional[TemplateManager] = None,
    ):
        self.mapper = mapper or ColumnMapper()
        self.engine = engine or DataValidationEngine(self.mapper.classifier)
        self.manager = manager or TemplateManager()

    def import_rows(
        self,
        headers: Sequence[Any],
        rows: Sequence[Sequence[Any]],
        mappings: Optional[Sequence[ColumnMapping]] = None,
    ) -> ImportResult:
        """Map rows to system fields and validate every cell.

        Args:
            headers: Header row of the source data.
            rows: Data rows aligned with ``headers``.
            mappings: Mappings to apply; suggested from headers and rows when omitted.

        Returns:
            Mappings used, their validation, coerced records and the field report.

        Raises:
            HeadersMissingError: If there is no usable header row.
        """
        header_names = [cell_text(h) for h in headers]
        if not any(header_names):
            raise HeadersMissingError("Tabular data has no header row")

        if mappings is None:
            suggestions = self.mapper.suggest_mappings(header_names, rows)
            mappings = self._best_per_field([s.mapping for s in suggestions])
        mappings = [m for m in mappings if m.excel_column in header_names]

        validation = self.mapper.validate_mappings(mappings)
        if not validation.is_valid:
            logger.warning(f"Mapping validation failed: {'; '.join(validation.errors)}")

        records = self.mapper.apply_mapping(rows, mappings, headers=header_names)
        report = self.engine.validate_data(
            rows,
            header_names,
            field_mappings={m.excel_column: m.system_field for m in mappings},
        )
        logger.info(f"Imported {len(records)} rows through {len(mappings)} mappings")
        return ImportResult(
            mappings=list(mappings),
            validation=validation,
            records=records,
            report=report,
        )

    async def import_with_templates(
        self, headers: Sequence[Any], rows: Sequence[Sequence[Any]]
    ) -> ImportResult:
        """Import using the best matching saved template, if any.

        Falls back to suggested mappings when no template matches. A template
        that was applied has its usage recorded.
        """
        header_names = [cell_text(h) for h in headers]
        if not any(header_names):
            raise HeadersMissingError("Tabular data has no header row")

        for template in await self.manager.find_matching_templates(header_names):
            usable = [m for m in template.mappings if m.excel_column in header_names]
            if not self.mapper.validate_mappings(usable).is_valid:
                continue
            result = self.import_rows(header_names, rows, usable)
            await self.manager.use_template(template.id)
            result.template_id = template.id
            logger.info(f"Applied mapping template '{template.name}'")
            return result

        return self.import_rows(header_names, rows)

    @staticmethod
    def _best_per_field(mappings: list[ColumnMapping]) -> list[ColumnMapping]:
        """Keep the highest-confidence column for each system field."""
        chosen: dict[str, ColumnMapping] = {}
        for mapping in mappings:
            current = chosen.get(mapping.system_field)
            if current is None or mapping.confidence > current.confidence:
                chosen[mapping.system_field] = mapping
        return list(chosen.values())
