"""Persistence adapters for mapping templates.

Every adapter implements the same small async interface. Calls are
independent; concurrent writers resolve as last-writer-wins.
"""

import asyncio
import json
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import aiosqlite

from ..config import settings
from .models import ColumnMapping, MappingTemplate, TemplateNotFoundError, _utc_now

logger = logging.getLogger(__name__)

# Fields a caller may not overwrite through update_template
PROTECTED_FIELDS = {"id", "created_at"}


def _new_template(template: MappingTemplate) -> MappingTemplate:
    """Copy a template with a fresh id, creation time and zero usage."""
    return template.model_copy(
        update={
            "id": str(uuid.uuid4()),
            "created_at": _utc_now(),
            "use_count": 0,
            "last_used": None,
        }
    )


def _patched(template: MappingTemplate, patch: dict[str, Any]) -> MappingTemplate:
    updates = {key: value for key, value in patch.items() if key not in PROTECTED_FIELDS}
    if "mappings" in updates:
        updates["mappings"] = [
            m if isinstance(m, ColumnMapping) else ColumnMapping.model_validate(m)
            for m in updates["mappings"]
        ]
    return MappingTemplate.model_validate({**template.model_dump(), **updates})


class TemplateStorage(ABC):
    """Async storage port for mapping templates."""

    @abstractmethod
    async def save_template(self, template: MappingTemplate) -> MappingTemplate:
        """Store a new template; assigns id, created_at and use_count=0."""

    @abstractmethod
    async def load_templates(self) -> list[MappingTemplate]:
        """Return every stored template."""

    @abstractmethod
    async def update_template(self, template_id: str, patch: dict[str, Any]) -> MappingTemplate:
        """Apply a partial update. Raises TemplateNotFoundError."""

    @abstractmethod
    async def delete_template(self, template_id: str) -> None:
        """Remove a template. Raises TemplateNotFoundError."""

    @abstractmethod
    async def increment_usage(self, template_id: str) -> None:
        """Bump use_count and stamp last_used; unknown ids are ignored."""

    async def initialize(self):
        """Prepare the backend. No-op for in-process stores."""

    async def close(self):
        """Release backend resources."""


class InMemoryTemplateStorage(TemplateStorage):
    """Templates kept in a dict for the lifetime of the process."""

    def __init__(self):
        self._templates: dict[str, MappingTemplate] = {}

    async def save_template(self, template: MappingTemplate) -> MappingTemplate:
        stored = _new_template(template)
        self._templates[stored.id] = stored
        return stored.model_copy(deep=True)

    async def load_templates(self) -> list[MappingTemplate]:
        return [t.model_copy(deep=True) for t in self._templates.values()]

    async def update_template(self, template_id: str, patch: dict[str, Any]) -> MappingTemplate:
        if template_id not in self._templates:
            raise TemplateNotFoundError(template_id)
        updated = _patched(self._templates[template_id], patch)
        self._templates[template_id] = updated
        return updated.model_copy(deep=True)

    async def delete_template(self, template_id: str) -> None:
        if self._templates.pop(template_id, None) is None:
            raise TemplateNotFoundError(template_id)

    async def increment_usage(self, template_id: str) -> None:
        template = self._templates.get(template_id)
        if template is None:
            logger.debug(f"increment_usage ignored for unknown template {template_id}")
            return
        template.use_count += 1
        template.last_used = _utc_now()


class JsonFileTemplateStorage(TemplateStorage):
    """Templates serialized as a JSON array in a single file."""

    def __init__(self, path: Optional[Path] = None):
        self.path = path or settings.template_json_path
        self._lock = asyncio.Lock()

    async def initialize(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"JsonFileTemplateStorage initialized at {self.path}")

    def _read(self) -> list[MappingTemplate]:
        if not self.path.exists():
            return []
        raw = self.path.read_text(encoding="utf-8").strip()
        if not raw:
            return []
        return [MappingTemplate.model_validate(item) for item in json.loads(raw)]

    def _write(self, templates: list[MappingTemplate]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [t.model_dump(mode="json") for t in templates]
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    async def save_template(self, template: MappingTemplate) -> MappingTemplate:
        async with self._lock:
            templates = self._read()
            stored = _new_template(template)
            templates.append(stored)
            self._write(templates)
            return stored

    async def load_templates(self) -> list[MappingTemplate]:
        async with self._lock:
            return self._read()

    async def update_template(self, template_id: str, patch: dict[str, Any]) -> MappingTemplate:
        async with self._lock:
            templates = self._read()
            for index, template in enumerate(templates):
                if template.id == template_id:
                    templates[index] = _patched(template, patch)
                    self._write(templates)
                    return templates[index]
            raise TemplateNotFoundError(template_id)

    async def delete_template(self, template_id: str) -> None:
        async with self._lock:
            templates = self._read()
            remaining = [t for t in templates if t.id != template_id]
            if len(remaining) == len(templates):
                raise TemplateNotFoundError(template_id)
            self._write(remaining)

    async def increment_usage(self, template_id: str) -> None:
        async with self._lock:
            templates = self._read()
            for template in templates:
                if template.id == template_id:
                    template.use_count += 1
                    template.last_used = _utc_now()
                    self._write(templates)
                    return


class SQLiteTemplateStorage(TemplateStorage):
    """Templates stored in SQLite via aiosqlite."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = db_path or settings.template_db_path
        self._connection: Optional[aiosqlite.Connection] = None

    async def initialize(self):
        """Initialize the database and create tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(str(self.db_path))

        await self._connection.executescript(
            """
            CREATE TABLE IF NOT EXISTS mapping_templates (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                description TEXT,
                mappings TEXT NOT NULL,
                applicable_patterns TEXT,
                use_count INTEGER NOT NULL DEFAULT 0,
                last_used TEXT NULL,
                created_at TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_mapping_templates_use_count
                ON mapping_templates(use_count);
            """
        )
        await self._connection.commit()
        logger.info("SQLiteTemplateStorage initialized")

    async def close(self):
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def _store(self, template: MappingTemplate):
        await self._connection.execute(
            """
            INSERT OR REPLACE INTO mapping_templates
            (id, name, description, mappings, applicable_patterns, use_count, last_used, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                template.id,
                template.name,
                template.description,
                json.dumps([m.model_dump(mode="json") for m in template.mappings]),
                json.dumps(template.applicable_patterns),
                template.use_count,
                template.last_used.isoformat() if template.last_used else None,
                template.created_at.isoformat(),
            ),
        )
        await self._connection.commit()

    async def _get(self, template_id: str) -> Optional[MappingTemplate]:
        async with self._connection.execute(
            "SELECT * FROM mapping_templates WHERE id = ?", (template_id,)
        ) as cursor:
            row = await cursor.fetchone()
            if row:
                return self._row_to_template(row)
        return None

    async def save_template(self, template: MappingTemplate) -> MappingTemplate:
        stored = _new_template(template)
        await self._store(stored)
        return stored

    async def load_templates(self) -> list[MappingTemplate]:
        async with self._connection.execute(
            "SELECT * FROM mapping_templates ORDER BY created_at"
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_template(row) for row in rows]

    async def update_template(self, template_id: str, patch: dict[str, Any]) -> MappingTemplate:
        current = await self._get(template_id)
        if current is None:
            raise TemplateNotFoundError(template_id)
        updated = _patched(current, patch)
        await self._store(updated)
        return updated

    async def delete_template(self, template_id: str) -> None:
        cursor = await self._connection.execute(
            "DELETE FROM mapping_templates WHERE id = ?", (template_id,)
        )
        await self._connection.commit()
        if cursor.rowcount == 0:
            raise TemplateNotFoundError(template_id)

    async def increment_usage(self, template_id: str) -> None:
        await self._connection.execute(
            """
            UPDATE mapping_templates
            SET use_count = use_count + 1, last_used = ?
            WHERE id = ?
            """,
            (_utc_now().isoformat(), template_id),
        )
        await self._connection.commit()

    def _row_to_template(self, row) -> MappingTemplate:
        return MappingTemplate(
            id=row[0],
            name=row[1],
            description=row[2] or "",
            mappings=[ColumnMapping.model_validate(m) for m in json.loads(row[3])],
            applicable_patterns=json.loads(row[4]) if row[4] else [],
            use_count=row[5],
            last_used=datetime.fromisoformat(row[6]) if row[6] else None,
            created_at=datetime.fromisoformat(row[7]),
        )
