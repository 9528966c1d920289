# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Repository for threat categories and their keywords."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

import aiosqlite

from riskwatch.core.exceptions import ConfigurationError, NotFoundError, StorageError
from riskwatch.models.category import (
    CategoryKeyword,
    CategorySnapshot,
    ThreatCategory,
    parse_category,
)
from riskwatch.storage.database import transaction

logger = logging.getLogger("riskwatch.storage.categories")


class CategoryRepository:
    """Validated writes and snapshot reads for threat_categories."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def create(self, data: Mapping[str, Any] | ThreatCategory) -> ThreatCategory:
        """Validate and insert a category with its keywords.

        Raises:
            ConfigurationError: If the category is invalid or its name is taken.
        """
        category = parse_category(data)
        if await self.get_by_name(category.name) is not None:
            msg = f"A category named {category.name!r} already exists"
            raise ConfigurationError(msg)

        try:
            async with transaction(self._db):
                cursor = await self._db.execute(
                    """
                    INSERT INTO threat_categories (
                        name, type, industry, description, base_risk_score, severity,
                        alert_threshold, investigation_threshold, critical_threshold,
                        detection_patterns, risk_multipliers, examples, llm_fallback,
                        is_active
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    self._category_params(category),
                )
                category_id = cursor.lastrowid
                await self._insert_keywords(category_id, category.keywords)
        except aiosqlite.Error as exc:
            raise StorageError(f"Failed to create category {category.name!r}: {exc}") from exc

        logger.info("Created category %s (id=%s)", category.name, category_id)
        return category.model_copy(update={"id": category_id})

    async def update(
        self, category_id: int, data: Mapping[str, Any] | ThreatCategory
    ) -> ThreatCategory:
        """Replace a category's configuration (keywords included)."""
        category = parse_category(data)
        if await self.get(category_id) is None:
            raise NotFoundError("category", category_id)
        clash = await self.get_by_name(category.name)
        if clash is not None and clash.id != category_id:
            msg = f"A category named {category.name!r} already exists"
            raise ConfigurationError(msg)

        try:
            async with transaction(self._db):
                await self._db.execute(
                    """
                    UPDATE threat_categories SET
                        name = ?, type = ?, industry = ?, description = ?,
                        base_risk_score = ?, severity = ?, alert_threshold = ?,
                        investigation_threshold = ?, critical_threshold = ?,
                        detection_patterns = ?, risk_multipliers = ?, examples = ?,
                        llm_fallback = ?, is_active = ?, updated_at = datetime('now')
                    WHERE id = ?
                    """,
                    (*self._category_params(category), category_id),
                )
                await self._db.execute(
                    "DELETE FROM category_keywords WHERE category_id = ?", (category_id,)
                )
                await self._insert_keywords(category_id, category.keywords)
        except aiosqlite.Error as exc:
            raise StorageError(f"Failed to update category {category_id}: {exc}") from exc

        return category.model_copy(update={"id": category_id})

    async def set_active(self, category_id: int, active: bool) -> None:
        async with transaction(self._db):
            cursor = await self._db.execute(
                "UPDATE threat_categories SET is_active = ?, updated_at = datetime('now') "
                "WHERE id = ?",
                (int(active), category_id),
            )
        if cursor.rowcount == 0:
            raise NotFoundError("category", category_id)

    async def get(self, category_id: int) -> ThreatCategory | None:
        cursor = await self._db.execute(
            "SELECT * FROM threat_categories WHERE id = ?", (category_id,)
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        keywords = await self._keywords_for([category_id])
        return self._row_to_category(row, keywords.get(category_id, []))

    async def get_by_name(self, name: str) -> ThreatCategory | None:
        cursor = await self._db.execute(
            "SELECT id FROM threat_categories WHERE name = ?", (name,)
        )
        row = await cursor.fetchone()
        return await self.get(row["id"]) if row else None

    async def list_all(self, *, active_only: bool = False) -> list[ThreatCategory]:
        query = "SELECT * FROM threat_categories"
        if active_only:
            query += " WHERE is_active = 1"
        query += " ORDER BY id"
        cursor = await self._db.execute(query)
        rows = await cursor.fetchall()
        keywords = await self._keywords_for([row["id"] for row in rows])
        return [self._row_to_category(row, keywords.get(row["id"], [])) for row in rows]

    async def snapshot(self) -> CategorySnapshot:
        """Read the active categories once into an immutable snapshot."""
        return CategorySnapshot.from_categories(await self.list_all(active_only=True))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _insert_keywords(
        self, category_id: int | None, keywords: list[CategoryKeyword]
    ) -> None:
        await self._db.executemany(
            """
            INSERT INTO category_keywords (category_id, keyword, weight, is_phrase, required_context)
            VALUES (?, ?, ?, ?, ?)
            """,
            [
                (category_id, kw.keyword, kw.weight, int(kw.is_phrase), kw.required_context)
                for kw in keywords
            ],
        )

    async def _keywords_for(self, category_ids: list[int]) -> dict[int, list[CategoryKeyword]]:
        if not category_ids:
            return {}
        placeholders = ", ".join("?" for _ in category_ids)
        cursor = await self._db.execute(
            f"SELECT * FROM category_keywords WHERE category_id IN ({placeholders}) "  # noqa: S608
            "ORDER BY id",
            category_ids,
        )
        grouped: dict[int, list[CategoryKeyword]] = {}
        for row in await cursor.fetchall():
            grouped.setdefault(row["category_id"], []).append(
                CategoryKeyword(
                    id=row["id"],
                    keyword=row["keyword"],
                    weight=row["weight"],
                    is_phrase=bool(row["is_phrase"]),
                    required_context=row["required_context"],
                )
            )
        return grouped

    @staticmethod
    def _category_params(category: ThreatCategory) -> tuple[Any, ...]:
        return (
            category.name,
            str(category.type),
            category.industry,
            category.description,
            category.base_risk_score,
            str(category.severity),
            category.alert_threshold,
            category.investigation_threshold,
            category.critical_threshold,
            json.dumps({str(k): v for k, v in category.detection_patterns.items()}),
            json.dumps({str(k): v for k, v in category.risk_multipliers.items()}),
            json.dumps(category.examples),
            int(category.llm_fallback),
            int(category.is_active),
        )

    @staticmethod
    def _row_to_category(
        row: aiosqlite.Row, keywords: list[CategoryKeyword]
    ) -> ThreatCategory:
        data = dict(row)
        return ThreatCategory(
            id=data["id"],
            name=data["name"],
            type=data["type"],
            industry=data["industry"],
            description=data["description"],
            base_risk_score=data["base_risk_score"],
            severity=data["severity"],
            alert_threshold=data["alert_threshold"],
            investigation_threshold=data["investigation_threshold"],
            critical_threshold=data["critical_threshold"],
            detection_patterns=json.loads(data["detection_patterns"]),
            risk_multipliers=json.loads(data["risk_multipliers"]),
            keywords=keywords,
            examples=json.loads(data["examples"]),
            llm_fallback=bool(data["llm_fallback"]),
            is_active=bool(data["is_active"]),
        )
