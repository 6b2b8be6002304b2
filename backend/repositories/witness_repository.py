"""
Witness Repository - PostgreSQL read access to witnesses and comparison sets

Storage strategy:
- core.witnesses: id, name, text_length
- core.comparison_sets: id, name
- core.comparison_set_witnesses: set_id, witness_id membership
"""
import logging
from typing import Optional

import asyncpg

from models.domain.histogram import ComparisonSet, Witness

logger = logging.getLogger(__name__)


class WitnessRepository:
    """Repository for Witness domain model"""

    def __init__(self, db_pool: asyncpg.Pool):
        self.db_pool = db_pool

    async def get_by_id(self, witness_id: int) -> Optional[Witness]:
        """
        Retrieve witness by ID.

        Args:
            witness_id: Witness ID

        Returns:
            Witness model or None
        """
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow("""
                SELECT id, name, text_length
                FROM core.witnesses
                WHERE id = $1
            """, witness_id)

        if not row:
            return None

        return Witness(
            id=row['id'],
            name=row['name'],
            text_length=row['text_length'] or 0,
        )


class ComparisonSetRepository:
    """Repository for ComparisonSet domain model"""

    def __init__(self, db_pool: asyncpg.Pool):
        self.db_pool = db_pool

    async def get_by_id(self, set_id: int) -> Optional[ComparisonSet]:
        """
        Retrieve comparison set with its member witness ids.

        Args:
            set_id: Comparison set ID

        Returns:
            ComparisonSet model or None
        """
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow("""
                SELECT s.id, s.name,
                       COALESCE(array_agg(m.witness_id) FILTER (WHERE m.witness_id IS NOT NULL), '{}') AS witness_ids
                FROM core.comparison_sets s
                LEFT JOIN core.comparison_set_witnesses m ON m.set_id = s.id
                WHERE s.id = $1
                GROUP BY s.id, s.name
            """, set_id)

        if not row:
            return None

        return ComparisonSet(
            id=row['id'],
            name=row['name'],
            witness_ids=frozenset(row['witness_ids']),
        )
