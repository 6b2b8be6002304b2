"""
Alignment Repository - PostgreSQL read access to difference records

Storage strategy:
- core.alignments: one row per aligned pair (set_id, name, edit_distance)
- core.aligned_annotations: one row per witness side (alignment_id, witness_id, range_start, range_end)

Only the base witness side is returned; callers receive DifferenceRecord
domain models positioned on the base text.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import asyncpg

from models.domain.histogram import DifferenceRecord, HistogramRequest

logger = logging.getLogger(__name__)

# Alignment names that mark a substantive difference. Agreements and
# annotation-level matches use other names and are excluded.
DIFFERENCE_KINDS: Tuple[str, ...] = ('change',)


@dataclass(frozen=True)
class AlignmentConstraint:
    """Which alignments of a comparison set to read"""
    set_id: int
    base_id: int
    witness_ids: Tuple[int, ...] = ()
    kinds: Tuple[str, ...] = DIFFERENCE_KINDS

    @classmethod
    def differences_for(cls, request: HistogramRequest) -> 'AlignmentConstraint':
        """Differences-only constraint for a histogram request"""
        return cls(
            set_id=request.set_id,
            base_id=request.base_id,
            witness_ids=request.witness_ids,
        )

    def query_args(self) -> tuple:
        witness_filter: Optional[List[int]] = list(self.witness_ids) or None
        return (self.set_id, self.base_id, list(self.kinds), witness_filter)


_MATCHING_ALIGNMENTS = """
    FROM core.alignments a
    JOIN core.aligned_annotations b
      ON b.alignment_id = a.id AND b.witness_id = $2
    WHERE a.set_id = $1
      AND a.name = ANY($3::text[])
      AND (
        $4::bigint[] IS NULL
        OR EXISTS (
            SELECT 1 FROM core.aligned_annotations o
            WHERE o.alignment_id = a.id
              AND o.witness_id = ANY($4::bigint[])
        )
      )
"""


class AlignmentRepository:
    """
    Repository for difference records

    Read-only; alignments are written by the collation pipeline.
    """

    def __init__(self, db_pool: asyncpg.Pool):
        self.db_pool = db_pool

    async def count(self, constraint: AlignmentConstraint) -> int:
        """
        Count alignments matching a constraint

        Args:
            constraint: Set, base witness, witness filter and kinds

        Returns:
            Number of matching alignments
        """
        async with self.db_pool.acquire() as conn:
            count = await conn.fetchval(
                "SELECT COUNT(*) " + _MATCHING_ALIGNMENTS,
                *constraint.query_args()
            )
        return count or 0

    async def list(self, constraint: AlignmentConstraint) -> List[DifferenceRecord]:
        """
        List matching differences on the base witness

        Returns:
            DifferenceRecords sorted by (start, end)
        """
        async with self.db_pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT b.range_start, b.range_end, a.edit_distance "
                + _MATCHING_ALIGNMENTS
                + " ORDER BY b.range_start, b.range_end",
                *constraint.query_args()
            )

        logger.debug(f"Loaded {len(rows)} differences for set {constraint.set_id} base {constraint.base_id}")

        return [
            DifferenceRecord(
                start=row['range_start'],
                end=row['range_end'],
                edit_distance=row['edit_distance'],
            )
            for row in rows
        ]
