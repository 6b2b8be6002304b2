"""
Histogram domain models

Storage: PostgreSQL (witnesses, comparison sets, alignments) for inputs,
histogram cache (Redis or memory) for rendered output.
"""
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterable, Tuple, Union


HISTOGRAM_BUCKETS = 100


class EditKind(Enum):
    """Kind of edit a difference record marks on the base witness."""
    SUBSTITUTION = "substitution"  # also covers deletions
    INSERTION = "insertion"


# Edit distance stored for insertion-type differences
INSERTION_EDIT_DISTANCE = -1


@dataclass(frozen=True)
class Witness:
    """A single document version taking part in a collation."""
    id: int
    name: str
    text_length: int


@dataclass(frozen=True)
class ComparisonSet:
    """A named group of witnesses collated together."""
    id: int
    name: str
    witness_ids: FrozenSet[int] = field(default_factory=frozenset)

    def contains(self, witness_id: int) -> bool:
        return witness_id in self.witness_ids


@dataclass(frozen=True)
class DifferenceRecord:
    """
    A difference on the base witness.

    start/end form a half-open range of base text positions. Insertions
    have no width on the base and carry an edit distance of -1.
    """
    start: int
    end: int
    edit_distance: int = 0

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def edit_kind(self) -> EditKind:
        if self.edit_distance == INSERTION_EDIT_DISTANCE:
            return EditKind.INSERTION
        return EditKind.SUBSTITUTION

    @property
    def is_insertion(self) -> bool:
        """True for a zero-width insertion"""
        return self.length == 0 and self.edit_kind is EditKind.INSERTION

    def sort_key(self) -> Tuple[int, int]:
        return (self.start, self.end)


@dataclass(frozen=True)
class HistogramRequest:
    """
    Identity of one histogram: comparison set, base witness and the
    witnesses whose differences are included (empty = all of them).

    The witness filter is stored sorted, without duplicates and without
    the base id, so equal filter sets compare and hash equal.
    """
    set_id: int
    base_id: int
    witness_ids: Tuple[int, ...] = ()

    def __post_init__(self):
        normalized = tuple(sorted({w for w in self.witness_ids if w != self.base_id}))
        object.__setattr__(self, 'witness_ids', normalized)

    @classmethod
    def create(cls, set_id: int, base_id: int, witness_ids: Iterable[int] = ()) -> 'HistogramRequest':
        return cls(set_id=set_id, base_id=base_id, witness_ids=tuple(witness_ids))


@dataclass(frozen=True)
class HistogramContext:
    """Request plus the resolved base witness, passed to the render task."""
    request: HistogramRequest
    base: Witness

    @property
    def set_id(self) -> int:
        return self.request.set_id


@dataclass(frozen=True)
class HistogramResult:
    """
    Rendered histogram.

    values holds the 100 bucket values already formatted for output so
    that the cached JSON is byte-identical for identical inputs.
    """
    base_name: str
    values: Tuple[str, ...]

    def __post_init__(self):
        if len(self.values) != HISTOGRAM_BUCKETS:
            raise ValueError(f"Histogram must have {HISTOGRAM_BUCKETS} buckets, got {len(self.values)}")

    @property
    def buckets(self) -> Tuple[float, ...]:
        return tuple(float(v) for v in self.values)

    def to_json(self) -> str:
        return '{"baseName": %s, "histogram": [%s]}' % (
            json.dumps(self.base_name),
            ",".join(self.values),
        )

    def to_bytes(self) -> bytes:
        return self.to_json().encode("utf-8")


# =============================================================================
# HANDLER RESPONSES
# =============================================================================

@dataclass(frozen=True)
class CachedHistogram:
    """Cache hit: raw cached JSON bytes"""
    body: bytes


@dataclass(frozen=True)
class RenderingAck:
    """Cache miss: a render task is (or already was) scheduled"""
    task_id: str
    status: str = "RENDERING"

    def to_dict(self) -> dict:
        return {"status": self.status, "taskId": self.task_id}


HistogramResponse = Union[CachedHistogram, RenderingAck]
