"""
Domain Models - Storage-agnostic data structures

These models represent the collation entities independent of storage layer.
Services and the render task operate on these models, not raw database rows.

Architecture:
- Domain models are pure Python objects (frozen dataclasses)
- Storage details (PostgreSQL, Redis) are abstracted via repositories and caches
- Business logic operates on these models, not database rows
"""

from .histogram import (
    HISTOGRAM_BUCKETS,
    INSERTION_EDIT_DISTANCE,
    CachedHistogram,
    ComparisonSet,
    DifferenceRecord,
    EditKind,
    HistogramContext,
    HistogramRequest,
    HistogramResponse,
    HistogramResult,
    RenderingAck,
    Witness,
)
from .task import (
    TERMINAL_STATES,
    InvalidTransitionError,
    TaskState,
    TaskStatus,
)

__all__ = [
    # Collation inputs
    'Witness',
    'ComparisonSet',
    'DifferenceRecord',
    'EditKind',
    'INSERTION_EDIT_DISTANCE',

    # Histogram
    'HISTOGRAM_BUCKETS',
    'HistogramRequest',
    'HistogramContext',
    'HistogramResult',
    'HistogramResponse',
    'CachedHistogram',
    'RenderingAck',

    # Task lifecycle
    'TaskState',
    'TaskStatus',
    'TERMINAL_STATES',
    'InvalidTransitionError',
]
