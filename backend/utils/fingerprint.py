"""
Deterministic keys for histogram requests.

- fingerprint: full request identity (set, base, witness filter), used as cache key
- task_key:    (set, base) only, used to dedup in-flight render tasks

Both use the 31 * acc + field recurrence with signed 64-bit wraparound.
Stable within one release; no cross-version stability is promised.

Note: task_key deliberately ignores the witness filter, so two differently
filtered requests against the same base share one render task id.
"""
from models.domain.histogram import HistogramRequest

PRIME = 31
TASK_KEY_PREFIX = "histogram-"

_MASK = (1 << 64) - 1
_SIGN = 1 << 63


def _to_int64(value: int) -> int:
    value &= _MASK
    return value - (1 << 64) if value & _SIGN else value


def combine(*fields: int) -> int:
    """Fold integer fields into a signed 64-bit hash"""
    acc = 1
    for f in fields:
        acc = _to_int64(PRIME * acc + f)
    return acc


def fingerprint(request: HistogramRequest) -> int:
    """
    Cache key for a request.

    Requests built with HistogramRequest.create() carry a sorted, de-duplicated
    witness filter, so filter order never changes the fingerprint.
    """
    return combine(request.set_id, request.base_id, *request.witness_ids)


def task_key(set_id: int, base_id: int) -> str:
    """
    Render task id for a (set, base) pair.

    Examples:
        task_key(1, 2) -> 'histogram-994'
    """
    return f"{TASK_KEY_PREFIX}{combine(set_id, base_id)}"
