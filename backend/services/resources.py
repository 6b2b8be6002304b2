"""
Process resource probes

The histogram admission check compares an estimated memory cost against
what the host can still hand out. The probe is a plain callable so tests
and deployments can swap it.
"""
import gc
import logging
from typing import Callable

import psutil

logger = logging.getLogger(__name__)

MemoryProbe = Callable[[], int]


def available_memory() -> int:
    """
    Bytes of memory currently available to this process.

    Runs a collection first so freed render buffers are counted.
    """
    gc.collect()
    return psutil.virtual_memory().available


def estimate_render_bytes(difference_count: int, average_record_size: int, base_length: int) -> int:
    """Rough memory cost of rendering: all difference records plus the base text"""
    return difference_count * average_record_size + base_length
