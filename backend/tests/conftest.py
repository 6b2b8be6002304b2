"""
Pytest configuration for histogram service tests.
"""

import pytest

from models.domain.histogram import ComparisonSet, DifferenceRecord, Witness
from services.cache import MemoryHistogramCache


def pytest_configure(config):
    """Configure pytest with asyncio marker."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as an async test."
    )


# =============================================================================
# STORE DOUBLES
# =============================================================================

class FakeDifferenceStore:
    """In-memory difference store that records every query"""

    def __init__(self, records=None):
        self.records = list(records or [])
        self.count_calls = []
        self.list_calls = []

    async def count(self, constraint):
        self.count_calls.append(constraint)
        return len(self.records)

    async def list(self, constraint):
        self.list_calls.append(constraint)
        return list(self.records)


class FakeWitnessStore:
    def __init__(self, *witnesses):
        self.witnesses = {w.id: w for w in witnesses}

    async def get_by_id(self, witness_id):
        return self.witnesses.get(witness_id)


class FakeComparisonSetStore:
    def __init__(self, *sets):
        self.sets = {s.id: s for s in sets}

    async def get_by_id(self, set_id):
        return self.sets.get(set_id)


class FakeTaskSubstrate:
    """Registry without workers: records submissions, never runs them"""

    def __init__(self):
        self.tasks = {}
        self.submitted = []

    def exists(self, task_id):
        task = self.tasks.get(task_id)
        return task is not None and not task.status.is_terminal

    def submit(self, task):
        self.tasks[task.id] = task
        self.submitted.append(task)

    def status(self, task_id):
        task = self.tasks.get(task_id)
        return task.status if task else None

    def cancel(self, task_id):
        task = self.tasks.get(task_id)
        if task is None:
            return None
        task.cancel()
        return task.status


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def base_witness():
    return Witness(id=2, name='Base "A"', text_length=1000)


@pytest.fixture
def comparison_set():
    return ComparisonSet(id=1, name='Poems', witness_ids=frozenset({2, 3, 4, 5}))


@pytest.fixture
def sample_differences():
    return [
        DifferenceRecord(start=0, end=10, edit_distance=3),
        DifferenceRecord(start=5, end=8, edit_distance=1),
        DifferenceRecord(start=500, end=500, edit_distance=-1),
        DifferenceRecord(start=700, end=720, edit_distance=4),
    ]


@pytest.fixture
def make_difference_store():
    return FakeDifferenceStore


@pytest.fixture
def difference_store(sample_differences):
    return FakeDifferenceStore(sample_differences)


@pytest.fixture
def witness_store(base_witness):
    return FakeWitnessStore(
        base_witness,
        Witness(id=3, name='B', text_length=900),
        Witness(id=4, name='C', text_length=1100),
        Witness(id=5, name='D', text_length=950),
    )


@pytest.fixture
def set_store(comparison_set):
    return FakeComparisonSetStore(comparison_set)


@pytest.fixture
def cache():
    return MemoryHistogramCache()


@pytest.fixture
def task_substrate():
    return FakeTaskSubstrate()
