"""
Repository Pattern - Storage abstraction layer

Repositories hide storage details (PostgreSQL) from business logic.
Consumers work with domain models, not storage-specific types.

- AlignmentRepository: difference records on a base witness (count / ordered list)
- WitnessRepository: witness names and text lengths
- ComparisonSetRepository: comparison sets and their member witnesses
"""
from .alignment_repository import AlignmentConstraint, AlignmentRepository, DIFFERENCE_KINDS
from .witness_repository import ComparisonSetRepository, WitnessRepository

__all__ = [
    'AlignmentConstraint',
    'AlignmentRepository',
    'DIFFERENCE_KINDS',
    'ComparisonSetRepository',
    'WitnessRepository',
]
