"""
Utility functions
"""
from .fingerprint import combine, fingerprint, task_key

__all__ = ['combine', 'fingerprint', 'task_key']
