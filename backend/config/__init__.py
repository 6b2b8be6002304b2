"""
Configuration module for settings, database and cache connections.
"""
from .settings import Settings, get_settings
from .database import create_postgres_pool, create_histogram_cache

__all__ = [
    'Settings',
    'get_settings',
    'create_postgres_pool',
    'create_histogram_cache',
]
