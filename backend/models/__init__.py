"""
Models package

- domain: storage-agnostic collation and task models
"""
