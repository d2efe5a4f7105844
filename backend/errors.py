"""
Error taxonomy for the storage layer.
"""

from __future__ import annotations


class StorageError(Exception):
    """Base class for failures raised by a backing store."""


class ConfigurationError(StorageError):
    """The store cannot be used because required settings are missing."""


class QueryError(StorageError):
    """A database or network call failed while executing a statement."""
