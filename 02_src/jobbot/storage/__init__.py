"""Storage module."""

from .storage import IStorage, Scope, Storage, StoredProperty

__all__ = ["IStorage", "Scope", "Storage", "StoredProperty"]
