"""Storage backends and the factory that picks one from settings."""
from __future__ import annotations

from src.db.memory import MemoryStorage
from src.db.storage import Storage

__all__ = ["MemoryStorage", "Storage", "build_storage"]


def build_storage(backend: str, database_url: str = "") -> Storage:
    """Instantiate the configured backend. Call ``await storage.init()`` before use."""
    backend = backend.lower()
    if backend == "memory":
        return MemoryStorage()
    if backend == "sql":
        from src.db.repository import SqlStorage
        return SqlStorage.from_url(database_url)
    raise ValueError(f"Unknown STORAGE_BACKEND: {backend!r} (expected 'memory' or 'sql')")
