"""Local persistence for users, conversation history and analytics."""

from .kv_store import BaseKeyValueStore, InMemoryKeyValueStore, SQLiteKeyValueStore
from .store import PersistentStore

__all__ = [
    "BaseKeyValueStore",
    "InMemoryKeyValueStore",
    "SQLiteKeyValueStore",
    "PersistentStore",
    "create_store",
]


def create_store(backend: str = "sqlite", db_path: str = "data/assistant.db") -> PersistentStore:
    """Build a store on the named backend ("sqlite" or "memory")."""
    if backend == "sqlite":
        return PersistentStore(SQLiteKeyValueStore(db_path=db_path))
    elif backend == "memory":
        return PersistentStore(InMemoryKeyValueStore())
    else:
        raise ValueError(f"Unsupported storage backend: {backend}")
