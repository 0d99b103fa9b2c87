"""Persistence layer - whole-state stores for the ledger record."""

from .database import SqliteStateStore
from .store import DEFAULT_STORAGE_KEY, JsonFileStore, MemoryStore, StateStore

__all__ = [
    "DEFAULT_STORAGE_KEY",
    "JsonFileStore",
    "MemoryStore",
    "SqliteStateStore",
    "StateStore",
]
