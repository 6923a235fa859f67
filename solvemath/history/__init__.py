"""Problem history persistence."""

from .store import (
    HistoryItem,
    HistoryItemNotFoundError,
    HistoryStore,
    InMemoryHistoryStore,
    JsonFileHistoryStore,
    build_history_store,
)

__all__ = [
    "HistoryItem",
    "HistoryItemNotFoundError",
    "HistoryStore",
    "InMemoryHistoryStore",
    "JsonFileHistoryStore",
    "build_history_store",
]
