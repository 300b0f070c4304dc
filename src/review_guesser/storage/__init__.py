"""
Seen-state storage.

Persists which games were shown and how each guess went,
backed by a string key-value storage.
"""

from review_guesser.storage.backends import (
    JsonFileStorage,
    KeyValueStorage,
    MemoryStorage,
)
from review_guesser.storage.models import (
    AppId,
    MergeResult,
    Outcome,
    SeenRecord,
    SeenState,
    SeenStats,
    normalize_timestamp,
    summarize,
)
from review_guesser.storage.store import DEFAULT_SEEN_KEY, SeenStore, decode_entry

__all__ = [
    "DEFAULT_SEEN_KEY",
    "AppId",
    "JsonFileStorage",
    "KeyValueStorage",
    "MemoryStorage",
    "MergeResult",
    "Outcome",
    "SeenRecord",
    "SeenState",
    "SeenStats",
    "SeenStore",
    "decode_entry",
    "normalize_timestamp",
    "summarize",
]
