"""Local persistent data store.

Modules:
- kv: durable key-value backends (SQLite file, in-memory)
- models: dataclasses for persisted records
- datastore: DataStore, the single writer of every collection
- settings: recognised preference options and defaults
- insights: derived dashboard figures
"""

from .datastore import DataStore, iso_timestamp, week_label
from .kv import KeyValueStore, MemoryKeyValueStore, SqliteKeyValueStore
from .models import AnalyticsSnapshot, ChatRecord, Product, UserProfile, WeeklyBucket

__all__ = [
    "DataStore",
    "iso_timestamp",
    "week_label",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SqliteKeyValueStore",
    "AnalyticsSnapshot",
    "ChatRecord",
    "Product",
    "UserProfile",
    "WeeklyBucket",
]
