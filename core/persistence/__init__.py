"""
Client-profile persistence layer: key-value store, TTL cache, history log,
daily quota counter and usage analytics.
"""

from .kv_store import (
    KeyValueStore,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    StorageQuotaExceeded,
)
from .sizing import estimate_size, serialize
from .cache import TTLCache, fingerprint
from .history import HistoryLog, format_relative_time
from .quota import DailyQuotaCounter
from .analytics import AnalyticsTracker

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "StorageQuotaExceeded",
    "estimate_size",
    "serialize",
    "TTLCache",
    "fingerprint",
    "HistoryLog",
    "format_relative_time",
    "DailyQuotaCounter",
    "AnalyticsTracker",
]
