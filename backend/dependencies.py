"""Common dependencies for FastAPI routes."""

import threading
from typing import Dict, Optional

from fastapi import Depends, Header

from core.config.settings import Settings, get_settings
from core.illustration.orchestrator import (
    IllustrationOrchestrator,
    build_orchestrator,
    build_store,
    profile_storage_path,
)
from core.persistence import AnalyticsTracker, DailyQuotaCounter, HistoryLog, KeyValueStore, TTLCache

_stores: Dict[str, KeyValueStore] = {}
_stores_lock = threading.Lock()


def get_app_settings() -> Settings:
    return get_settings()


def get_store(
    settings: Settings = Depends(get_app_settings),
    profile_id: Optional[str] = Header(None, alias="X-Profile-Id"),
) -> KeyValueStore:
    """
    Key-value store of the calling client profile, created on first use.

    Requests without an ``X-Profile-Id`` header share the default profile
    document at ``STORAGE_PATH``.
    """
    path = profile_storage_path(settings.storage_path, profile_id)
    with _stores_lock:
        store = _stores.get(path)
        if store is None:
            store = build_store(settings, profile_id)
            _stores[path] = store
        return store


def reset_store() -> None:
    """Drop the cached stores (useful for testing)."""
    with _stores_lock:
        _stores.clear()


def get_orchestrator(
    settings: Settings = Depends(get_app_settings),
    store: KeyValueStore = Depends(get_store),
) -> IllustrationOrchestrator:
    return build_orchestrator(settings, store)


def get_quota(
    settings: Settings = Depends(get_app_settings),
    store: KeyValueStore = Depends(get_store),
) -> DailyQuotaCounter:
    return DailyQuotaCounter(store, daily_limit=settings.daily_image_limit)


def get_history(
    settings: Settings = Depends(get_app_settings),
    store: KeyValueStore = Depends(get_store),
) -> HistoryLog:
    return HistoryLog(
        store,
        max_items=settings.history_max_items,
        text_char_limit=settings.history_text_char_limit,
        max_bytes=settings.history_max_bytes,
    )


def get_cache(
    settings: Settings = Depends(get_app_settings),
    store: KeyValueStore = Depends(get_store),
) -> TTLCache:
    return TTLCache(store, max_entry_bytes=settings.cache_max_entry_bytes)


def get_analytics(
    settings: Settings = Depends(get_app_settings),
    store: KeyValueStore = Depends(get_store),
) -> AnalyticsTracker:
    return AnalyticsTracker(store, max_events=settings.analytics_max_events)
