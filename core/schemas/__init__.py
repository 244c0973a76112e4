"""
Centralized schema definitions.

This module contains the Pydantic models shared by the illustration pipeline
and the persistence layer.
"""

from .illustration import (
    HOUR_MS,
    DAY_MS,
    CACHE_LIFETIMES_MS,
    OperationKind,
    CacheCategory,
    ImagePresence,
    CacheEntry,
    CacheStats,
    HistoryItem,
    QuotaRecord,
    GeneratedIllustration,
    illustration_filename,
    AnalyticsEventType,
    AnalyticsError,
    AnalyticsEvent,
)

__all__ = [
    'HOUR_MS',
    'DAY_MS',
    'CACHE_LIFETIMES_MS',
    'OperationKind',
    'CacheCategory',
    'ImagePresence',
    'CacheEntry',
    'CacheStats',
    'HistoryItem',
    'QuotaRecord',
    'GeneratedIllustration',
    'illustration_filename',
    'AnalyticsEventType',
    'AnalyticsError',
    'AnalyticsEvent',
]
