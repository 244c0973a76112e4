"""
Illustration Schema Module

This module defines the data models shared by the illustration pipeline and
the client-profile persistence layer (cache entries, history items, quota
records and the transient illustration result).
"""

from types import MappingProxyType
from typing import Optional, Dict, Any, Mapping
from pydantic import BaseModel, Field
from enum import Enum


HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS


class OperationKind(str, Enum):
    """Artifacts a user can request for an article."""
    ABOUT = "about"
    THESIS = "thesis"
    TELEGRAM = "telegram"
    TRANSLATE = "translate"
    ILLUSTRATION = "illustration"


class CacheCategory(str, Enum):
    """Cache categories; each one has a fixed lifetime."""
    PARSE = "parse"
    AI = "ai"
    TRANSLATE = "translate"
    IMAGE = "image"


# Lifetimes in milliseconds. Images are never cached.
CACHE_LIFETIMES_MS: Mapping[CacheCategory, Optional[int]] = MappingProxyType({
    CacheCategory.PARSE: 24 * HOUR_MS,
    CacheCategory.AI: 7 * DAY_MS,
    CacheCategory.TRANSLATE: 7 * DAY_MS,
    CacheCategory.IMAGE: None,
})


class ImagePresence(str, Enum):
    """Marker recorded in history instead of the image payload itself."""
    NONE = "none"
    PRESENT = "present"
    ELIDED = "elided"


class CacheEntry(BaseModel):
    """A cached value together with its creation and expiry timestamps (epoch ms)."""
    data: Any = None
    category: CacheCategory
    created_at: int
    expires_at: int

    def is_expired(self, now_ms: int) -> bool:
        return now_ms > self.expires_at


class CacheStats(BaseModel):
    """Aggregate view of the cache for observability."""
    total: int = 0
    total_size: int = 0
    by_category: Dict[str, int] = Field(default_factory=dict)
    oldest_entry: Optional[int] = None
    newest_entry: Optional[int] = None


class HistoryItem(BaseModel):
    """One past request/result, as persisted in the bounded history log."""
    id: str
    url: str
    operation_kind: OperationKind
    text_result: Optional[str] = None
    image_presence: ImagePresence = ImagePresence.NONE
    created_at: int = Field(..., description="Epoch milliseconds")
    language: str = "ru"


class QuotaRecord(BaseModel):
    """Per-day usage counter; date_key is the caller's local calendar date."""
    count: int = 0
    date_key: str = Field(..., description="YYYY-MM-DD in local time")


def illustration_filename(epoch_ms: int) -> str:
    """Filename offered for a downloaded illustration."""
    return f"illustration_{epoch_ms}.png"


class GeneratedIllustration(BaseModel):
    """Transient result of one illustration request, owned by the caller."""
    prompt_text: str
    image_data_uri: str
    provider_label: str

    def download_filename(self, epoch_ms: int) -> str:
        """Filename offered by the presentation layer for a download action."""
        return illustration_filename(epoch_ms)


class AnalyticsEventType(str, Enum):
    """Kinds of usage analytics events."""
    FUNCTION_USE = "function_use"
    ERROR = "error"
    API_CALL = "api_call"
    CACHE_HIT = "cache_hit"
    CACHE_MISS = "cache_miss"


class AnalyticsError(BaseModel):
    message: str
    code: Optional[str] = None


class AnalyticsEvent(BaseModel):
    """A single usage analytics event."""
    type: AnalyticsEventType
    function: Optional[str] = None
    error: Optional[AnalyticsError] = None
    api_provider: Optional[str] = None
    timestamp: int
    metadata: Optional[Dict[str, Any]] = None
