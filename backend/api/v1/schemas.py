"""Request and response models for the v1 API."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from core.schemas import CacheStats, HistoryItem


class IllustrationRequest(BaseModel):
    # Left loosely typed so missing/blank content reaches the pipeline's own validation (400)
    content: Optional[Any] = None
    language: str = "ru"
    url: Optional[str] = None


class IllustrationResponse(BaseModel):
    success: bool = True
    image: str = Field(..., description="data: URI of the generated image")
    prompt: str
    provider: str


class QuotaResponse(BaseModel):
    remaining: int
    limit: int
    can_generate: bool
    seconds_until_reset: int


class DownloadRequest(BaseModel):
    image: str = Field(..., description="data: URI of the image to download")
    timestamp: Optional[int] = Field(None, description="Epoch milliseconds used in the filename")


class HistoryEntryResponse(HistoryItem):
    relative_time: str


class HistoryListResponse(BaseModel):
    items: List[HistoryEntryResponse]


class CacheStatsResponse(CacheStats):
    pass


class ClearedResponse(BaseModel):
    cleared: int


class AnalyticsResponse(BaseModel):
    functions: Dict[str, Any]
    errors: Dict[str, Any]
    api: Dict[str, Any]
    period: Dict[str, int]
