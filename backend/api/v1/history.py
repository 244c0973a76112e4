"""History API endpoints."""

from fastapi import APIRouter, Depends

from core.persistence import HistoryLog, format_relative_time
from core.utils.clock import now_ms
from backend.dependencies import get_history
from .schemas import HistoryEntryResponse, HistoryListResponse

router = APIRouter(prefix="/history", tags=["history"])


@router.get("", response_model=HistoryListResponse)
def list_history(history: HistoryLog = Depends(get_history)):
    """History items, newest first."""
    now = now_ms()
    return HistoryListResponse(items=[
        HistoryEntryResponse(**item.model_dump(), relative_time=format_relative_time(item.created_at, now))
        for item in history.list()
    ])


@router.delete("", status_code=204)
def clear_history(history: HistoryLog = Depends(get_history)):
    history.clear()


@router.delete("/{item_id}", status_code=204)
def delete_history_item(item_id: str, history: HistoryLog = Depends(get_history)):
    """Delete one item; unknown ids are ignored."""
    history.remove(item_id)
