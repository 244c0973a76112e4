"""
Bounded history log of past requests and their results.

The whole log is one JSON list stored under a single key. It is capped by item
count and by serialized byte size; image payloads are never stored, only a
presence marker.
"""
import json
import logging
import random
import string
from datetime import datetime
from typing import Any, Callable, List, Optional

from ..schemas.illustration import HistoryItem, ImagePresence, OperationKind
from ..utils.clock import now_ms
from .kv_store import KeyValueStore, StorageQuotaExceeded
from .sizing import estimate_size, serialize

HISTORY_KEY = "article_processor_history"
MAX_HISTORY_ITEMS = 20
TEXT_CHAR_LIMIT = 5000
MAX_HISTORY_BYTES = 256 * 1024

_ID_ALPHABET = string.ascii_lowercase + string.digits
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def _new_history_id(timestamp_ms: int) -> str:
    suffix = "".join(random.choice(_ID_ALPHABET) for _ in range(9))
    return f"history_{timestamp_ms}_{suffix}"


def format_relative_time(timestamp_ms: int, now: Optional[int] = None) -> str:
    """
    Format an epoch-ms timestamp as a short human-readable age.

    Args:
        timestamp_ms: Moment to describe
        now: Reference time in epoch ms (defaults to the current time)

    Returns:
        "just now", "N min ago", "N h ago", "N d ago", or an absolute
        "D Mon" date with the year appended when it is not the current one
    """
    reference = now_ms() if now is None else now
    diff_minutes = (reference - timestamp_ms) // 60000
    diff_hours = diff_minutes // 60
    diff_days = diff_hours // 24

    if diff_minutes < 1:
        return "just now"
    if diff_minutes < 60:
        return f"{diff_minutes} min ago"
    if diff_hours < 24:
        return f"{diff_hours} h ago"
    if diff_days < 7:
        return f"{diff_days} d ago"

    moment = datetime.fromtimestamp(timestamp_ms / 1000)
    current = datetime.fromtimestamp(reference / 1000)
    label = f"{moment.day} {_MONTHS[moment.month - 1]}"
    if moment.year != current.year:
        label += f" {moment.year}"
    return label


class HistoryLog:
    """Best-effort, newest-first log of user actions."""

    def __init__(self,
                 store: KeyValueStore,
                 clock: Callable[[], int] = now_ms,
                 max_items: int = MAX_HISTORY_ITEMS,
                 text_char_limit: int = TEXT_CHAR_LIMIT,
                 max_bytes: int = MAX_HISTORY_BYTES):
        self.store = store
        self.clock = clock
        self.max_items = max_items
        self.text_char_limit = text_char_limit
        self.max_bytes = max_bytes

    def _load(self) -> List[HistoryItem]:
        stored = self.store.get(HISTORY_KEY)
        if not stored:
            return []
        try:
            raw = json.loads(stored)
        except ValueError as e:
            logging.error(f"[HISTORY] Stored history is unreadable, starting over: {e}")
            return []
        items = []
        for record in raw if isinstance(raw, list) else []:
            try:
                items.append(HistoryItem.model_validate(record))
            except Exception as e:
                logging.warning(f"[HISTORY] Skipping unreadable history record: {e}")
        return items

    def _save(self, items: List[HistoryItem]) -> None:
        self.store.set(HISTORY_KEY, serialize([item.model_dump(mode="json") for item in items]))

    def _trim_to_budget(self, items: List[HistoryItem]) -> List[HistoryItem]:
        items = items[:self.max_items]
        while items and estimate_size([item.model_dump(mode="json") for item in items]) > self.max_bytes:
            items.pop()
        return items

    def append(self,
               url: str,
               operation_kind: OperationKind,
               language: str = "ru",
               text_result: Optional[str] = None,
               image_result: Optional[Any] = None,
               has_image: bool = False) -> Optional[HistoryItem]:
        """
        Record a completed action at the head of the log.

        Args:
            url: Article URL the action was performed on
            operation_kind: Kind of artifact produced
            language: Target language code
            text_result: Text artifact; truncated to the character cap
            image_result: Image payload; dropped and recorded as ``elided``
            has_image: Marks an image result without handing in its payload

        Returns:
            The stored item, or None when persistence failed
        """
        if image_result is not None:
            presence = ImagePresence.ELIDED
        elif has_image:
            presence = ImagePresence.PRESENT
        else:
            presence = ImagePresence.NONE

        if text_result is not None and len(text_result) > self.text_char_limit:
            text_result = text_result[:self.text_char_limit]

        created_at = self.clock()
        item = HistoryItem(
            id=_new_history_id(created_at),
            url=url,
            operation_kind=operation_kind,
            text_result=text_result,
            image_presence=presence,
            created_at=created_at,
            language=language,
        )

        try:
            items = self._trim_to_budget([item] + self._load())
        except Exception as e:
            logging.error(f"[HISTORY] Error preparing history entry: {e}")
            return None

        try:
            self._save(items)
            return item
        except StorageQuotaExceeded:
            logging.warning("[HISTORY] Storage quota exceeded, keeping newest half of history")
        except Exception as e:
            logging.error(f"[HISTORY] Error saving to history: {e}")
            return None

        items = items[:len(items) // 2] if len(items) > 1 else items
        try:
            self._save(items)
            return item
        except Exception as e:
            logging.error(f"[HISTORY] Failed to save history after trimming: {e}")
            return None

    def list(self) -> List[HistoryItem]:
        """All items, newest first."""
        try:
            return sorted(self._load(), key=lambda item: item.created_at, reverse=True)
        except Exception as e:
            logging.error(f"[HISTORY] Error reading history: {e}")
            return []

    def get(self, item_id: str) -> Optional[HistoryItem]:
        for item in self.list():
            if item.id == item_id:
                return item
        return None

    def remove(self, item_id: str) -> None:
        try:
            items = self._load()
            remaining = [item for item in items if item.id != item_id]
            if len(remaining) != len(items):
                self._save(remaining)
        except Exception as e:
            logging.error(f"[HISTORY] Error deleting history item: {e}")

    def clear(self) -> None:
        try:
            self.store.delete(HISTORY_KEY)
        except Exception as e:
            logging.error(f"[HISTORY] Error clearing history: {e}")
