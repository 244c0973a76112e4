"""Calendar-day scoped counter limiting expensive operations."""
import logging
from datetime import datetime, timedelta
from typing import Callable

from ..schemas.illustration import QuotaRecord
from ..utils.clock import local_now
from .kv_store import KeyValueStore

QUOTA_KEY = "image_generation_limit"
DAILY_IMAGE_LIMIT = 3


def date_key(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%d")


class DailyQuotaCounter:
    """
    Daily usage counter keyed by the caller's local calendar date.

    A record from a previous day reads as zero usage. The counter only reports
    the ceiling; callers check ``can_proceed()`` before consuming quota.
    """

    def __init__(self,
                 store: KeyValueStore,
                 daily_limit: int = DAILY_IMAGE_LIMIT,
                 now: Callable[[], datetime] = local_now):
        self.store = store
        self.daily_limit = daily_limit
        self.now = now

    def current_record(self) -> QuotaRecord:
        """Stored record corrected to today; a rollover or unreadable record yields count 0."""
        today = date_key(self.now())
        try:
            stored = self.store.get(QUOTA_KEY)
            if stored:
                record = QuotaRecord.model_validate_json(stored)
                if record.date_key == today:
                    return record
        except Exception as e:
            logging.error(f"[QUOTA] Error reading image generation limit: {e}")
        return QuotaRecord(count=0, date_key=today)

    def remaining(self) -> int:
        return max(0, self.daily_limit - self.current_record().count)

    def can_proceed(self) -> bool:
        return self.remaining() > 0

    def increment(self) -> None:
        record = self.current_record()
        record.count += 1
        try:
            self.store.set(QUOTA_KEY, record.model_dump_json())
        except Exception as e:
            logging.error(f"[QUOTA] Error incrementing image generation count: {e}")

    def reset(self) -> None:
        try:
            self.store.delete(QUOTA_KEY)
        except Exception as e:
            logging.error(f"[QUOTA] Error resetting image generation limit: {e}")

    def time_until_reset(self) -> int:
        """Whole seconds until the next local midnight."""
        current = self.now()
        midnight = (current + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
        return max(0, int((midnight - current).total_seconds()))
