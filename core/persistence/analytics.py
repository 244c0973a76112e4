"""Utilities for collecting usage analytics across illustration workflows."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Optional

from ..schemas.illustration import DAY_MS, AnalyticsError, AnalyticsEvent, AnalyticsEventType
from ..utils.clock import now_ms
from .kv_store import KeyValueStore
from .sizing import serialize

ANALYTICS_KEY = "article_processor_analytics"
MAX_ANALYTICS_EVENTS = 1000
RECENT_ERRORS_LIMIT = 10


class AnalyticsTracker:
    """Accumulates usage events in the shared store, keeping only the newest ones."""

    def __init__(self,
                 store: KeyValueStore,
                 clock: Callable[[], int] = now_ms,
                 max_events: int = MAX_ANALYTICS_EVENTS) -> None:
        self.store = store
        self.clock = clock
        self.max_events = max_events

    def events(self) -> List[AnalyticsEvent]:
        """Return the recorded events in insertion order."""
        try:
            stored = self.store.get(ANALYTICS_KEY)
            if not stored:
                return []
            return [AnalyticsEvent.model_validate(record) for record in json.loads(stored)]
        except Exception as e:
            logging.error(f"[ANALYTICS] Error reading analytics: {e}")
            return []

    def track(self,
              event_type: AnalyticsEventType,
              function: Optional[str] = None,
              error: Optional[AnalyticsError] = None,
              api_provider: Optional[str] = None,
              metadata: Optional[Dict[str, Any]] = None) -> None:
        """Store an event; failures are logged and ignored."""
        try:
            event = AnalyticsEvent(
                type=event_type,
                function=function,
                error=error,
                api_provider=api_provider,
                timestamp=self.clock(),
                metadata=metadata,
            )
            events = self.events()
            events.append(event)
            limited = events[-self.max_events:]
            self.store.set(
                ANALYTICS_KEY,
                serialize([e.model_dump(mode="json", exclude_none=True) for e in limited]),
            )
        except Exception as e:
            logging.error(f"[ANALYTICS] Error tracking event: {e}")

    def track_error(self, function: str, exc: Exception) -> None:
        code = getattr(exc, "status_code", None) or type(exc).__name__
        self.track(
            AnalyticsEventType.ERROR,
            function=function,
            error=AnalyticsError(message=str(exc), code=str(code)),
        )

    def function_stats(self) -> Dict[str, Any]:
        now = self.clock()
        seven_days_ago = now - 7 * DAY_MS
        thirty_days_ago = now - 30 * DAY_MS
        by_function: Dict[str, int] = {}
        last_7_days: Dict[str, int] = {}
        last_30_days: Dict[str, int] = {}
        total = 0

        for event in self.events():
            if event.type != AnalyticsEventType.FUNCTION_USE or not event.function:
                continue
            total += 1
            by_function[event.function] = by_function.get(event.function, 0) + 1
            if event.timestamp >= seven_days_ago:
                last_7_days[event.function] = last_7_days.get(event.function, 0) + 1
            if event.timestamp >= thirty_days_ago:
                last_30_days[event.function] = last_30_days.get(event.function, 0) + 1

        return {
            "total": total,
            "by_function": by_function,
            "last_7_days": last_7_days,
            "last_30_days": last_30_days,
        }

    def error_stats(self) -> Dict[str, Any]:
        seven_days_ago = self.clock() - 7 * DAY_MS
        by_type: Dict[str, int] = {}
        errors: List[AnalyticsEvent] = []
        last_7_days = 0

        for event in self.events():
            if event.type != AnalyticsEventType.ERROR:
                continue
            errors.append(event)
            error_type = "unknown"
            if event.error is not None:
                error_type = event.error.code or event.error.message or "unknown"
            by_type[error_type] = by_type.get(error_type, 0) + 1
            if event.timestamp >= seven_days_ago:
                last_7_days += 1

        recent = sorted(errors, key=lambda e: e.timestamp, reverse=True)[:RECENT_ERRORS_LIMIT]
        return {
            "total": len(errors),
            "by_type": by_type,
            "recent": [e.model_dump(mode="json", exclude_none=True) for e in recent],
            "last_7_days": last_7_days,
        }

    def api_stats(self) -> Dict[str, Any]:
        seven_days_ago = self.clock() - 7 * DAY_MS
        by_provider: Dict[str, int] = {}
        recent_by_provider: Dict[str, int] = {}
        total = cache_hits = cache_misses = recent_total = 0

        for event in self.events():
            if event.type == AnalyticsEventType.API_CALL:
                total += 1
                if event.api_provider:
                    by_provider[event.api_provider] = by_provider.get(event.api_provider, 0) + 1
                if event.timestamp >= seven_days_ago:
                    recent_total += 1
                    if event.api_provider:
                        recent_by_provider[event.api_provider] = recent_by_provider.get(event.api_provider, 0) + 1
            elif event.type == AnalyticsEventType.CACHE_HIT:
                cache_hits += 1
            elif event.type == AnalyticsEventType.CACHE_MISS:
                cache_misses += 1

        cache_requests = cache_hits + cache_misses
        hit_rate = (cache_hits / cache_requests) * 100 if cache_requests else 0.0
        return {
            "total": total,
            "by_provider": by_provider,
            "cache_hits": cache_hits,
            "cache_misses": cache_misses,
            "cache_hit_rate": round(hit_rate, 2),
            "last_7_days": {"total": recent_total, "by_provider": recent_by_provider},
        }

    def overall_stats(self) -> Dict[str, Any]:
        timestamps = [event.timestamp for event in self.events()]
        now = self.clock()
        return {
            "functions": self.function_stats(),
            "errors": self.error_stats(),
            "api": self.api_stats(),
            "period": {
                "start": min(timestamps) if timestamps else now,
                "end": max(timestamps) if timestamps else now,
            },
        }

    def clear(self) -> None:
        """Remove all recorded events."""
        try:
            self.store.delete(ANALYTICS_KEY)
        except Exception as e:
            logging.error(f"[ANALYTICS] Error clearing analytics: {e}")
