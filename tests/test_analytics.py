import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.persistence.analytics import ANALYTICS_KEY, AnalyticsTracker
from core.persistence.kv_store import InMemoryKeyValueStore
from core.schemas.illustration import DAY_MS, AnalyticsEventType
from shared.errors import ProviderExhaustedError
from tests.dummies import BrokenStore, FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tracker(clock):
    return AnalyticsTracker(InMemoryKeyValueStore(), clock=clock)


def test_keeps_only_newest_events(clock):
    tracker = AnalyticsTracker(InMemoryKeyValueStore(), clock=clock, max_events=3)
    for name in ("a", "b", "c", "d"):
        tracker.track(AnalyticsEventType.FUNCTION_USE, function=name)

    assert [event.function for event in tracker.events()] == ["b", "c", "d"]


def test_function_stats_windows(tracker, clock):
    tracker.track(AnalyticsEventType.FUNCTION_USE, function="about")
    clock.advance(10 * DAY_MS)
    tracker.track(AnalyticsEventType.FUNCTION_USE, function="illustration")
    tracker.track(AnalyticsEventType.FUNCTION_USE, function="illustration")
    tracker.track(AnalyticsEventType.API_CALL, function="illustration", api_provider="openrouter")

    stats = tracker.function_stats()
    assert stats["total"] == 3
    assert stats["by_function"] == {"about": 1, "illustration": 2}
    assert stats["last_7_days"] == {"illustration": 2}
    assert stats["last_30_days"] == {"about": 1, "illustration": 2}


def test_error_stats_use_status_code_or_class_name(tracker, clock):
    tracker.track_error("illustration", ProviderExhaustedError("Failed to generate image", status_code=404))
    clock.advance(1)
    tracker.track_error("illustration", RuntimeError("boom"))

    stats = tracker.error_stats()
    assert stats["total"] == 2
    assert stats["by_type"] == {"404": 1, "RuntimeError": 1}
    assert stats["recent"][0]["error"]["message"] == "boom"
    assert stats["last_7_days"] == 2


def test_api_stats_and_hit_rate(tracker):
    tracker.track(AnalyticsEventType.API_CALL, api_provider="openrouter")
    tracker.track(AnalyticsEventType.API_CALL, api_provider="huggingface")
    tracker.track(AnalyticsEventType.API_CALL, api_provider="openrouter")
    tracker.track(AnalyticsEventType.CACHE_HIT)
    tracker.track(AnalyticsEventType.CACHE_MISS)
    tracker.track(AnalyticsEventType.CACHE_MISS)

    stats = tracker.api_stats()
    assert stats["total"] == 3
    assert stats["by_provider"] == {"openrouter": 2, "huggingface": 1}
    assert stats["cache_hits"] == 1
    assert stats["cache_misses"] == 2
    assert stats["cache_hit_rate"] == 33.33
    assert stats["last_7_days"]["total"] == 3


def test_overall_stats_period(tracker, clock):
    start = clock.now
    tracker.track(AnalyticsEventType.FUNCTION_USE, function="about")
    clock.advance(5000)
    tracker.track(AnalyticsEventType.FUNCTION_USE, function="thesis")

    overall = tracker.overall_stats()
    assert overall["period"] == {"start": start, "end": start + 5000}
    assert overall["functions"]["total"] == 2
    assert overall["errors"]["total"] == 0


def test_clear(tracker):
    tracker.track(AnalyticsEventType.CACHE_HIT)
    tracker.clear()
    assert tracker.store.get(ANALYTICS_KEY) is None
    assert tracker.events() == []


def test_broken_store_is_tolerated():
    tracker = AnalyticsTracker(BrokenStore())
    tracker.track(AnalyticsEventType.CACHE_HIT)
    tracker.clear()
    assert tracker.events() == []
    assert tracker.api_stats()["cache_hit_rate"] == 0.0
