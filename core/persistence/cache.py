"""
TTL Cache for processed article artifacts.

Entries live in the shared key-value store under ``cache_``-prefixed keys.
Caching is an optimization only: every failure degrades to a miss or a dropped
write and is logged, never raised.
"""
import hashlib
import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from ..schemas.illustration import CACHE_LIFETIMES_MS, CacheCategory, CacheEntry, CacheStats
from ..utils.clock import now_ms
from .kv_store import KeyValueStore, StorageQuotaExceeded
from .sizing import estimate_size, serialize

CACHE_KEY_PREFIX = "cache_"
MAX_ENTRY_BYTES = 2 * 1024 * 1024


def fingerprint(primary_subject: str,
                operation_kind: Optional[str] = None,
                language: Optional[str] = None,
                extra_params: Optional[Mapping[str, Any]] = None) -> str:
    """
    Build a deterministic cache key for a request.

    Args:
        primary_subject: Usually the article URL
        operation_kind: Requested artifact (about, thesis, ...)
        language: Target language code
        extra_params: Additional parameters; sorted by key so ordering never matters

    Returns:
        ``cache_``-prefixed SHA-256 hex digest of the ordered inputs
    """
    parts: List[Any] = [primary_subject, operation_kind or "", language or ""]
    if extra_params:
        # values keep their JSON type so 1 and "1" stay distinct
        parts.append([[str(k), extra_params[k]] for k in sorted(extra_params, key=str)])
    encoded = json.dumps(parts, ensure_ascii=False, separators=(",", ":"), sort_keys=True, default=str)
    return CACHE_KEY_PREFIX + hashlib.sha256(encoded.encode("utf-8")).hexdigest()


class TTLCache:
    """Key/value cache with per-category expiry and capacity-aware eviction."""

    def __init__(self,
                 store: KeyValueStore,
                 clock: Callable[[], int] = now_ms,
                 max_entry_bytes: int = MAX_ENTRY_BYTES):
        """
        Initialize the cache.

        Args:
            store: Shared key-value store
            clock: Returns the current time in epoch milliseconds
            max_entry_bytes: Per-entry size ceiling; larger payloads are never cached
        """
        self.store = store
        self.clock = clock
        self.max_entry_bytes = max_entry_bytes

    @staticmethod
    def lifetime_ms(category: CacheCategory) -> Optional[int]:
        """Lifetime of a category in milliseconds, None when it is never cached."""
        return CACHE_LIFETIMES_MS.get(CacheCategory(category))

    def _read_entry(self, key: str) -> Optional[CacheEntry]:
        stored = self.store.get(key)
        if stored is None:
            return None
        return CacheEntry.model_validate_json(stored)

    def _cache_keys(self) -> List[str]:
        return [key for key in self.store.keys() if key.startswith(CACHE_KEY_PREFIX)]

    def get(self, key: str, category: CacheCategory) -> Optional[Any]:
        """
        Return cached data, or None on a miss.

        Expired entries are deleted on read. Any read failure is a miss.
        """
        try:
            if self.lifetime_ms(category) is None:
                return None
            entry = self._read_entry(key)
            if entry is None:
                return None
            if entry.is_expired(self.clock()):
                self.store.delete(key)
                logging.debug(f"[CACHE] Expired entry removed on read: {key}")
                return None
            return entry.data
        except Exception as e:
            logging.error(f"[CACHE] Error reading from cache: {e}")
            return None

    def put(self, key: str, category: CacheCategory, data: Any) -> None:
        """
        Store data under ``key`` for the category's lifetime.

        Oversized payloads and uncacheable categories are skipped. When the
        store runs out of space, expired entries are swept and the write is
        retried once; then the oldest half of the entries is evicted and the
        write is retried once more; after that the write is dropped.
        """
        try:
            lifetime = self.lifetime_ms(category)
            if lifetime is None:
                logging.info(f"[CACHE] Category '{CacheCategory(category).value}' is never cached, skipping")
                return

            estimated_size = estimate_size(data)
            if estimated_size > self.max_entry_bytes:
                logging.warning(
                    f"[CACHE] Entry too large ({estimated_size / 1024 / 1024:.2f} MB), "
                    f"skipping cache for {CacheCategory(category).value}"
                )
                return

            now = self.clock()
            entry = CacheEntry(data=data, category=category, created_at=now, expires_at=now + lifetime)
            payload = serialize(entry.model_dump(mode="json"))
        except Exception as e:
            logging.error(f"[CACHE] Error preparing cache entry: {e}")
            return

        try:
            self.store.set(key, payload)
            return
        except StorageQuotaExceeded:
            logging.warning("[CACHE] Storage quota exceeded, clearing expired cache entries...")
        except Exception as e:
            logging.error(f"[CACHE] Error saving to cache: {e}")
            return

        self.sweep_expired()
        try:
            self.store.set(key, payload)
            return
        except StorageQuotaExceeded:
            logging.warning("[CACHE] Still over quota after sweep, evicting oldest entries...")
        except Exception as e:
            logging.error(f"[CACHE] Error saving to cache after sweep: {e}")
            return

        total = len(self._cache_keys())
        if total > 0:
            self.evict_oldest(max(1, total // 2))
        try:
            self.store.set(key, payload)
        except Exception as e:
            logging.error(f"[CACHE] Failed to save to cache after cleanup, dropping write: {e}")

    def sweep_expired(self) -> int:
        """Delete every expired (or unreadable) entry and return how many were removed."""
        cleared = 0
        try:
            now = self.clock()
            for key in self._cache_keys():
                try:
                    entry = self._read_entry(key)
                    if entry is not None and not entry.is_expired(now):
                        continue
                except Exception:
                    pass  # corrupt entries are removed below
                self.store.delete(key)
                cleared += 1
        except Exception as e:
            logging.error(f"[CACHE] Error clearing expired cache: {e}")

        if cleared > 0:
            logging.info(f"[CACHE] Cleared {cleared} expired cache entries")
        return cleared

    def evict_oldest(self, count: int) -> int:
        """Delete the ``count`` oldest entries by creation time and return how many were removed."""
        cleared = 0
        try:
            entries: List[Tuple[int, str]] = []
            for key in self._cache_keys():
                try:
                    entry = self._read_entry(key)
                except Exception:
                    self.store.delete(key)
                    continue
                if entry is not None:
                    entries.append((entry.created_at, key))

            entries.sort()
            for _, key in entries[:max(0, count)]:
                self.store.delete(key)
                cleared += 1
        except Exception as e:
            logging.error(f"[CACHE] Error clearing oldest cache entries: {e}")

        if cleared > 0:
            logging.info(f"[CACHE] Cleared {cleared} oldest cache entries")
        return cleared

    def clear_all(self) -> int:
        """Remove every cache entry and return how many were removed."""
        cleared = 0
        try:
            for key in self._cache_keys():
                self.store.delete(key)
                cleared += 1
        except Exception as e:
            logging.error(f"[CACHE] Error clearing cache: {e}")
        logging.info(f"[CACHE] Cleared {cleared} cache entries")
        return cleared

    def stats(self) -> CacheStats:
        """Aggregate counts, stored size, per-category histogram and age bounds."""
        try:
            keys = self._cache_keys()
            total_size = 0
            by_category: Dict[str, int] = {}
            oldest: Optional[int] = None
            newest: Optional[int] = None

            for key in keys:
                stored = self.store.get(key)
                if stored is None:
                    continue
                total_size += len(stored.encode("utf-8"))
                try:
                    entry = CacheEntry.model_validate_json(stored)
                except Exception:
                    by_category["unknown"] = by_category.get("unknown", 0) + 1
                    continue
                if oldest is None or entry.created_at < oldest:
                    oldest = entry.created_at
                if newest is None or entry.created_at > newest:
                    newest = entry.created_at
                by_category[entry.category.value] = by_category.get(entry.category.value, 0) + 1

            return CacheStats(
                total=len(keys),
                total_size=total_size,
                by_category=by_category,
                oldest_entry=oldest,
                newest_entry=newest,
            )
        except Exception as e:
            logging.error(f"[CACHE] Error getting cache stats: {e}")
            return CacheStats()
