"""
Key-value stores backing the client-profile persistence layer.

Cache entries, the history log, the quota record and analytics events all live
as independent keyed records in one shared store with a fixed byte quota. A
write that would exceed the quota raises StorageQuotaExceeded; the layers above
decide how to recover.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional


class StorageQuotaExceeded(Exception):
    """Raised when a write would push the store over its byte quota."""

    def __init__(self, key: str, required: int, quota: int):
        super().__init__(f"Storing '{key}' needs {required} bytes, quota is {quota} bytes")
        self.key = key
        self.required = required
        self.quota = quota


def _record_size(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class KeyValueStore(ABC):
    """Abstract string key-value store interface."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value or None when the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value, raising StorageQuotaExceeded when over quota."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete a key; deleting a missing key is a no-op."""

    @abstractmethod
    def keys(self) -> List[str]:
        """Return a snapshot of all keys."""

    @abstractmethod
    def used_bytes(self) -> int:
        """Return the total size of all records in bytes."""


class InMemoryKeyValueStore(KeyValueStore):
    """
    Dictionary-backed store with an optional byte quota.

    API routes run in a worker thread pool, so every read and write of the
    record map happens under one re-entrant lock.
    """

    def __init__(self, quota_bytes: Optional[int] = None):
        self.quota_bytes = quota_bytes
        self._data: Dict[str, str] = {}
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            if self.quota_bytes is not None:
                current = self._data.get(key)
                used = self.used_bytes()
                if current is not None:
                    used -= _record_size(key, current)
                required = used + _record_size(key, value)
                if required > self.quota_bytes:
                    raise StorageQuotaExceeded(key, required, self.quota_bytes)
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data.keys())

    def used_bytes(self) -> int:
        with self._lock:
            return sum(_record_size(k, v) for k, v in self._data.items())


class JsonFileKeyValueStore(InMemoryKeyValueStore):
    """
    Store persisted as a single JSON document, one per user profile.

    The document is loaded once and rewritten atomically (temp file + replace)
    on every mutation.
    """

    def __init__(self, path: str, quota_bytes: Optional[int] = None):
        """
        Initialize the file-backed store.

        Args:
            path: Location of the JSON document; parent directories are created
            quota_bytes: Optional byte quota shared by all records
        """
        super().__init__(quota_bytes=quota_bytes)
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._load()

    def _load(self):
        """Load existing records from disk if available."""
        if not self.path.exists():
            return
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                loaded = json.load(f)
            if isinstance(loaded, dict):
                self._data = {str(k): str(v) for k, v in loaded.items()}
            logging.info(f"[STORE] Loaded {len(self._data)} records from {self.path}")
        except (OSError, ValueError) as e:
            logging.warning(f"[STORE] Failed to load {self.path}, starting empty: {e}")
            self._data = {}

    def _flush(self):
        """Rewrite the document; callers hold the lock."""
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(self._data, f, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def set(self, key: str, value: str) -> None:
        with self._lock:
            super().set(key, value)
            self._flush()

    def delete(self, key: str) -> None:
        with self._lock:
            if key in self._data:
                super().delete(key)
                self._flush()
