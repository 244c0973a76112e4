"""Test doubles shared by the pipeline and persistence tests."""

import json
from typing import Any, Dict, List, Optional

from core.persistence.kv_store import InMemoryKeyValueStore, StorageQuotaExceeded


class DummyResponse:
    def __init__(self, status_code: int = 200, *, content: bytes = b"", json_data: Any = None,
                 headers: Optional[Dict[str, str]] = None, text: Optional[str] = None):
        self.status_code = status_code
        self.headers = headers or {}
        if json_data is not None:
            content = json.dumps(json_data).encode("utf-8")
            self.headers.setdefault("content-type", "application/json")
        self.content = content
        self._text = text

    @property
    def text(self) -> str:
        if self._text is not None:
            return self._text
        return self.content.decode("utf-8", errors="replace")

    def json(self):
        return json.loads(self.content.decode("utf-8"))


class DummySession:
    """Replays planned responses (or raises planned exceptions) per HTTP method."""

    def __init__(self, post: Optional[List[Any]] = None, get: Optional[List[Any]] = None):
        self.planned = {"POST": list(post or []), "GET": list(get or [])}
        self.calls: List[Dict[str, Any]] = []

    def _next(self, method: str, url: str, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        actions = self.planned[method]
        if not actions:
            raise AssertionError(f"Unexpected {method} {url}")
        action = actions.pop(0)
        if isinstance(action, BaseException):
            raise action
        return action

    def post(self, url, **kwargs):
        return self._next("POST", url, **kwargs)

    def get(self, url, **kwargs):
        return self._next("GET", url, **kwargs)

    def urls(self, method: str) -> List[str]:
        return [call["url"] for call in self.calls if call["method"] == method]


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FlakyStore(InMemoryKeyValueStore):
    """In-memory store whose next ``fail_times`` writes report a full quota."""

    def __init__(self):
        super().__init__()
        self.fail_times = 0
        self.failed_writes = 0

    def set(self, key: str, value: str) -> None:
        if self.fail_times > 0:
            self.fail_times -= 1
            self.failed_writes += 1
            raise StorageQuotaExceeded(key, len(value), 0)
        super().set(key, value)


class BrokenStore(InMemoryKeyValueStore):
    """Store whose every operation fails, like an unavailable profile."""

    def get(self, key):
        raise OSError("store unavailable")

    def set(self, key, value):
        raise OSError("store unavailable")

    def delete(self, key):
        raise OSError("store unavailable")

    def keys(self):
        raise OSError("store unavailable")


def png_bytes(size=(4, 4), color=(200, 30, 30)) -> bytes:
    from io import BytesIO
    from PIL import Image

    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()
