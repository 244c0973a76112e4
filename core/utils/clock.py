"""Clock helpers; injected into persistence components so tests control time."""

import time
from datetime import datetime


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def local_now() -> datetime:
    """Current naive datetime in the process's local time zone."""
    return datetime.now()
