"""Serialized-size estimation shared by cache and history eviction."""

import json
from typing import Any

# Worst-case UTF-8 width of a single character
_MAX_BYTES_PER_CHAR = 4


def serialize(value: Any) -> str:
    """Compact JSON form used both for storage and for size estimates."""
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def estimate_size(value: Any) -> int:
    """
    Estimate the stored size of ``value`` in bytes.

    Measures the UTF-8 length of the compact JSON serialization. When the value
    cannot be serialized the estimate rounds up to the worst-case width of its
    string form, so eviction decisions err on the side of freeing space.
    """
    try:
        return len(serialize(value).encode("utf-8"))
    except (TypeError, ValueError):
        return len(str(value)) * _MAX_BYTES_PER_CHAR
