"""
Utility modules for the illustration pipeline.
"""

from .clock import now_ms, local_now

__all__ = [
    "now_ms",
    "local_now",
]
