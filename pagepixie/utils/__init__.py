"""Utility helpers"""

from .async_helpers import sync_wrapper, notify
from .structured_data import normalize_structured_data, stringify_structured_value

__all__ = [
    "sync_wrapper",
    "notify",
    "normalize_structured_data",
    "stringify_structured_value",
]
