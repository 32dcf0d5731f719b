"""Utility functions for lloom.

This module contains internal utility functions.
"""

from lloom.utils.ids import MonotonicClock, generate_id

__all__ = [
    "MonotonicClock",
    "generate_id",
]
