"""Utility modules for the activity service."""

from .window import WindowQuery, window_since

__all__ = [
    "WindowQuery",
    "window_since",
]
