"""Utility helpers for reusable functionality."""

from .datetime import (
    ensure_app_timezone,
    get_app_timezone,
    now_in_app_timezone,
    resolve_timezone,
    time_ago,
)

__all__ = [
    "ensure_app_timezone",
    "get_app_timezone",
    "now_in_app_timezone",
    "resolve_timezone",
    "time_ago",
]
