"""Formatting helpers."""
from __future__ import annotations

DAY_MS = 24 * 60 * 60 * 1000


def truncate(text: str, limit: int = 1950) -> str:
    text = text or ""
    return text if len(text) <= limit else text[: limit - 3] + "..."


def format_age_days(age_ms: int) -> str:
    return f"{max(0, age_ms) // DAY_MS} day(s)"


def format_duration_ms(ms: int) -> str:
    seconds = max(0, ms) // 1000
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m"
    if seconds < 86400:
        return f"{seconds // 3600}h"
    return f"{seconds // 86400}d"

__all__ = ["truncate", "format_age_days", "format_duration_ms"]
