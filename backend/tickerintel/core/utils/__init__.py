"""Core utility helpers."""

from .date_utils import age_seconds, ensure_utc, parse_iso, utcnow

__all__ = ["age_seconds", "ensure_utc", "parse_iso", "utcnow"]
