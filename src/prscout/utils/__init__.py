"""Utility functions."""

from .datetime import from_iso, now_utc, parse_optional_iso

__all__ = ["from_iso", "now_utc", "parse_optional_iso"]
