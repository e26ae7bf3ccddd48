"""Utilities for datetime handling."""

from datetime import UTC, datetime


def now_utc() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def from_iso(value: str) -> datetime:
    """Parse ISO format string to datetime."""
    # Handle both 'Z' suffix and explicit timezone
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def parse_optional_iso(value: str | None) -> datetime | None:
    """Parse an optional GraphQL DateTime value, returning None when absent or invalid."""
    if not value:
        return None
    try:
        return from_iso(value)
    except ValueError:
        return None
