"""Shared, deterministic timestamps for tests."""

from datetime import UTC, datetime


# Fixed reference time so recency and window filters are deterministic.
FIXED_NOW = datetime(2025, 10, 18, 12, 0, 0, tzinfo=UTC)
