"""signalbench.core.time

The only time helper surface in the codebase.
"""

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return an aware UTC datetime."""

    return datetime.now(tz=UTC)


def parse_dt(value: str) -> datetime:
    """Parse an ISO-8601 datetime string into an aware UTC datetime.

    Accepts a `Z` suffix, explicit offsets, and naive timestamps (assumed UTC).

    Raises:
        ValueError: if parsing fails.
    """

    v = value.strip()
    if v.endswith("Z"):
        v = v[:-1] + "+00:00"

    dt = datetime.fromisoformat(v)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def parse_bar_time(date_str: str, time_str: str) -> datetime:
    """Parse MetaTrader-style `2025.07.01` + `00:05` into an aware UTC datetime."""

    d = date_str.strip().replace(".", "-").replace("/", "-")
    t = time_str.strip()
    if t.count(":") == 1:
        t = t + ":00"
    return parse_dt(f"{d}T{t}")
