"""Trailing time windows for scoped upstream queries."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone


def window_since(days: int, now: datetime) -> datetime:
    """Return the moment exactly ``days`` calendar days before ``now``.

    The subtraction works on the wall-clock date in ``now``'s own timezone,
    so the time of day is kept even across a DST change (a fixed multiple of
    24 hours would drift by the offset change).

    Args:
        days: Number of calendar days to go back (>= 0)
        now: Reference time, naive or timezone-aware

    Returns:
        A datetime with the same time of day and tzinfo as ``now``

    Raises:
        ValueError: If days is negative
    """
    if days < 0:
        raise ValueError(f"days must not be negative, got {days}")
    since_date = now.date() - timedelta(days=days)
    return datetime.combine(since_date, now.timetz())


@dataclass(frozen=True)
class WindowQuery:
    """Parameters scoping a commit listing to a trailing window."""

    since: datetime
    page_size: int = 100

    @classmethod
    def for_days(cls, days: int, now: datetime | None = None, page_size: int = 100) -> "WindowQuery":
        """Build a query covering the last ``days`` calendar days."""
        now = now or datetime.now(timezone.utc)
        return cls(since=window_since(days, now), page_size=page_size)

    def to_params(self) -> dict[str, str | int]:
        """Render query-string parameters in the GitHub API format."""
        since = self.since
        if since.tzinfo is None:
            since = since.replace(tzinfo=timezone.utc)
        since_utc = since.astimezone(timezone.utc).replace(microsecond=0)
        return {
            "since": since_utc.isoformat().replace("+00:00", "Z"),
            "per_page": self.page_size,
        }
