"""Utility functions for deskbook package."""

from datetime import date, timedelta

# Rolling booking window length in days
WINDOW_DAYS = 7


def date_window(start: date | None = None, days: int = WINDOW_DAYS) -> tuple[date, ...]:
    """Build a window of consecutive dates.

    Args:
        start: First date (default: today)
        days: Number of dates (default: 7)

    Returns:
        Tuple of dates starting at ``start``
    """
    if start is None:
        start = date.today()
    return tuple(start + timedelta(days=offset) for offset in range(days))


def build_url(base: str, *parts: str) -> str:
    """Build URL from a base and path parts.

    Args:
        base: Base URL
        *parts: URL path parts

    Returns:
        Complete URL
    """
    url = base.rstrip("/")
    if parts:
        url += "/" + "/".join(str(p).strip("/") for p in parts)
    return url
