"""UTC timestamps in ISO-8601 form."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now_iso(now: datetime | None = None) -> str:
    """Return ``now`` (default: the current time) as ``YYYY-MM-DDTHH:MM:SS.ffffffZ``.

    A naive ``now`` is taken to be UTC; an aware one is converted to UTC.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    else:
        now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.%fZ")