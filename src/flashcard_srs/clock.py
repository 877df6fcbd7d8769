"""Clock abstraction so scheduling never reads the wall clock directly."""
from datetime import datetime, timezone
from typing import Protocol


def ensure_utc(moment: datetime) -> datetime:
    """Return moment in UTC; naive datetimes are rejected."""
    if moment.tzinfo is None or moment.utcoffset() is None:
        raise ValueError(f"expected a timezone-aware datetime, got {moment!r}")
    return moment.astimezone(timezone.utc)


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock pinned to a given instant. Used by tests and replays."""

    def __init__(self, moment: datetime):
        self.moment = ensure_utc(moment)

    def now(self) -> datetime:
        return self.moment

    def set(self, moment: datetime) -> None:
        self.moment = ensure_utc(moment)
