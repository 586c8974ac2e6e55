"""Clock abstractions so timestamps can be made deterministic in tests."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        """Return the current time as a timezone-aware datetime."""
        ...


@dataclass(frozen=True)
class SystemClock:
    """Clock that returns the current system time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def isoformat(moment: datetime) -> str:
    """Render a datetime as ISO 8601 in UTC with a 'Z' suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="microseconds").replace("+00:00", "Z")


__all__ = [
    "Clock",
    "SystemClock",
    "isoformat",
]
