"""Time helpers shared by the auth components."""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_timestamp(value: datetime) -> int:
    """Convert a naive UTC datetime to integer epoch seconds."""
    return int(value.replace(tzinfo=timezone.utc).timestamp())


def from_timestamp(value: float) -> datetime:
    """Convert epoch seconds to a naive UTC datetime."""
    return datetime.fromtimestamp(value, tz=timezone.utc).replace(tzinfo=None)
