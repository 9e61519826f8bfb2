"""Injectable time source. Components stamp output through a clock, never datetime.now()."""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def fixed_clock(moment: datetime) -> Clock:
    """Clock that always returns `moment`. Used for deterministic output."""
    return lambda: moment
