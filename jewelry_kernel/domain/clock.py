"""
Clock -- injectable time source.

Services never call ``datetime.now()`` directly: audit stamps and the
time component of generated SKUs and barcodes are read from a ``Clock``
so that tests can pin them.

Architecture position:
    Kernel > Domain.  ``SystemClock`` is the only implementation that
    touches the real system time.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

DEFAULT_TEST_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """Source of timezone-aware UTC datetimes."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def now_millis(self) -> int:
        """Unix epoch milliseconds of ``now()``; feeds identifier generation."""
        return int(self.now().timestamp() * 1000)


class SystemClock(Clock):

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    Two SKUs generated without an ``advance_millis()`` in between share
    their time component, which is how tests force identifier collisions.
    """

    def __init__(self, start: datetime | None = None):
        self._current = start or DEFAULT_TEST_TIME

    def now(self) -> datetime:
        return self._current

    def advance_millis(self, millis: int = 1) -> None:
        self._current += timedelta(milliseconds=millis)
