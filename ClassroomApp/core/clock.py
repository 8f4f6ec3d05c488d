"""Clock capability injected into services that compare against "now"."""

from datetime import datetime, timedelta
from typing import Protocol

from django.utils import timezone


class Clock(Protocol):
    """Anything that can tell the current (timezone-aware) time."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock backed by ``django.utils.timezone.now``."""

    def now(self) -> datetime:
        return timezone.now()


class FixedClock:
    """A clock frozen at a given instant; ``advance`` moves it forward."""

    def __init__(self, at: datetime) -> None:
        self._at = at

    def now(self) -> datetime:
        return self._at

    def advance(self, **delta: float) -> datetime:
        self._at = self._at + timedelta(**delta)
        return self._at


system_clock = SystemClock()
