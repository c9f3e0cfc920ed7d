"""Clock collaborator. The engine's pure functions take ``now`` explicitly."""
from datetime import datetime
from typing import Protocol, runtime_checkable

from django.conf import settings
from django.utils import timezone


@runtime_checkable
class Clock(Protocol):
    def now(self) -> datetime:
        ...

    def is_past(self, value: datetime) -> bool:
        ...


class SystemClock:
    """Wall clock in the current timezone when USE_TZ is enabled."""

    def now(self) -> datetime:
        if settings.USE_TZ:
            return timezone.localtime()
        return timezone.now()

    def is_past(self, value: datetime) -> bool:
        return value <= self.now()


class FixedClock:
    """Clock frozen at a given instant."""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

    def is_past(self, value: datetime) -> bool:
        return value <= self.instant
