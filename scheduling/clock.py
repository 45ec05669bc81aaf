"""Sources of "today" for the scheduling services."""

from datetime import date

from django.utils import timezone


class SystemClock:
    """Reads the current local date from Django's configured time zone."""

    def today(self) -> date:
        return timezone.localdate()


class FixedClock:
    """Always reports the same date. Used by tests and backfills."""

    def __init__(self, today: date):
        self._today = today

    def today(self) -> date:
        return self._today

    def __repr__(self):
        return f"FixedClock({self._today.isoformat()})"


system_clock = SystemClock()
