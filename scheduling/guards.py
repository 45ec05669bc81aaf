"""
Temporal guard for schedule exceptions.

An exception may be created, edited or deleted only while its date is today
or later (local date, start of day).
"""

import logging
from datetime import date

from .clock import system_clock
from .exceptions import PastExceptionDateError

logger = logging.getLogger(__name__)


def is_past_date(value: date, clock=system_clock) -> bool:
    """True if ``value`` lies strictly before today."""
    return value < clock.today()


def ensure_exception_modifiable(exception_date: date, clock=system_clock) -> None:
    """
    Reject changes to an exception dated in the past.

    Raises:
        PastExceptionDateError: If ``exception_date`` is before today.
    """
    if is_past_date(exception_date, clock):
        logger.warning(
            "Rejected change to schedule exception dated %s (today is %s)",
            exception_date, clock.today()
        )
        raise PastExceptionDateError()
