"""
Expansion of recurrence patterns into candidate session dates.

Everything here is pure: no database access, no clock. Functions accept a
RecurrencePattern instance or any object exposing the same attributes
(frequency, interval, weekdays, start_date, end_date, max_occurrences,
start_time, end_time).
"""

from datetime import date, datetime, time
from itertools import islice
from typing import List, Optional

from dateutil import rrule
from dateutil.relativedelta import relativedelta

from .conf import get_setting
from .exceptions import PatternValidationError
from .types import (
    BIWEEKLY,
    DAILY,
    FREQUENCIES,
    MONTHLY,
    WEEKDAY_FREQUENCIES,
    WEEKLY,
)


# Mapping weekday integers (0=Monday) to dateutil constants
WEEKDAY_MAP = {
    0: rrule.MO, 1: rrule.TU, 2: rrule.WE, 3: rrule.TH,
    4: rrule.FR, 5: rrule.SA, 6: rrule.SU,
}

RRULE_FREQUENCIES = {
    DAILY: rrule.DAILY,
    WEEKLY: rrule.WEEKLY,
    BIWEEKLY: rrule.WEEKLY,
}


def validate_pattern(pattern) -> None:
    """
    Check the invariants of a recurrence pattern.

    Raises:
        PatternValidationError: On the first violated invariant.
    """
    if pattern.frequency not in FREQUENCIES:
        raise PatternValidationError(
            f"Frequency must be one of: {', '.join(FREQUENCIES)}",
            field='frequency'
        )

    if pattern.interval is None or pattern.interval < 1:
        raise PatternValidationError("Interval must be a positive integer", field='interval')

    weekdays = list(pattern.weekdays or [])
    if any(not isinstance(day, int) or not 0 <= day <= 6 for day in weekdays):
        raise PatternValidationError(
            "Weekdays must be between 0 (Monday) and 6 (Sunday)",
            field='weekdays'
        )
    if pattern.frequency in WEEKDAY_FREQUENCIES and not weekdays:
        raise PatternValidationError(
            "Weekly patterns need at least one weekday",
            field='weekdays'
        )

    has_end_date = pattern.end_date is not None
    has_count = pattern.max_occurrences is not None
    if has_end_date == has_count:
        raise PatternValidationError(
            "Set exactly one of end_date or max_occurrences",
            field='end_date'
        )

    if has_end_date and pattern.end_date < pattern.start_date:
        raise PatternValidationError(
            "End date must not be before start date",
            field='end_date'
        )

    if has_count:
        max_allowed = get_setting('MAX_OCCURRENCES')
        if not 1 <= pattern.max_occurrences <= max_allowed:
            raise PatternValidationError(
                f"max_occurrences must be between 1 and {max_allowed}",
                field='max_occurrences'
            )

    if pattern.start_time >= pattern.end_time:
        raise PatternValidationError(
            "Start time must be before end time",
            field='end_time'
        )


def expand_candidate_dates(pattern, limit: Optional[int] = None) -> List[date]:
    """
    Expand a pattern into its ordered candidate dates.

    Exceptions are not applied here. A count-terminated pattern yields
    exactly ``max_occurrences`` dates; an end-date-terminated pattern
    yields every candidate on or before ``end_date``.

    Args:
        pattern: RecurrencePattern or an object with the same fields
        limit: Optional cap on the number of dates returned (previews)

    Returns:
        Ascending list of dates

    Raises:
        PatternValidationError: If the pattern is malformed
    """
    validate_pattern(pattern)

    if pattern.frequency == MONTHLY:
        return _expand_monthly(pattern, limit)

    occurrences = islice(_create_rrule(pattern), limit)
    return [occurrence.date() for occurrence in occurrences]


def _create_rrule(pattern) -> rrule.rrule:
    """Build the dateutil rule for daily, weekly and biweekly patterns."""
    rule_params = {
        'freq': RRULE_FREQUENCIES[pattern.frequency],
        'dtstart': datetime.combine(pattern.start_date, time.min),
        'interval': pattern.interval,
        'wkst': rrule.MO,
    }

    if pattern.frequency == BIWEEKLY:
        rule_params['interval'] = pattern.interval * 2

    if pattern.frequency in WEEKDAY_FREQUENCIES:
        rule_params['byweekday'] = [WEEKDAY_MAP[day] for day in sorted(set(pattern.weekdays))]

    if pattern.max_occurrences is not None:
        rule_params['count'] = pattern.max_occurrences
    else:
        rule_params['until'] = datetime.combine(pattern.end_date, time.min)

    return rrule.rrule(**rule_params)


def _expand_monthly(pattern, limit: Optional[int]) -> List[date]:
    """
    Step whole months from the start date.

    Each step is computed from the start date, so a day clamped in a short
    month (31 -> 30 or 28/29) returns to the original day afterwards.
    """
    count = pattern.max_occurrences
    if limit is not None:
        count = limit if count is None else min(count, limit)

    dates = []
    step = 0
    while count is None or len(dates) < count:
        candidate = pattern.start_date + relativedelta(months=step * pattern.interval)
        if pattern.end_date is not None and candidate > pattern.end_date:
            break
        dates.append(candidate)
        step += 1
    return dates
