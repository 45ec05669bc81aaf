"""
Service layer for camp scheduling business logic.
Services are framework-agnostic and handle all business operations.
"""

import logging
from datetime import date, time
from typing import List, Optional, Tuple

from django.db import transaction
from django.db.models import Q

from .clock import system_clock
from .conf import get_setting
from .exceptions import (
    ScheduleConflictError,
    ScheduleValidationError,
    SchedulingError,
)
from .guards import ensure_exception_modifiable
from .materializer import plan_sessions
from .models import Camp, CampSession, RecurrencePattern, ScheduleException
from .recurrence import expand_candidate_dates, validate_pattern
from .types import (
    EXCEPTION_ADD,
    EXCEPTION_TYPES,
    EXCEPTION_TYPES_WITH_TIMES,
    SESSION_CANCELLED,
    SESSION_SCHEDULED,
    ExceptionData,
    ExceptionUpdateData,
    GenerationSummary,
    PatternData,
    PatternUpdateData,
    SessionUpdateData,
)

logger = logging.getLogger(__name__)


# Session generation

def preview_candidate_dates(data: PatternData) -> List[date]:
    """
    Candidate dates for a pattern that has not been saved.

    Args:
        data: PatternData describing the pattern

    Returns:
        At most ``PREVIEW_LIMIT`` ascending dates

    Raises:
        PatternValidationError: If the pattern is malformed
    """
    return expand_candidate_dates(data, limit=get_setting('PREVIEW_LIMIT'))


@transaction.atomic
def generate_sessions_from_pattern(pattern_id: int) -> List[CampSession]:
    """
    Materialize the sessions of a recurrence pattern.

    The pattern row is locked for the duration of the transaction so that
    concurrent regenerations of the same pattern run one after another.
    Re-running without changes writes nothing.

    Args:
        pattern_id: Primary key of the RecurrencePattern

    Returns:
        Every session of the pattern plus the sessions of the camp's
        ``add`` exceptions, ordered by date

    Raises:
        RecurrencePattern.DoesNotExist: If the pattern does not exist
        PatternValidationError: If the pattern is malformed
        ScheduleConflictError: If a session date falls outside the camp
    """
    pattern = (
        RecurrencePattern.objects
        .select_for_update()
        .select_related('camp')
        .get(pk=pattern_id)
    )
    sessions, _ = _materialize(pattern)
    return sessions


def generate_sessions_for_camp(camp: Camp) -> List[GenerationSummary]:
    """
    Materialize every active pattern of a camp.

    A pattern that cannot be materialized (for example because the camp
    dates were shortened under it) is logged and skipped; its summary
    carries the error and the remaining patterns still run.

    Args:
        camp: Camp instance

    Returns:
        One GenerationSummary per pattern
    """
    summaries = []
    for pattern_id in RecurrencePattern.objects.active().for_camp(camp).values_list('id', flat=True):
        try:
            summaries.append(summarize_pattern_generation(pattern_id))
        except SchedulingError as exc:
            logger.warning(
                "Skipped pattern %s of camp %s: %s", pattern_id, camp.id, exc.message
            )
            summaries.append(GenerationSummary(pattern_id=pattern_id, error=exc.message))
    return summaries


@transaction.atomic
def summarize_pattern_generation(pattern_id: int) -> GenerationSummary:
    """
    Materialize one pattern and report what changed.

    Args:
        pattern_id: Primary key of the RecurrencePattern

    Returns:
        GenerationSummary with created/updated/cancelled/unchanged counts
    """
    pattern = (
        RecurrencePattern.objects
        .select_for_update()
        .select_related('camp')
        .get(pk=pattern_id)
    )
    _, summary = _materialize(pattern)
    return summary


def generate_sessions_for_all_camps() -> int:
    """
    Materialize all active patterns of all camps.

    Returns:
        Number of sessions created
    """
    total_created = 0
    for camp in Camp.objects.active():
        summaries = generate_sessions_for_camp(camp)
        total_created += sum(summary.created for summary in summaries)
    return total_created


def _materialize(pattern: RecurrencePattern) -> Tuple[List[CampSession], GenerationSummary]:
    """Reconcile and persist the sessions of a locked pattern."""
    camp = pattern.camp
    summary = GenerationSummary(pattern_id=pattern.id)

    if camp.is_deleted:
        raise ScheduleConflictError("Cannot generate sessions for a deleted camp", field='camp')

    if not pattern.is_active:
        logger.info("Pattern %s is inactive; sessions left unchanged", pattern.id)
        return list(CampSession.objects.for_pattern(pattern)), summary

    candidates = expand_candidate_dates(pattern)
    candidate_set = set(candidates)
    _ensure_dates_within_camp(camp, candidates)

    exceptions = list(ScheduleException.objects.for_camp(camp))
    add_exception_ids = [exc.id for exc in exceptions if exc.exception_type == EXCEPTION_ADD]
    existing = list(
        CampSession.objects.filter(
            Q(recurrence_pattern=pattern, schedule_exception__isnull=True)
            | Q(schedule_exception__in=add_exception_ids)
        )
    )

    plan = plan_sessions(
        candidates,
        pattern.start_time,
        pattern.end_time,
        existing,
        exceptions,
        capacity=pattern.session_capacity,
        covered_dates=_dates_covered_elsewhere(pattern, exceptions),
    )
    _ensure_dates_within_camp(camp, [draft.session_date for draft in plan.to_create])

    new_sessions = [
        CampSession(
            camp=camp,
            recurrence_pattern=None if draft.schedule_exception_id else pattern,
            schedule_exception_id=draft.schedule_exception_id,
            session_date=draft.session_date,
            start_time=draft.start_time,
            end_time=draft.end_time,
            capacity=draft.capacity if draft.capacity is not None else camp.capacity,
            status=draft.status,
        )
        for draft in plan.to_create
    ]
    _bulk_save_sessions(new_sessions)

    for change in plan.to_update:
        _apply_field_updates(change.session, change.changes)
        change.session.save(update_fields=[*change.changes, 'updated_at'])

    summary.created = len(new_sessions)
    summary.cancelled = plan.cancelled_count
    summary.updated = len(plan.to_update) - summary.cancelled
    summary.unchanged = len(plan.unchanged)

    logger.info(
        "Generated sessions for pattern %s (camp %s): %s created, %s updated, %s cancelled, %s unchanged",
        pattern.id, camp.id, summary.created, summary.updated, summary.cancelled, summary.unchanged
    )

    sessions = CampSession.objects.filter(
        Q(recurrence_pattern=pattern) | Q(schedule_exception__in=add_exception_ids)
    ).order_by('session_date', 'start_time', 'id')
    return list(sessions), summary


def _dates_covered_elsewhere(pattern: RecurrencePattern, exceptions) -> List[date]:
    """Add-exception dates already scheduled by another active pattern of the camp."""
    add_dates = [exc.exception_date for exc in exceptions if exc.exception_type == EXCEPTION_ADD]
    if not add_dates:
        return []
    return list(
        CampSession.objects
        .filter(
            camp=pattern.camp,
            recurrence_pattern__is_active=True,
            schedule_exception__isnull=True,
            status=SESSION_SCHEDULED,
            session_date__in=add_dates,
        )
        .exclude(recurrence_pattern=pattern)
        .exclude(recurrence_pattern__isnull=True)
        .values_list('session_date', flat=True)
        .distinct()
    )


def _bulk_save_sessions(sessions: List[CampSession]) -> List[CampSession]:
    """Bulk create sessions in database."""
    if sessions:
        CampSession.objects.bulk_create(sessions)
    return sessions


def _ensure_dates_within_camp(camp: Camp, dates: List[date]) -> None:
    """Raise a conflict if any date lies outside the camp's date range."""
    outside = [day for day in dates if not camp.covers(day)]
    if outside:
        raise ScheduleConflictError(
            f"Session date {outside[0].isoformat()} is outside the camp dates "
            f"({camp.start_date.isoformat()} - {camp.end_date.isoformat()})",
            field='session_date'
        )


# Recurrence patterns

@transaction.atomic
def create_recurrence_pattern(
    camp: Camp,
    data: PatternData,
    generate_sessions: bool = True
) -> Tuple[RecurrencePattern, List[CampSession]]:
    """
    Create a new recurrence pattern and optionally generate its sessions.

    Args:
        camp: Camp the pattern belongs to
        data: PatternData with the pattern fields
        generate_sessions: Whether to materialize sessions immediately

    Returns:
        Tuple of (created RecurrencePattern, materialized sessions)

    Raises:
        PatternValidationError: If the pattern is malformed
        ScheduleConflictError: If the pattern reaches outside the camp dates
    """
    _ensure_camp_active(camp)
    validate_pattern(data)
    _ensure_pattern_within_camp(camp, data)

    pattern = RecurrencePattern.objects.create(
        camp=camp,
        name=data.name,
        frequency=data.frequency,
        interval=data.interval,
        weekdays=sorted(set(data.weekdays)),
        start_date=data.start_date,
        end_date=data.end_date,
        max_occurrences=data.max_occurrences,
        start_time=data.start_time,
        end_time=data.end_time,
        capacity=data.capacity,
        is_active=True
    )
    logger.info("Created recurrence pattern %s for camp %s", pattern.id, camp.id)

    sessions = []
    if generate_sessions:
        sessions = generate_sessions_from_pattern(pattern.id)

    return pattern, sessions


@transaction.atomic
def update_recurrence_pattern(
    pattern: RecurrencePattern,
    update_data: PatternUpdateData,
    regenerate: bool = True
) -> RecurrencePattern:
    """
    Update a recurrence pattern.

    Args:
        pattern: RecurrencePattern instance to update
        update_data: PatternUpdateData with fields to update
        regenerate: Whether to reconcile the pattern's sessions afterwards

    Returns:
        Updated RecurrencePattern instance

    Raises:
        PatternValidationError: If the resulting pattern is malformed
        ScheduleConflictError: If the pattern reaches outside the camp dates
    """
    pattern_fields = {
        'name': update_data.name,
        'frequency': update_data.frequency,
        'interval': update_data.interval,
        'weekdays': sorted(set(update_data.weekdays)) if update_data.weekdays is not None else None,
        'start_date': update_data.start_date,
        'start_time': update_data.start_time,
        'end_time': update_data.end_time,
        'capacity': update_data.capacity,
        'is_active': update_data.is_active,
    }
    _apply_field_updates(pattern, pattern_fields)

    if update_data.end_date is not None:
        pattern.end_date = update_data.end_date
        pattern.max_occurrences = None
    elif update_data.max_occurrences is not None:
        pattern.max_occurrences = update_data.max_occurrences
        pattern.end_date = None

    validate_pattern(pattern)
    _ensure_pattern_within_camp(pattern.camp, pattern)
    pattern.save()

    if regenerate and pattern.is_active:
        generate_sessions_from_pattern(pattern.id)

    return pattern


@transaction.atomic
def delete_recurrence_pattern(
    pattern: RecurrencePattern,
    cancel_future_sessions: bool = True,
    clock=system_clock
) -> int:
    """
    Delete a recurrence pattern.

    Sessions are never deleted: they keep their row (with the pattern link
    cleared) so registrations and attendance stay attached.

    Args:
        pattern: RecurrencePattern instance to delete
        cancel_future_sessions: If True, cancel upcoming untouched sessions
                                and delete the pattern;
                                If False, only deactivate the pattern
        clock: Source of today's date

    Returns:
        Number of sessions cancelled
    """
    if not cancel_future_sessions:
        pattern.is_active = False
        pattern.save()
        return 0

    cancelled = CampSession.objects.filter(
        recurrence_pattern=pattern,
        session_date__gte=clock.today(),
        is_exception=False,
        status=SESSION_SCHEDULED
    ).update(status=SESSION_CANCELLED)

    pattern_id = pattern.id
    pattern.delete()
    logger.info("Deleted recurrence pattern %s, cancelled %s upcoming sessions", pattern_id, cancelled)
    return cancelled


def _ensure_pattern_within_camp(camp: Camp, pattern) -> None:
    """Reject pattern bounds that leave the camp's date range."""
    if pattern.start_date < camp.start_date or pattern.start_date > camp.end_date:
        raise ScheduleConflictError(
            "Pattern start date must fall within the camp dates",
            field='start_date'
        )
    if pattern.end_date is not None and pattern.end_date > camp.end_date:
        raise ScheduleConflictError(
            "Pattern end date must not be after the camp end date",
            field='end_date'
        )
    if pattern.max_occurrences is not None:
        candidates = expand_candidate_dates(pattern)
        if candidates and candidates[-1] > camp.end_date:
            raise ScheduleConflictError(
                "Pattern occurrences run past the camp end date",
                field='max_occurrences'
            )


def _ensure_camp_active(camp: Camp) -> None:
    if camp.is_deleted:
        raise ScheduleConflictError("Camp has been deleted", field='camp')


# Camp sessions

@transaction.atomic
def create_one_time_session(
    camp: Camp,
    session_date: date,
    start_time: time,
    end_time: time,
    capacity: Optional[int] = None,
    notes: str = ''
) -> CampSession:
    """
    Create a session that does not belong to any pattern.

    Args:
        camp: Camp the session belongs to
        session_date: Date of the session
        start_time: Session start time
        end_time: Session end time
        capacity: Session capacity (None = camp capacity)
        notes: Free-form notes

    Returns:
        Created CampSession instance

    Raises:
        ScheduleValidationError: If start_time is not before end_time
        ScheduleConflictError: If the date is outside the camp dates
    """
    _ensure_camp_active(camp)
    _validate_times(start_time, end_time)
    _ensure_dates_within_camp(camp, [session_date])

    session = CampSession.objects.create(
        camp=camp,
        session_date=session_date,
        start_time=start_time,
        end_time=end_time,
        capacity=camp.capacity if capacity is None else capacity,
        status=SESSION_SCHEDULED,
        notes=notes
    )
    return session


@transaction.atomic
def update_session(
    session: CampSession,
    update_data: SessionUpdateData
) -> CampSession:
    """
    Update a camp session.

    Changing the times or capacity of a generated session marks it as an
    exception so later regenerations keep the staff edit.

    Args:
        session: CampSession instance to update
        update_data: SessionUpdateData with fields to update

    Returns:
        Updated CampSession instance

    Raises:
        ScheduleValidationError: If the resulting start time is not before end time
    """
    start_time = session.start_time if update_data.start_time is None else update_data.start_time
    end_time = session.end_time if update_data.end_time is None else update_data.end_time
    _validate_times(start_time, end_time)

    times_changed = (start_time, end_time) != (session.start_time, session.end_time)
    capacity_changed = update_data.capacity is not None and update_data.capacity != session.capacity

    fields_to_update = {
        'start_time': update_data.start_time,
        'end_time': update_data.end_time,
        'capacity': update_data.capacity,
        'notes': update_data.notes,
    }
    _apply_field_updates(session, fields_to_update)

    if (times_changed or capacity_changed) and not session.is_one_time:
        session.is_exception = True

    session.save()
    return session


@transaction.atomic
def cancel_session(session: CampSession) -> CampSession:
    """
    Cancel a camp session.

    Args:
        session: CampSession instance to cancel

    Returns:
        Updated CampSession instance

    Raises:
        ScheduleValidationError: If the session is already cancelled
    """
    if session.status == SESSION_CANCELLED:
        raise ScheduleValidationError("Session is already cancelled", field='status')

    session.status = SESSION_CANCELLED

    if not session.is_one_time:
        session.is_exception = True

    session.save()
    return session


def get_camp_sessions(
    camp: Camp,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    status: Optional[str] = None
) -> List[CampSession]:
    """
    Get a camp's sessions, optionally within a date range.

    Args:
        camp: Camp instance
        start_date: Range start (inclusive)
        end_date: Range end (inclusive)
        status: Optional status filter ('scheduled', 'cancelled')

    Returns:
        List of CampSession instances ordered by date and time

    Raises:
        ScheduleValidationError: If start_date is after end_date
    """
    if start_date and end_date and start_date > end_date:
        raise ScheduleValidationError("Start date must not be after end date", field='start')

    queryset = CampSession.objects.for_camp(camp).in_range(start_date, end_date)

    if status:
        queryset = queryset.filter(status=status)

    return list(queryset)


# Schedule exceptions

@transaction.atomic
def create_schedule_exception(
    camp: Camp,
    data: ExceptionData,
    clock=system_clock
) -> ScheduleException:
    """
    Create a schedule exception for one camp date.

    Sessions are not touched here; they pick the exception up on the next
    generation run.

    Args:
        camp: Camp the exception belongs to
        data: ExceptionData with the exception fields
        clock: Source of today's date

    Returns:
        Created ScheduleException instance

    Raises:
        PastExceptionDateError: If the date has passed
        ScheduleValidationError: If the type or times are invalid
        ScheduleConflictError: If the camp already has an exception that day,
                               or the date is outside the camp dates
    """
    _ensure_camp_active(camp)
    ensure_exception_modifiable(data.exception_date, clock)
    _validate_exception_fields(data.exception_type, data.start_time, data.end_time)
    _ensure_exception_date_available(camp, data.exception_date)

    start_time, end_time = data.start_time, data.end_time
    if data.exception_type not in EXCEPTION_TYPES_WITH_TIMES:
        start_time = end_time = None

    exception = ScheduleException.objects.create(
        camp=camp,
        exception_date=data.exception_date,
        exception_type=data.exception_type,
        start_time=start_time,
        end_time=end_time,
        reason=data.reason
    )
    logger.info(
        "Created %s exception %s for camp %s on %s",
        exception.exception_type, exception.id, camp.id, exception.exception_date
    )
    return exception


@transaction.atomic
def update_schedule_exception(
    exception: ScheduleException,
    update_data: ExceptionUpdateData,
    clock=system_clock
) -> ScheduleException:
    """
    Update a schedule exception.

    Both the current and the new date must not have passed.

    Args:
        exception: ScheduleException instance to update
        update_data: ExceptionUpdateData with fields to update
        clock: Source of today's date

    Returns:
        Updated ScheduleException instance

    Raises:
        PastExceptionDateError: If the current or new date has passed
        ScheduleValidationError: If the resulting type or times are invalid
        ScheduleConflictError: If the new date is taken or outside the camp dates
    """
    ensure_exception_modifiable(exception.exception_date, clock)

    new_date = update_data.exception_date
    if new_date is not None and new_date != exception.exception_date:
        ensure_exception_modifiable(new_date, clock)
        _ensure_exception_date_available(exception.camp, new_date, exclude_id=exception.id)

    was_add = exception.exception_type == EXCEPTION_ADD

    fields_to_update = {
        'exception_date': update_data.exception_date,
        'exception_type': update_data.exception_type,
        'start_time': update_data.start_time,
        'end_time': update_data.end_time,
        'reason': update_data.reason,
    }
    _apply_field_updates(exception, fields_to_update)

    _validate_exception_fields(exception.exception_type, exception.start_time, exception.end_time)
    if exception.exception_type not in EXCEPTION_TYPES_WITH_TIMES:
        exception.start_time = exception.end_time = None

    exception.save()

    if was_add and exception.exception_type != EXCEPTION_ADD:
        _cancel_added_session(exception)

    return exception


@transaction.atomic
def delete_schedule_exception(
    exception: ScheduleException,
    clock=system_clock
) -> None:
    """
    Delete a schedule exception.

    A session created for an ``add`` exception is cancelled, not deleted.

    Args:
        exception: ScheduleException instance to delete
        clock: Source of today's date

    Raises:
        PastExceptionDateError: If the exception date has passed
    """
    ensure_exception_modifiable(exception.exception_date, clock)

    if exception.exception_type == EXCEPTION_ADD:
        _cancel_added_session(exception)

    logger.info(
        "Deleting %s exception %s for camp %s on %s",
        exception.exception_type, exception.id, exception.camp_id, exception.exception_date
    )
    exception.delete()


def _cancel_added_session(exception: ScheduleException) -> None:
    """Cancel the untouched session created for an ``add`` exception."""
    CampSession.objects.filter(
        schedule_exception=exception,
        is_exception=False,
        status=SESSION_SCHEDULED
    ).update(status=SESSION_CANCELLED)


def _ensure_exception_date_available(camp: Camp, exception_date: date, exclude_id=None) -> None:
    """Reject dates outside the camp or already carrying an exception."""
    if not camp.covers(exception_date):
        raise ScheduleConflictError(
            "Exception date must fall within the camp dates",
            field='exception_date'
        )

    existing = ScheduleException.objects.for_camp(camp).filter(exception_date=exception_date)
    if exclude_id is not None:
        existing = existing.exclude(pk=exclude_id)
    if existing.exists():
        raise ScheduleConflictError(
            f"An exception already exists for {exception_date.isoformat()}",
            field='exception_date'
        )


def _validate_exception_fields(exception_type: str, start_time: Optional[time], end_time: Optional[time]) -> None:
    """Validate exception type and replacement times."""
    if exception_type not in EXCEPTION_TYPES:
        raise ScheduleValidationError(
            f"Exception type must be one of: {', '.join(EXCEPTION_TYPES)}",
            field='exception_type'
        )

    if exception_type in EXCEPTION_TYPES_WITH_TIMES:
        if start_time is None or end_time is None:
            raise ScheduleValidationError(
                "Start and end time are required for this exception type",
                field='start_time'
            )
        _validate_times(start_time, end_time)


def _validate_times(start_time: time, end_time: time) -> None:
    """Validate start time is before end time."""
    if start_time >= end_time:
        raise ScheduleValidationError("Start time must be before end time", field='end_time')


def _apply_field_updates(obj, fields: dict) -> None:
    """Apply field updates to object if values are not None (DRY helper)."""
    for field_name, value in fields.items():
        if value is not None:
            setattr(obj, field_name, value)
