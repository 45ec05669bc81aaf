"""
Reconciliation of candidate dates with a pattern's existing sessions.

The planner is pure: it compares what the pattern and the camp's schedule
exceptions say should exist with the rows that already exist, and returns
the creates and updates needed. The service layer applies the plan.

Rules:
- ``cancel`` exception: nothing is created; an existing session is flipped
  to cancelled, never deleted.
- ``time_change`` exception: its times replace the pattern defaults.
- ``add`` exception on a date no pattern produces: one extra one-off session
  linked to the exception. Once a pattern produces that date, the extra
  session is cancelled.
- Sessions staff edited after materialization (``is_exception``) keep their
  own times, capacity and status; only a cancel exception still applies to
  them.
- Pattern sessions whose date is no longer a candidate are cancelled.
"""

from dataclasses import dataclass, field
from datetime import date, time
from typing import Any, Dict, Iterable, List, Optional

from .types import (
    EXCEPTION_ADD,
    EXCEPTION_CANCEL,
    EXCEPTION_TIME_CHANGE,
    SESSION_CANCELLED,
    SESSION_SCHEDULED,
)


@dataclass
class SessionDraft:
    """A session that does not exist yet."""
    session_date: date
    start_time: time
    end_time: time
    status: str = SESSION_SCHEDULED
    schedule_exception_id: Optional[int] = None
    capacity: Optional[int] = None


@dataclass
class SessionChange:
    """Field changes for an existing session."""
    session: Any
    changes: Dict[str, Any]


@dataclass
class SessionPlan:
    """Outcome of reconciling one pattern."""
    to_create: List[SessionDraft] = field(default_factory=list)
    to_update: List[SessionChange] = field(default_factory=list)
    unchanged: List[Any] = field(default_factory=list)

    @property
    def cancelled_count(self):
        return sum(
            1 for change in self.to_update
            if change.changes.get('status') == SESSION_CANCELLED
        )


def plan_sessions(
    candidate_dates: Iterable[date],
    default_start_time: time,
    default_end_time: time,
    existing_sessions: Iterable[Any],
    exceptions: Iterable[Any],
    capacity: Optional[int] = None,
    covered_dates: Iterable[date] = (),
) -> SessionPlan:
    """
    Decide which sessions to create or update for one pattern.

    Args:
        candidate_dates: Output of expand_candidate_dates
        default_start_time: Pattern default start time
        default_end_time: Pattern default end time
        existing_sessions: The pattern's sessions plus every session created
            for the camp's ``add`` exceptions
        exceptions: All schedule exceptions of the camp
        capacity: Capacity of the pattern's sessions; None leaves existing
            capacities alone
        covered_dates: Dates other patterns of the camp already hold a
            scheduled session on

    Returns:
        SessionPlan describing creates and in-place updates
    """
    candidates = list(dict.fromkeys(candidate_dates))
    candidate_set = set(candidates)
    produced = candidate_set | set(covered_dates)
    exceptions_by_date = {exc.exception_date: exc for exc in exceptions}

    pattern_sessions = {}
    added_sessions = {}
    for session in existing_sessions:
        if session.schedule_exception_id is not None:
            added_sessions[session.schedule_exception_id] = session
        else:
            pattern_sessions[session.session_date] = session

    plan = SessionPlan()

    for candidate in candidates:
        exception = exceptions_by_date.get(candidate)
        existing = pattern_sessions.get(candidate)

        if exception is not None and exception.exception_type == EXCEPTION_CANCEL:
            if existing is not None:
                _reconcile(plan, existing, {'status': SESSION_CANCELLED})
            continue

        start_time, end_time = default_start_time, default_end_time
        if exception is not None and exception.exception_type == EXCEPTION_TIME_CHANGE:
            start_time, end_time = exception.start_time, exception.end_time

        if existing is None:
            plan.to_create.append(SessionDraft(candidate, start_time, end_time, capacity=capacity))
        elif existing.is_exception:
            plan.unchanged.append(existing)
        else:
            wanted = {
                'start_time': start_time,
                'end_time': end_time,
                'status': SESSION_SCHEDULED,
            }
            if capacity is not None:
                wanted['capacity'] = capacity
            _reconcile(plan, existing, wanted)

    for exception in exceptions_by_date.values():
        if exception.exception_type != EXCEPTION_ADD:
            continue

        existing = added_sessions.get(exception.id)
        if exception.exception_date in produced:
            if existing is not None:
                _retire(plan, existing)
            continue

        if existing is None:
            plan.to_create.append(SessionDraft(
                exception.exception_date,
                exception.start_time,
                exception.end_time,
                schedule_exception_id=exception.id,
            ))
        elif existing.is_exception:
            plan.unchanged.append(existing)
        else:
            _reconcile(plan, existing, {
                'session_date': exception.exception_date,
                'start_time': exception.start_time,
                'end_time': exception.end_time,
                'status': SESSION_SCHEDULED,
            })

    for session_date, session in pattern_sessions.items():
        if session_date not in candidate_set:
            _retire(plan, session)

    return plan


def _retire(plan: SessionPlan, session) -> None:
    """Cancel a session that should no longer run, unless staff own it."""
    if session.is_exception or session.status == SESSION_CANCELLED:
        plan.unchanged.append(session)
    else:
        plan.to_update.append(SessionChange(session, {'status': SESSION_CANCELLED}))


def _reconcile(plan: SessionPlan, session, wanted: Dict[str, Any]) -> None:
    """Record only the fields whose value differs."""
    changes = {
        name: value for name, value in wanted.items()
        if getattr(session, name) != value
    }
    if changes:
        plan.to_update.append(SessionChange(session, changes))
    else:
        plan.unchanged.append(session)
