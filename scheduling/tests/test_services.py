"""
Tests for the scheduling service layer.

Dates are fixed in June 2024; every call that depends on "today" gets a
FixedClock.
"""

from datetime import date, time

from django.test import TestCase

from scheduling import services
from scheduling.clock import FixedClock
from scheduling.exceptions import (
    PastExceptionDateError,
    PatternValidationError,
    ScheduleConflictError,
    ScheduleValidationError,
)
from scheduling.models import Camp, CampSession, Organization, RecurrencePattern, ScheduleException
from scheduling.types import (
    ExceptionData,
    ExceptionUpdateData,
    PatternData,
    PatternUpdateData,
    SessionUpdateData,
)

JUNE_1 = FixedClock(date(2024, 6, 1))


def tue_thu_pattern(**overrides):
    values = {
        'name': 'Morning skills',
        'frequency': 'weekly',
        'weekdays': [1, 3],
        'start_date': date(2024, 6, 4),
        'end_date': date(2024, 6, 20),
        'start_time': time(9, 0),
        'end_time': time(11, 0),
    }
    values.update(overrides)
    return PatternData(**values)


class SchedulingServiceTestCase(TestCase):

    def setUp(self):
        self.organization = Organization.objects.create(name="Riverside Soccer")
        self.camp = Camp.objects.create(
            organization=self.organization,
            name="Summer Camp",
            start_date=date(2024, 6, 1),
            end_date=date(2024, 8, 31),
            capacity=24
        )

    def create_pattern(self, generate=False, **overrides):
        pattern, _ = services.create_recurrence_pattern(
            self.camp,
            tue_thu_pattern(**overrides),
            generate_sessions=generate
        )
        return pattern

    def add_exception(self, day, exception_type, start=None, end=None, clock=JUNE_1):
        return services.create_schedule_exception(
            self.camp,
            ExceptionData(
                exception_date=day,
                exception_type=exception_type,
                start_time=start,
                end_time=end
            ),
            clock=clock
        )

    def sessions_by_date(self, sessions):
        return {session.session_date: session for session in sessions}


class GenerateSessionsTests(SchedulingServiceTestCase):
    """Test generate_sessions_from_pattern."""

    def test_generates_one_session_per_candidate(self):
        """Test the Tue/Thu pattern materializes six sessions."""
        pattern = self.create_pattern()

        sessions = services.generate_sessions_from_pattern(pattern.id)

        self.assertEqual([session.session_date for session in sessions], [
            date(2024, 6, 4), date(2024, 6, 6), date(2024, 6, 11),
            date(2024, 6, 13), date(2024, 6, 18), date(2024, 6, 20),
        ])
        for session in sessions:
            self.assertEqual(session.start_time, time(9, 0))
            self.assertEqual(session.end_time, time(11, 0))
            self.assertEqual(session.capacity, 24)
            self.assertEqual(session.status, 'scheduled')
            self.assertEqual(session.recurrence_pattern_id, pattern.id)

    def test_pattern_capacity_overrides_camp(self):
        """Test pattern capacity is used for generated sessions."""
        pattern = self.create_pattern(capacity=12)

        sessions = services.generate_sessions_from_pattern(pattern.id)

        self.assertTrue(all(session.capacity == 12 for session in sessions))

    def test_pattern_capacity_change_reaches_sessions(self):
        """Test changing the pattern capacity updates generated sessions."""
        pattern = self.create_pattern(generate=True)

        services.update_recurrence_pattern(pattern, PatternUpdateData(capacity=10))

        capacities = set(CampSession.objects.for_pattern(pattern).values_list('capacity', flat=True))
        self.assertEqual(capacities, {10})

    def test_staff_capacity_edit_survives_pattern_change(self):
        """Test a session whose capacity staff changed keeps it."""
        pattern = self.create_pattern(generate=True)
        session = CampSession.objects.for_pattern(pattern).get(session_date=date(2024, 6, 11))
        services.update_session(session, SessionUpdateData(capacity=30))

        services.update_recurrence_pattern(pattern, PatternUpdateData(capacity=10))

        session.refresh_from_db()
        self.assertTrue(session.is_exception)
        self.assertEqual(session.capacity, 30)
        others = CampSession.objects.for_pattern(pattern).exclude(pk=session.pk)
        self.assertTrue(all(other.capacity == 10 for other in others))

    def test_create_pattern_generates_by_default(self):
        """Test creating a pattern materializes its sessions."""
        pattern, sessions = services.create_recurrence_pattern(self.camp, tue_thu_pattern())

        self.assertEqual(len(sessions), 6)
        self.assertEqual(pattern.weekdays, [1, 3])

    def test_regeneration_is_idempotent(self):
        """Test regenerating twice keeps the same rows untouched."""
        pattern = self.create_pattern()
        first = services.generate_sessions_from_pattern(pattern.id)

        second = services.generate_sessions_from_pattern(pattern.id)

        self.assertEqual(
            [(s.id, s.session_date, s.start_time, s.end_time, s.status, s.updated_at) for s in first],
            [(s.id, s.session_date, s.start_time, s.end_time, s.status, s.updated_at) for s in second]
        )
        self.assertEqual(CampSession.objects.count(), 6)

    def test_cancel_and_time_change_scenario(self):
        """Test cancel on 06-11 and time change on 06-13 before generation."""
        pattern = self.create_pattern()
        self.add_exception(date(2024, 6, 11), 'cancel')
        self.add_exception(date(2024, 6, 13), 'time_change', time(14, 0), time(16, 0))

        sessions = self.sessions_by_date(services.generate_sessions_from_pattern(pattern.id))

        self.assertEqual(len(sessions), 5)
        self.assertNotIn(date(2024, 6, 11), sessions)
        changed = sessions[date(2024, 6, 13)]
        self.assertEqual((changed.start_time, changed.end_time), (time(14, 0), time(16, 0)))
        for day, session in sessions.items():
            if day != date(2024, 6, 13):
                self.assertEqual((session.start_time, session.end_time), (time(9, 0), time(11, 0)))

    def test_cancel_after_generation_flips_status(self):
        """Test a cancel exception keeps the row and marks it cancelled."""
        pattern = self.create_pattern()
        before = self.sessions_by_date(services.generate_sessions_from_pattern(pattern.id))
        self.add_exception(date(2024, 6, 11), 'cancel')

        after = self.sessions_by_date(services.generate_sessions_from_pattern(pattern.id))

        self.assertEqual(len(after), 6)
        cancelled = after[date(2024, 6, 11)]
        self.assertEqual(cancelled.id, before[date(2024, 6, 11)].id)
        self.assertEqual(cancelled.status, 'cancelled')
        self.assertEqual(
            [day for day, session in after.items() if session.status == 'scheduled'],
            [date(2024, 6, 4), date(2024, 6, 6), date(2024, 6, 13), date(2024, 6, 18), date(2024, 6, 20)]
        )

    def test_time_change_after_generation_updates_in_place(self):
        """Test a time change updates the existing session row."""
        pattern = self.create_pattern()
        before = self.sessions_by_date(services.generate_sessions_from_pattern(pattern.id))
        self.add_exception(date(2024, 6, 13), 'time_change', time(14, 0), time(16, 0))

        after = self.sessions_by_date(services.generate_sessions_from_pattern(pattern.id))

        session = after[date(2024, 6, 13)]
        self.assertEqual(session.id, before[date(2024, 6, 13)].id)
        self.assertEqual((session.start_time, session.end_time), (time(14, 0), time(16, 0)))

    def test_deleting_cancel_exception_restores_session(self):
        """Test removing a cancel exception schedules the session again."""
        pattern = self.create_pattern()
        services.generate_sessions_from_pattern(pattern.id)
        exception = self.add_exception(date(2024, 6, 11), 'cancel')
        services.generate_sessions_from_pattern(pattern.id)

        services.delete_schedule_exception(exception, clock=JUNE_1)
        sessions = self.sessions_by_date(services.generate_sessions_from_pattern(pattern.id))

        self.assertEqual(sessions[date(2024, 6, 11)].status, 'scheduled')

    def test_add_exception_creates_extra_session(self):
        """Test an add exception on a Saturday yields one extra session."""
        pattern = self.create_pattern()
        exception = self.add_exception(date(2024, 6, 8), 'add', time(10, 0), time(12, 0))

        sessions = self.sessions_by_date(services.generate_sessions_from_pattern(pattern.id))
        services.generate_sessions_from_pattern(pattern.id)

        self.assertEqual(len(sessions), 7)
        added = sessions[date(2024, 6, 8)]
        self.assertIsNone(added.recurrence_pattern_id)
        self.assertEqual(added.schedule_exception_id, exception.id)
        self.assertEqual((added.start_time, added.end_time), (time(10, 0), time(12, 0)))
        self.assertEqual(CampSession.objects.filter(schedule_exception=exception).count(), 1)

    def test_pattern_extended_over_add_date_keeps_one_session(self):
        """Test an add session is cancelled once the pattern produces its date."""
        pattern = self.create_pattern()
        exception = self.add_exception(date(2024, 6, 25), 'add', time(13, 0), time(15, 0))
        services.generate_sessions_from_pattern(pattern.id)

        services.update_recurrence_pattern(pattern, PatternUpdateData(end_date=date(2024, 6, 27)))

        scheduled = CampSession.objects.filter(session_date=date(2024, 6, 25), status='scheduled')
        self.assertEqual(scheduled.count(), 1)
        self.assertEqual(scheduled.get().recurrence_pattern_id, pattern.id)
        added = CampSession.objects.get(schedule_exception=exception)
        self.assertEqual(added.status, 'cancelled')

        services.update_recurrence_pattern(pattern, PatternUpdateData(end_date=date(2024, 6, 20)))

        added.refresh_from_db()
        self.assertEqual(added.status, 'scheduled')
        self.assertEqual(
            CampSession.objects.filter(session_date=date(2024, 6, 25), status='scheduled').get(),
            added
        )

    def test_add_date_produced_by_other_pattern(self):
        """Test an add session yields to any active pattern of the camp."""
        mornings = self.create_pattern()
        mondays = self.create_pattern(name='Evenings', weekdays=[0], start_time=time(17, 0), end_time=time(18, 0))
        exception = self.add_exception(date(2024, 6, 10), 'add', time(13, 0), time(15, 0))
        services.generate_sessions_from_pattern(mornings.id)

        services.generate_sessions_from_pattern(mondays.id)
        summary = services.summarize_pattern_generation(mornings.id)

        scheduled = CampSession.objects.filter(session_date=date(2024, 6, 10), status='scheduled')
        self.assertEqual(scheduled.get().recurrence_pattern_id, mondays.id)
        self.assertEqual(CampSession.objects.get(schedule_exception=exception).status, 'cancelled')
        self.assertEqual(summary.changed, 0)

    def test_shortened_pattern_cancels_orphans(self):
        """Test sessions no longer produced by the pattern are cancelled."""
        pattern = self.create_pattern()
        services.generate_sessions_from_pattern(pattern.id)

        services.update_recurrence_pattern(pattern, PatternUpdateData(end_date=date(2024, 6, 13)))

        statuses = dict(CampSession.objects.for_pattern(pattern).values_list('session_date', 'status'))
        self.assertEqual(statuses[date(2024, 6, 18)], 'cancelled')
        self.assertEqual(statuses[date(2024, 6, 20)], 'cancelled')
        self.assertEqual(statuses[date(2024, 6, 13)], 'scheduled')
        self.assertEqual(len(statuses), 6)

    def test_staff_edit_survives_regeneration(self):
        """Test a session edited by staff keeps its times."""
        pattern = self.create_pattern()
        sessions = self.sessions_by_date(services.generate_sessions_from_pattern(pattern.id))
        services.update_session(
            sessions[date(2024, 6, 6)],
            SessionUpdateData(start_time=time(8, 0), end_time=time(10, 0))
        )

        services.update_recurrence_pattern(pattern, PatternUpdateData(start_time=time(9, 30)))

        refreshed = self.sessions_by_date(CampSession.objects.for_pattern(pattern))
        self.assertEqual(refreshed[date(2024, 6, 6)].start_time, time(8, 0))
        self.assertTrue(refreshed[date(2024, 6, 6)].is_exception)
        self.assertEqual(refreshed[date(2024, 6, 4)].start_time, time(9, 30))

    def test_session_outside_camp_rejected(self):
        """Test a count-terminated pattern running past the camp is rejected."""
        self.camp.end_date = date(2024, 6, 15)
        self.camp.save()

        with self.assertRaises(ScheduleConflictError):
            services.create_recurrence_pattern(
                self.camp,
                tue_thu_pattern(end_date=None, max_occurrences=10)
            )

        self.assertFalse(RecurrencePattern.objects.exists())
        self.assertFalse(CampSession.objects.exists())

    def test_pattern_end_after_camp_rejected(self):
        """Test pattern bounds must stay inside the camp."""
        with self.assertRaises(ScheduleConflictError):
            self.create_pattern(end_date=date(2024, 9, 30))

    def test_malformed_pattern_rejected(self):
        """Test validation happens before anything is written."""
        with self.assertRaises(PatternValidationError):
            self.create_pattern(weekdays=[])

        self.assertFalse(RecurrencePattern.objects.exists())

    def test_deleted_camp_rejected(self):
        """Test generation for a soft-deleted camp."""
        pattern = self.create_pattern()
        Camp.objects.filter(pk=self.camp.pk).update(is_deleted=True)

        with self.assertRaises(ScheduleConflictError):
            services.generate_sessions_from_pattern(pattern.id)

    def test_inactive_pattern_left_alone(self):
        """Test an inactive pattern returns its sessions without changes."""
        pattern = self.create_pattern(generate=True)
        services.update_recurrence_pattern(
            pattern,
            PatternUpdateData(is_active=False, end_date=date(2024, 6, 6))
        )

        sessions = services.generate_sessions_from_pattern(pattern.id)

        self.assertEqual(len(sessions), 6)
        self.assertTrue(all(session.status == 'scheduled' for session in sessions))

    def test_generate_for_camp_summaries(self):
        """Test generating every active pattern of a camp."""
        self.create_pattern()
        self.create_pattern(name='Evenings', weekdays=[0], start_time=time(17, 0), end_time=time(18, 0))

        summaries = services.generate_sessions_for_camp(self.camp)

        self.assertEqual(sorted(summary.created for summary in summaries), [2, 6])
        again = services.generate_sessions_for_camp(self.camp)
        self.assertTrue(all(summary.changed == 0 for summary in again))

    def test_generate_for_all_camps(self):
        """Test the total created across camps."""
        self.create_pattern()

        self.assertEqual(services.generate_sessions_for_all_camps(), 6)
        self.assertEqual(services.generate_sessions_for_all_camps(), 0)

    def test_count_pattern_past_camp_rejected(self):
        """Test a count-bounded pattern whose last date is after the camp fails."""
        with self.assertRaises(ScheduleConflictError) as ctx:
            self.create_pattern(frequency='daily', weekdays=[], end_date=None, max_occurrences=200)

        self.assertEqual(ctx.exception.field, 'max_occurrences')
        self.assertFalse(RecurrencePattern.objects.exists())

    def test_generate_for_all_camps_skips_failing_pattern(self):
        """Test one pattern running past the camp does not stop the batch."""
        broken = RecurrencePattern.objects.create(
            camp=self.camp,
            frequency='daily',
            start_date=date(2024, 6, 4),
            max_occurrences=200,
            start_time=time(9, 0),
            end_time=time(11, 0)
        )
        self.create_pattern(name='July week', frequency='daily', weekdays=[],
                            start_date=date(2024, 7, 1), end_date=date(2024, 7, 11))

        self.assertEqual(services.generate_sessions_for_all_camps(), 11)
        self.assertFalse(CampSession.objects.for_pattern(broken).exists())

        summaries = {summary.pattern_id: summary for summary in services.generate_sessions_for_camp(self.camp)}
        self.assertIn('camp', summaries[broken.id].error)
        self.assertEqual(summaries[broken.id].created, 0)

    def test_preview(self):
        """Test previewing dates of an unsaved pattern."""
        dates = services.preview_candidate_dates(tue_thu_pattern())

        self.assertEqual(len(dates), 6)
        self.assertFalse(RecurrencePattern.objects.exists())


class RecurrencePatternServiceTests(SchedulingServiceTestCase):
    """Test pattern update and deletion."""

    def test_switch_to_count_termination(self):
        """Test setting max_occurrences clears end_date."""
        pattern = self.create_pattern()

        services.update_recurrence_pattern(pattern, PatternUpdateData(max_occurrences=2), regenerate=False)

        pattern.refresh_from_db()
        self.assertIsNone(pattern.end_date)
        self.assertEqual(pattern.max_occurrences, 2)

    def test_delete_cancels_future_sessions(self):
        """Test deleting a pattern cancels upcoming sessions and keeps rows."""
        pattern = self.create_pattern(generate=True)

        cancelled = services.delete_recurrence_pattern(pattern, clock=FixedClock(date(2024, 6, 10)))

        self.assertEqual(cancelled, 4)
        self.assertFalse(RecurrencePattern.objects.exists())
        statuses = dict(CampSession.objects.values_list('session_date', 'status'))
        self.assertEqual(statuses[date(2024, 6, 4)], 'scheduled')
        self.assertEqual(statuses[date(2024, 6, 6)], 'scheduled')
        self.assertEqual(statuses[date(2024, 6, 11)], 'cancelled')
        self.assertFalse(CampSession.objects.filter(recurrence_pattern__isnull=False).exists())

    def test_delete_without_cancel_deactivates(self):
        """Test cancel_future_sessions=False only deactivates the pattern."""
        pattern = self.create_pattern(generate=True)

        cancelled = services.delete_recurrence_pattern(pattern, cancel_future_sessions=False)

        pattern.refresh_from_db()
        self.assertEqual(cancelled, 0)
        self.assertFalse(pattern.is_active)
        self.assertEqual(CampSession.objects.scheduled().count(), 6)


class CampSessionServiceTests(SchedulingServiceTestCase):
    """Test direct session operations."""

    def test_create_one_time_session(self):
        """Test a one-time session uses the camp capacity."""
        session = services.create_one_time_session(
            self.camp, date(2024, 7, 1), time(13, 0), time(15, 0)
        )

        self.assertTrue(session.is_one_time)
        self.assertEqual(session.capacity, 24)

    def test_one_time_session_outside_camp(self):
        """Test one-time sessions must fall inside the camp."""
        with self.assertRaises(ScheduleConflictError):
            services.create_one_time_session(
                self.camp, date(2024, 9, 1), time(13, 0), time(15, 0)
            )

    def test_update_session_rejects_bad_times(self):
        """Test the resulting times are validated."""
        session = services.create_one_time_session(
            self.camp, date(2024, 7, 1), time(13, 0), time(15, 0)
        )

        with self.assertRaises(ScheduleValidationError):
            services.update_session(session, SessionUpdateData(start_time=time(16, 0)))

    def test_update_one_time_session_not_marked(self):
        """Test one-time sessions are never flagged as exceptions."""
        session = services.create_one_time_session(
            self.camp, date(2024, 7, 1), time(13, 0), time(15, 0)
        )

        services.update_session(session, SessionUpdateData(start_time=time(12, 0)))

        self.assertFalse(session.is_exception)

    def test_cancel_session(self):
        """Test cancelling a generated session marks it as an exception."""
        pattern = self.create_pattern(generate=True)
        session = CampSession.objects.for_pattern(pattern).first()

        services.cancel_session(session)

        session.refresh_from_db()
        self.assertEqual(session.status, 'cancelled')
        self.assertTrue(session.is_exception)
        with self.assertRaises(ScheduleValidationError):
            services.cancel_session(session)

    def test_get_camp_sessions_range(self):
        """Test filtering a camp's sessions by date and status."""
        self.create_pattern(generate=True)

        sessions = services.get_camp_sessions(self.camp, date(2024, 6, 6), date(2024, 6, 13))

        self.assertEqual(len(sessions), 3)
        self.assertEqual(services.get_camp_sessions(self.camp, status='cancelled'), [])
        with self.assertRaises(ScheduleValidationError):
            services.get_camp_sessions(self.camp, date(2024, 6, 13), date(2024, 6, 6))


class ScheduleExceptionServiceTests(SchedulingServiceTestCase):
    """Test exception operations and the past-date guard."""

    def test_past_date_rejected(self):
        """Test exceptions cannot be created for a past date."""
        with self.assertRaises(PastExceptionDateError):
            self.add_exception(date(2024, 6, 5), 'cancel', clock=FixedClock(date(2024, 6, 10)))

    def test_today_allowed(self):
        """Test today counts as modifiable."""
        exception = self.add_exception(date(2024, 6, 10), 'cancel', clock=FixedClock(date(2024, 6, 10)))

        self.assertEqual(exception.exception_date, date(2024, 6, 10))

    def test_update_past_exception_rejected(self):
        """Test exceptions whose date has passed cannot be edited."""
        exception = self.add_exception(date(2024, 6, 5), 'cancel')

        with self.assertRaises(PastExceptionDateError):
            services.update_schedule_exception(
                exception,
                ExceptionUpdateData(reason='Rain'),
                clock=FixedClock(date(2024, 6, 6))
            )

    def test_move_exception_to_past_rejected(self):
        """Test an exception cannot be moved onto a past date."""
        exception = self.add_exception(date(2024, 6, 20), 'cancel')

        with self.assertRaises(PastExceptionDateError):
            services.update_schedule_exception(
                exception,
                ExceptionUpdateData(exception_date=date(2024, 6, 5)),
                clock=FixedClock(date(2024, 6, 10))
            )

    def test_delete_past_exception_rejected(self):
        """Test exceptions whose date has passed cannot be deleted."""
        exception = self.add_exception(date(2024, 6, 5), 'cancel')

        with self.assertRaises(PastExceptionDateError):
            services.delete_schedule_exception(exception, clock=FixedClock(date(2024, 6, 6)))

        self.assertTrue(ScheduleException.objects.filter(pk=exception.pk).exists())

    def test_one_exception_per_date(self):
        """Test a second exception on the same date conflicts."""
        self.add_exception(date(2024, 6, 11), 'cancel')

        with self.assertRaises(ScheduleConflictError):
            self.add_exception(date(2024, 6, 11), 'time_change', time(14, 0), time(16, 0))

    def test_times_required_for_time_change(self):
        """Test time_change without times is rejected at creation."""
        with self.assertRaises(ScheduleValidationError):
            self.add_exception(date(2024, 6, 13), 'time_change')

    def test_cancel_drops_times(self):
        """Test a cancel exception never stores replacement times."""
        exception = self.add_exception(date(2024, 6, 11), 'cancel', time(9, 0), time(10, 0))

        self.assertIsNone(exception.start_time)
        self.assertIsNone(exception.end_time)

    def test_exception_outside_camp(self):
        """Test the date must fall inside the camp."""
        with self.assertRaises(ScheduleConflictError):
            self.add_exception(date(2024, 9, 2), 'cancel')

    def test_delete_add_exception_cancels_session(self):
        """Test the session of a removed add exception is cancelled."""
        pattern = self.create_pattern()
        exception = self.add_exception(date(2024, 6, 8), 'add', time(10, 0), time(12, 0))
        services.generate_sessions_from_pattern(pattern.id)
        added = CampSession.objects.get(schedule_exception=exception)

        services.delete_schedule_exception(exception, clock=JUNE_1)

        added.refresh_from_db()
        self.assertEqual(added.status, 'cancelled')
        self.assertIsNone(added.schedule_exception_id)

    def test_changing_add_to_cancel_cancels_session(self):
        """Test an add exception turned into a cancel drops its session."""
        pattern = self.create_pattern()
        exception = self.add_exception(date(2024, 6, 8), 'add', time(10, 0), time(12, 0))
        services.generate_sessions_from_pattern(pattern.id)

        services.update_schedule_exception(
            exception,
            ExceptionUpdateData(exception_type='cancel'),
            clock=JUNE_1
        )

        added = CampSession.objects.get(schedule_exception=exception)
        self.assertEqual(added.status, 'cancelled')
        self.assertIsNone(exception.start_time)
