"""Tests for the generate_sessions management command."""

from datetime import date, time
from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from scheduling.models import Camp, CampSession, Organization, RecurrencePattern


class GenerateSessionsCommandTests(TestCase):
    """Test the generate_sessions command."""

    def setUp(self):
        organization = Organization.objects.create(name="Riverside Soccer")
        self.camp = Camp.objects.create(
            organization=organization,
            name="Summer Camp",
            start_date=date(2024, 6, 1),
            end_date=date(2024, 8, 31),
            capacity=24
        )
        self.pattern = RecurrencePattern.objects.create(
            camp=self.camp,
            frequency='weekly',
            weekdays=[1, 3],
            start_date=date(2024, 6, 4),
            end_date=date(2024, 6, 20),
            start_time=time(9, 0),
            end_time=time(11, 0)
        )

    def test_generate_all(self):
        """Test generating for every camp."""
        out = StringIO()

        call_command('generate_sessions', stdout=out)

        self.assertIn('Successfully generated 6 new session(s)', out.getvalue())
        self.assertEqual(CampSession.objects.count(), 6)

    def test_generate_is_repeatable(self):
        """Test a second run creates nothing."""
        call_command('generate_sessions', stdout=StringIO())
        out = StringIO()

        call_command('generate_sessions', stdout=out)

        self.assertIn('Successfully generated 0 new session(s)', out.getvalue())
        self.assertEqual(CampSession.objects.count(), 6)

    def test_generate_single_pattern(self):
        """Test --pattern."""
        out = StringIO()

        call_command('generate_sessions', pattern=self.pattern.id, stdout=out)

        self.assertIn('Successfully generated 6 new session(s)', out.getvalue())

    def test_generate_single_camp(self):
        """Test --camp."""
        out = StringIO()

        call_command('generate_sessions', camp=self.camp.id, stdout=out)

        self.assertIn('Summer Camp', out.getvalue())
        self.assertEqual(CampSession.objects.count(), 6)

    def test_unknown_pattern(self):
        """Test a missing pattern id is a command error."""
        with self.assertRaises(CommandError):
            call_command('generate_sessions', pattern=9999, stdout=StringIO())

    def test_failing_pattern_does_not_stop_run(self):
        """Test a pattern running past the camp is reported and skipped."""
        broken = RecurrencePattern.objects.create(
            camp=self.camp,
            frequency='daily',
            start_date=date(2024, 6, 4),
            max_occurrences=200,
            start_time=time(9, 0),
            end_time=time(11, 0)
        )
        out, err = StringIO(), StringIO()

        call_command('generate_sessions', camp=self.camp.id, stdout=out, stderr=err)

        self.assertIn('Successfully generated 6 new session(s)', out.getvalue())
        self.assertIn(f'Skipped pattern {broken.id}', err.getvalue())
        self.assertFalse(CampSession.objects.for_pattern(broken).exists())
