"""
Management command to materialize camp sessions from recurrence patterns.

Safe to run repeatedly (e.g. nightly via cron): patterns that have not
changed produce no writes.
"""

from django.core.management.base import BaseCommand, CommandError

from scheduling import services
from scheduling.exceptions import SchedulingError
from scheduling.models import Camp, RecurrencePattern


class Command(BaseCommand):
    help = 'Generate camp sessions from active recurrence patterns'

    def add_arguments(self, parser):
        target = parser.add_mutually_exclusive_group()
        target.add_argument(
            '--pattern',
            type=int,
            help='Only generate sessions for this pattern id'
        )
        target.add_argument(
            '--camp',
            type=int,
            help='Only generate sessions for the active patterns of this camp id'
        )

    def handle(self, *args, **options):
        try:
            if options['pattern'] is not None:
                total_created = self._generate_pattern(options['pattern'])
            elif options['camp'] is not None:
                total_created = self._generate_camp(options['camp'])
            else:
                self.stdout.write('Generating sessions for all active camps...')
                total_created = services.generate_sessions_for_all_camps()
        except SchedulingError as exc:
            raise CommandError(exc.message)

        self.stdout.write(
            self.style.SUCCESS(
                f'Successfully generated {total_created} new session(s)'
            )
        )

    def _generate_pattern(self, pattern_id):
        if not RecurrencePattern.objects.filter(pk=pattern_id).exists():
            raise CommandError(f'Pattern {pattern_id} does not exist')

        self.stdout.write(f'Generating sessions for pattern {pattern_id}...')
        summary = services.summarize_pattern_generation(pattern_id)
        if summary.changed:
            self.stdout.write(
                f'{summary.updated} updated, {summary.cancelled} cancelled, '
                f'{summary.unchanged} unchanged'
            )
        return summary.created

    def _generate_camp(self, camp_id):
        camp = Camp.objects.active().filter(pk=camp_id).first()
        if camp is None:
            raise CommandError(f'Camp {camp_id} does not exist')

        self.stdout.write(f'Generating sessions for camp "{camp.name}"...')
        summaries = services.generate_sessions_for_camp(camp)
        for summary in summaries:
            if summary.error:
                self.stderr.write(
                    self.style.WARNING(f'Skipped pattern {summary.pattern_id}: {summary.error}')
                )
        return sum(summary.created for summary in summaries)
