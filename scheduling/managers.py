"""
Custom managers and querysets for scheduling models.

QuerySets define chainable query methods.
Managers use QuerySets to enable method chaining; the smaller models
use ``QuerySet.as_manager()`` directly.
No business logic should be here - only query operations.
"""

from django.db import models


class CampQuerySet(models.QuerySet):
    """Custom queryset for Camp model with chainable methods."""

    def active(self):
        """Get camps that have not been soft-deleted."""
        return self.filter(is_deleted=False)

    def for_organization(self, organization):
        """Get camps run by an organization."""
        return self.filter(organization=organization)


class RecurrencePatternQuerySet(models.QuerySet):
    """Custom queryset for RecurrencePattern model with chainable methods."""

    def active(self):
        """Get active patterns of camps that still exist."""
        return self.filter(is_active=True, camp__is_deleted=False)

    def for_camp(self, camp):
        """Get all patterns of a camp."""
        return self.filter(camp=camp)


class CampSessionQuerySet(models.QuerySet):
    """Custom queryset for CampSession model with chainable methods."""

    def scheduled(self):
        """Get sessions that are not cancelled."""
        return self.filter(status='scheduled')

    def cancelled(self):
        """Get cancelled sessions."""
        return self.filter(status='cancelled')

    def in_range(self, start_date, end_date):
        """
        Get sessions within a date range (both ends inclusive).

        Args:
            start_date: date object or None for no lower bound
            end_date: date object or None for no upper bound
        """
        queryset = self
        if start_date is not None:
            queryset = queryset.filter(session_date__gte=start_date)
        if end_date is not None:
            queryset = queryset.filter(session_date__lte=end_date)
        return queryset

    def for_camp(self, camp):
        """Get all sessions of a camp."""
        return self.filter(camp=camp)

    def for_pattern(self, pattern):
        """
        Get all sessions generated by a specific recurrence pattern.

        Args:
            pattern: RecurrencePattern instance
        """
        return self.filter(recurrence_pattern=pattern)

    def one_time(self):
        """Get sessions created outside any pattern or exception."""
        return self.filter(recurrence_pattern__isnull=True, schedule_exception__isnull=True)

    def added_by_exceptions(self):
        """Get one-off sessions created for ``add`` schedule exceptions."""
        return self.filter(schedule_exception__isnull=False)


class ScheduleExceptionQuerySet(models.QuerySet):
    """Custom queryset for ScheduleException model with chainable methods."""

    def for_camp(self, camp):
        """Get all exceptions of a camp."""
        return self.filter(camp=camp)


class RecurrencePatternManager(models.Manager):
    """Custom manager for RecurrencePattern model."""

    def get_queryset(self):
        """Return custom queryset for method chaining."""
        return RecurrencePatternQuerySet(self.model, using=self._db)

    def active(self):
        """Get active patterns of camps that still exist."""
        return self.get_queryset().active()

    def for_camp(self, camp):
        """Get all patterns of a camp."""
        return self.get_queryset().for_camp(camp)


class CampSessionManager(models.Manager):
    """Custom manager for CampSession model."""

    def get_queryset(self):
        """Return custom queryset for method chaining."""
        return CampSessionQuerySet(self.model, using=self._db)

    def scheduled(self):
        """Get sessions that are not cancelled."""
        return self.get_queryset().scheduled()

    def cancelled(self):
        """Get cancelled sessions."""
        return self.get_queryset().cancelled()

    def in_range(self, start_date, end_date):
        """Get sessions within a date range (both ends inclusive)."""
        return self.get_queryset().in_range(start_date, end_date)

    def for_camp(self, camp):
        """Get all sessions of a camp."""
        return self.get_queryset().for_camp(camp)

    def for_pattern(self, pattern):
        """Get all sessions generated by a specific recurrence pattern."""
        return self.get_queryset().for_pattern(pattern)

    def one_time(self):
        """Get sessions created outside any pattern or exception."""
        return self.get_queryset().one_time()

    def added_by_exceptions(self):
        """Get one-off sessions created for ``add`` schedule exceptions."""
        return self.get_queryset().added_by_exceptions()
