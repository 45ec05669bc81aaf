"""
Models for the camp scheduling system.

This implementation uses the Occurrence Materialization Pattern where:
- RecurrencePattern stores how a camp's sessions repeat
- ScheduleException stores one-off deviations for a single camp date
- CampSession stores ALL concrete sessions (generated, added and one-time)
"""

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from .exceptions import PatternValidationError
from .managers import (
    CampQuerySet,
    CampSessionManager,
    RecurrencePatternManager,
    ScheduleExceptionQuerySet,
)
from .recurrence import validate_pattern
from .types import EXCEPTION_TYPES_WITH_TIMES, WEEKDAY_NAMES


class Organization(models.Model):
    """A tenant that runs camps."""

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name


class OrganizationMember(models.Model):
    """Staff membership of a user in an organization."""

    ROLE_CHOICES = [
        ('camp_creator', 'Camp Creator'),
        ('manager', 'Manager'),
        ('coach', 'Coach'),
        ('volunteer', 'Volunteer'),
    ]

    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name='members'
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='organization_memberships'
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='manager')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['organization', 'user'],
                name='unique_organization_member'
            ),
        ]

    def __str__(self):
        return f"{self.user} ({self.get_role_display()}) @ {self.organization}"


class Camp(models.Model):
    """
    An organization-run program with a date range and capacity.

    Camps are soft-deleted: ``is_deleted`` hides them, rows are kept.
    """

    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name='camps'
    )
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')

    start_date = models.DateField(help_text="First day of the camp")
    end_date = models.DateField(help_text="Last day of the camp")
    capacity = models.PositiveIntegerField(help_text="Default capacity of every session")

    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CampQuerySet.as_manager()

    class Meta:
        ordering = ['start_date', 'name']
        indexes = [
            models.Index(fields=['organization', 'is_deleted'], name='camp_org_deleted_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.start_date} - {self.end_date})"

    def covers(self, day):
        """Check whether a date falls inside the camp's date range."""
        return self.start_date <= day <= self.end_date

    def clean(self):
        """Validate camp data."""
        super().clean()

        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError({
                'end_date': 'End date must not be before start date.'
            })


class RecurrencePattern(models.Model):
    """
    Stores how a camp's sessions repeat.

    Exactly one termination condition is set: ``end_date`` or
    ``max_occurrences``. Concrete sessions are stored in CampSession and
    are (re)materialized explicitly.
    """

    FREQUENCY_CHOICES = [
        ('daily', 'Daily'),
        ('weekly', 'Weekly'),
        ('biweekly', 'Every two weeks'),
        ('monthly', 'Monthly'),
    ]

    camp = models.ForeignKey(
        Camp,
        on_delete=models.CASCADE,
        related_name='recurrence_patterns'
    )
    name = models.CharField(max_length=200, blank=True, default='')

    frequency = models.CharField(
        max_length=20,
        choices=FREQUENCY_CHOICES,
        default='weekly'
    )
    interval = models.PositiveIntegerField(
        default=1,
        help_text="Number of frequency units between repetitions"
    )
    weekdays = models.JSONField(
        default=list,
        blank=True,
        help_text="Weekdays for weekly patterns (0=Monday, 6=Sunday)"
    )

    start_date = models.DateField(help_text="First date this pattern is active")
    end_date = models.DateField(
        null=True,
        blank=True,
        help_text="Last date this pattern is active (exclusive with max_occurrences)"
    )
    max_occurrences = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Number of candidate dates (exclusive with end_date)"
    )

    start_time = models.TimeField(help_text="Default session start time")
    end_time = models.TimeField(help_text="Default session end time")
    capacity = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Capacity of generated sessions (null = camp capacity)"
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether sessions are generated from this pattern"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = RecurrencePatternManager()

    class Meta:
        ordering = ['camp', 'start_date', 'start_time']
        indexes = [
            models.Index(fields=['camp', 'is_active'], name='pattern_camp_active_idx'),
        ]

    def __str__(self):
        label = self.name or self.get_frequency_display()
        return f"{label} - {self.camp.name}"

    @property
    def weekday_names(self):
        """Get human-readable weekday names."""
        return [WEEKDAY_NAMES[day] for day in sorted(self.weekdays or [])]

    @property
    def session_capacity(self):
        """Capacity given to sessions generated from this pattern."""
        if self.capacity is not None:
            return self.capacity
        return self.camp.capacity

    def clean(self):
        """Validate pattern data."""
        super().clean()

        if None in (self.start_date, self.start_time, self.end_time):
            return

        try:
            validate_pattern(self)
        except PatternValidationError as exc:
            raise ValidationError({exc.field or '__all__': exc.message})

    def save(self, *args, **kwargs):
        """Save with validation."""
        self.full_clean()
        super().save(*args, **kwargs)


class ScheduleException(models.Model):
    """
    A one-off deviation from a camp's schedule on a specific date.

    At most one exception exists per (camp, date).
    """

    EXCEPTION_TYPE_CHOICES = [
        ('cancel', 'Cancel'),
        ('time_change', 'Time change'),
        ('add', 'Additional session'),
    ]

    camp = models.ForeignKey(
        Camp,
        on_delete=models.CASCADE,
        related_name='schedule_exceptions'
    )
    exception_date = models.DateField()
    exception_type = models.CharField(max_length=20, choices=EXCEPTION_TYPE_CHOICES)

    start_time = models.TimeField(
        null=True,
        blank=True,
        help_text="Replacement start time (time_change and add only)"
    )
    end_time = models.TimeField(
        null=True,
        blank=True,
        help_text="Replacement end time (time_change and add only)"
    )
    reason = models.TextField(blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ScheduleExceptionQuerySet.as_manager()

    class Meta:
        ordering = ['exception_date']
        constraints = [
            models.UniqueConstraint(
                fields=['camp', 'exception_date'],
                name='unique_exception_per_camp_date'
            ),
        ]

    def __str__(self):
        return f"{self.get_exception_type_display()} on {self.exception_date} ({self.camp.name})"

    def clean(self):
        """Validate exception data."""
        super().clean()

        if self.exception_type in EXCEPTION_TYPES_WITH_TIMES:
            if self.start_time is None or self.end_time is None:
                raise ValidationError({
                    'start_time': 'Start and end time are required for this exception type.'
                })
            if self.start_time >= self.end_time:
                raise ValidationError({
                    'end_time': 'Start time must be before end time.'
                })

        if self.camp_id and self.exception_date and not self.camp.covers(self.exception_date):
            raise ValidationError({
                'exception_date': 'Date must fall within the camp dates.'
            })

    def save(self, *args, **kwargs):
        """Save with validation."""
        self.full_clean()
        super().save(*args, **kwargs)


class CampSession(models.Model):
    """
    Stores ALL concrete sessions of a camp.

    Generated sessions: recurrence_pattern is set
    Added sessions: schedule_exception points at the ``add`` exception
    One-time sessions: both are null
    """

    STATUS_CHOICES = [
        ('scheduled', 'Scheduled'),
        ('cancelled', 'Cancelled'),
    ]

    camp = models.ForeignKey(
        Camp,
        on_delete=models.CASCADE,
        related_name='sessions'
    )
    recurrence_pattern = models.ForeignKey(
        RecurrencePattern,
        on_delete=models.SET_NULL,
        related_name='sessions',
        null=True,
        blank=True,
        help_text="Pattern that generated this session"
    )
    schedule_exception = models.OneToOneField(
        ScheduleException,
        on_delete=models.SET_NULL,
        related_name='added_session',
        null=True,
        blank=True,
        help_text="The 'add' exception this session was created for"
    )

    session_date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()
    capacity = models.PositiveIntegerField()

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default='scheduled'
    )
    is_exception = models.BooleanField(
        default=False,
        help_text="True if staff modified this session after it was generated"
    )
    notes = models.TextField(blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CampSessionManager()

    class Meta:
        ordering = ['session_date', 'start_time']
        constraints = [
            models.UniqueConstraint(
                fields=['recurrence_pattern', 'session_date'],
                condition=models.Q(recurrence_pattern__isnull=False),
                name='unique_session_per_pattern_date'
            ),
        ]
        indexes = [
            models.Index(fields=['camp', 'session_date'], name='session_camp_date_idx'),
            models.Index(fields=['recurrence_pattern', 'session_date'], name='session_pattern_date_idx'),
            models.Index(fields=['status'], name='session_status_idx'),
        ]

    def __str__(self):
        status_str = f" [{self.status}]" if self.status != 'scheduled' else ""
        return (
            f"{self.camp.name} - {self.session_date} "
            f"{self.start_time.strftime('%H:%M')}-{self.end_time.strftime('%H:%M')}{status_str}"
        )

    @property
    def is_one_time(self):
        """Check if this session was created outside any pattern."""
        return self.recurrence_pattern_id is None and self.schedule_exception_id is None

    @property
    def is_generated(self):
        """Check if this session was generated from a pattern."""
        return self.recurrence_pattern_id is not None

    def clean(self):
        """Validate session data."""
        super().clean()

        if self.start_time and self.end_time and self.start_time >= self.end_time:
            raise ValidationError({
                'end_time': 'Start time must be before end time.'
            })

        if self.camp_id and self.session_date and not self.camp.covers(self.session_date):
            raise ValidationError({
                'session_date': 'Session date must fall within the camp dates.'
            })

    def save(self, *args, **kwargs):
        """Save with validation."""
        self.full_clean()
        super().save(*args, **kwargs)
