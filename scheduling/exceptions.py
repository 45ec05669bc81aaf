"""
Domain errors raised by the scheduling service layer.

Services stay framework-agnostic; the API layer translates these into
HTTP responses (see handlers.py).
"""


class SchedulingError(Exception):
    """Base class for all scheduling errors."""

    code = 'scheduling_error'

    def __init__(self, message, field=None):
        super().__init__(message)
        self.message = message
        self.field = field


class ScheduleValidationError(SchedulingError, ValueError):
    """Input that violates a model invariant."""

    code = 'invalid'


class PatternValidationError(ScheduleValidationError):
    """Malformed recurrence pattern; rejected before expansion."""

    code = 'invalid_pattern'


class ScheduleConflictError(SchedulingError):
    """Write would conflict with existing data or the camp's date range."""

    code = 'conflict'


class PastExceptionDateError(SchedulingError):
    """Attempt to change a schedule exception whose date has passed."""

    code = 'past_date'
    default_message = 'cannot modify an exception whose date has passed'

    def __init__(self, message=None, field='exception_date'):
        super().__init__(message or self.default_message, field=field)
