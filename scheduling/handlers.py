"""
REST framework exception handler for scheduling errors.

Enabled through ``REST_FRAMEWORK['EXCEPTION_HANDLER']``.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .exceptions import ScheduleConflictError, SchedulingError

logger = logging.getLogger(__name__)


def _status_for(exc: SchedulingError) -> int:
    if isinstance(exc, ScheduleConflictError):
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


def scheduling_exception_handler(exc, context):
    """Translate domain errors into responses; defer to DRF otherwise."""
    if isinstance(exc, SchedulingError):
        data = {'error': exc.message, 'code': exc.code}
        if exc.field:
            data['field'] = exc.field
        logger.info("Rejected %s: %s", context['view'].__class__.__name__, exc.message)
        return Response(data, status=_status_for(exc))

    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, 'error_dict') else {'non_field_errors': exc.messages}
        return Response(detail, status=status.HTTP_400_BAD_REQUEST)

    return exception_handler(exc, context)
