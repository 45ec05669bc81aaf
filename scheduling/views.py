"""Views for the camp scheduling system."""

from django.shortcuts import get_object_or_404

from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .clock import system_clock
from .models import Camp, CampSession, RecurrencePattern, ScheduleException
from .permissions import IsCampStaffOrReadOnly, can_manage_camp
from .serializers import (
    RecurrencePatternReadSerializer,
    RecurrencePatternInputSerializer,
    RecurrencePatternUpdateSerializer,
    CampSessionReadSerializer,
    CampSessionCreateSerializer,
    CampSessionUpdateSerializer,
    SessionQuerySerializer,
    ScheduleExceptionReadSerializer,
    ScheduleExceptionCreateSerializer,
    ScheduleExceptionUpdateSerializer,
)
from . import services


class CampScopedView(APIView):
    """Base view for endpoints nested under a camp."""

    permission_classes = [IsCampStaffOrReadOnly]

    def get_camp(self, request, camp_id):
        camp = get_object_or_404(Camp.objects.active(), pk=camp_id)
        self.check_object_permissions(request, camp)
        return camp


class CampPatternListCreateView(CampScopedView):
    """
    List a camp's recurrence patterns or create a new one.

    GET /api/camps/{camp_id}/patterns/ - List patterns
    POST /api/camps/{camp_id}/patterns/ - Create a pattern (and its sessions)
    """

    def get(self, request, camp_id):
        """List the camp's recurrence patterns."""
        camp = self.get_camp(request, camp_id)
        patterns = RecurrencePattern.objects.for_camp(camp)
        serializer = RecurrencePatternReadSerializer(patterns, many=True)
        return Response(serializer.data)

    def post(self, request, camp_id):
        """Create a recurrence pattern with optional session generation."""
        camp = self.get_camp(request, camp_id)
        serializer = RecurrencePatternInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        pattern, sessions = services.create_recurrence_pattern(
            camp=camp,
            data=serializer.to_pattern_data(),
            generate_sessions=serializer.validated_data['generate_sessions']
        )

        response_serializer = RecurrencePatternReadSerializer(pattern)
        return Response({
            'pattern': response_serializer.data,
            'sessions_generated': len(sessions)
        }, status=status.HTTP_201_CREATED)


class RecurrencePatternDetailView(APIView):
    """
    Retrieve, update, or delete a recurrence pattern.

    GET /api/patterns/{id}/ - Retrieve pattern
    PATCH /api/patterns/{id}/ - Update pattern
    DELETE /api/patterns/{id}/?cancel_future=true - Delete pattern
    """

    permission_classes = [IsCampStaffOrReadOnly]
    clock = system_clock

    def get_pattern(self, request, pk):
        pattern = get_object_or_404(
            RecurrencePattern.objects.select_related('camp'),
            pk=pk,
            camp__is_deleted=False
        )
        self.check_object_permissions(request, pattern)
        return pattern

    def get(self, request, pk):
        """Retrieve a recurrence pattern."""
        pattern = self.get_pattern(request, pk)
        serializer = RecurrencePatternReadSerializer(pattern)
        return Response(serializer.data)

    def patch(self, request, pk):
        """Update a recurrence pattern."""
        pattern = self.get_pattern(request, pk)
        serializer = RecurrencePatternUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        updated_pattern = services.update_recurrence_pattern(
            pattern=pattern,
            update_data=serializer.to_update_data(),
            regenerate=serializer.validated_data['regenerate']
        )

        response_serializer = RecurrencePatternReadSerializer(updated_pattern)
        return Response(response_serializer.data)

    def delete(self, request, pk):
        """Delete a recurrence pattern."""
        pattern = self.get_pattern(request, pk)
        cancel_future = request.query_params.get('cancel_future', 'true').lower() == 'true'

        name = pattern.name or f'#{pattern.pk}'
        cancelled = services.delete_recurrence_pattern(
            pattern,
            cancel_future_sessions=cancel_future,
            clock=self.clock
        )

        if cancel_future:
            message = f'Pattern "{name}" has been deleted.'
        else:
            message = f'Pattern "{name}" has been deactivated.'
        return Response({
            'message': message,
            'sessions_cancelled': cancelled
        }, status=status.HTTP_200_OK)


class PatternGenerateView(APIView):
    """
    Materialize a pattern's sessions.

    POST /api/patterns/{id}/generate/
    """

    permission_classes = [IsCampStaffOrReadOnly]

    def post(self, request, pk):
        """Generate (or reconcile) the pattern's sessions."""
        pattern = get_object_or_404(
            RecurrencePattern.objects.select_related('camp'),
            pk=pk,
            camp__is_deleted=False
        )
        self.check_object_permissions(request, pattern)

        sessions = services.generate_sessions_from_pattern(pattern.pk)

        serializer = CampSessionReadSerializer(sessions, many=True)
        return Response({
            'pattern_id': pattern.pk,
            'is_active': pattern.is_active,
            'sessions': serializer.data
        }, status=status.HTTP_200_OK)


class PatternPreviewView(APIView):
    """
    Expand an unsaved pattern into its candidate dates.

    POST /api/patterns/preview/
    """

    permission_classes = [AllowAny]

    def post(self, request):
        """Preview candidate dates without saving anything."""
        serializer = RecurrencePatternInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        dates = services.preview_candidate_dates(serializer.to_pattern_data())

        return Response({
            'dates': [day.isoformat() for day in dates],
            'count': len(dates)
        })


class CampSessionListView(CampScopedView):
    """
    List a camp's sessions or create a one-time session.

    GET /api/camps/{camp_id}/sessions/?start=X&end=Y&status=Z - List sessions
    POST /api/camps/{camp_id}/sessions/ - Create a one-time session
    """

    def get(self, request, camp_id):
        """List sessions, optionally within a date range."""
        camp = self.get_camp(request, camp_id)
        query_serializer = SessionQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)

        sessions = services.get_camp_sessions(
            camp,
            query_serializer.validated_data.get('start'),
            query_serializer.validated_data.get('end'),
            query_serializer.validated_data.get('status')
        )

        serializer = CampSessionReadSerializer(sessions, many=True)
        return Response(serializer.data)

    def post(self, request, camp_id):
        """Create a one-time session."""
        camp = self.get_camp(request, camp_id)
        serializer = CampSessionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        session = services.create_one_time_session(
            camp=camp,
            session_date=serializer.validated_data['session_date'],
            start_time=serializer.validated_data['start_time'],
            end_time=serializer.validated_data['end_time'],
            capacity=serializer.validated_data.get('capacity'),
            notes=serializer.validated_data.get('notes', '')
        )

        response_serializer = CampSessionReadSerializer(session)
        return Response(response_serializer.data, status=status.HTTP_201_CREATED)


class CampSessionDetailView(APIView):
    """
    Retrieve, update, or cancel a camp session.

    GET /api/sessions/{id}/ - Retrieve session
    PATCH /api/sessions/{id}/ - Update session
    DELETE /api/sessions/{id}/ - Cancel session
    """

    permission_classes = [IsCampStaffOrReadOnly]

    def get_session(self, request, pk):
        session = get_object_or_404(
            CampSession.objects.select_related('camp'),
            pk=pk,
            camp__is_deleted=False
        )
        self.check_object_permissions(request, session)
        return session

    def get(self, request, pk):
        """Retrieve a camp session."""
        session = self.get_session(request, pk)
        serializer = CampSessionReadSerializer(session)
        return Response(serializer.data)

    def patch(self, request, pk):
        """Update a camp session."""
        session = self.get_session(request, pk)
        serializer = CampSessionUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        updated_session = services.update_session(
            session=session,
            update_data=serializer.to_update_data()
        )

        response_serializer = CampSessionReadSerializer(updated_session)
        return Response(response_serializer.data)

    def delete(self, request, pk):
        """Cancel a camp session."""
        session = self.get_session(request, pk)

        services.cancel_session(session)

        return Response({
            'message': f'Session on {session.session_date} has been cancelled.'
        }, status=status.HTTP_200_OK)


class CampExceptionListView(CampScopedView):
    """
    List a camp's schedule exceptions or create one.

    GET /api/camps/{camp_id}/exceptions/ - List exceptions
    POST /api/camps/{camp_id}/exceptions/ - Create an exception
    """

    clock = system_clock

    def get(self, request, camp_id):
        """List exceptions along with the caller's management rights."""
        camp = self.get_camp(request, camp_id)
        exceptions = ScheduleException.objects.for_camp(camp)
        serializer = ScheduleExceptionReadSerializer(exceptions, many=True)
        return Response({
            'exceptions': serializer.data,
            'permissions': {
                'can_manage': can_manage_camp(request.user, camp)
            }
        })

    def post(self, request, camp_id):
        """Create a schedule exception."""
        camp = self.get_camp(request, camp_id)
        serializer = ScheduleExceptionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        exception = services.create_schedule_exception(
            camp=camp,
            data=serializer.to_exception_data(),
            clock=self.clock
        )

        response_serializer = ScheduleExceptionReadSerializer(exception)
        return Response(response_serializer.data, status=status.HTTP_201_CREATED)


class ScheduleExceptionDetailView(APIView):
    """
    Retrieve, update, or delete a schedule exception.

    GET /api/exceptions/{id}/ - Retrieve exception
    PATCH /api/exceptions/{id}/ - Update exception
    DELETE /api/exceptions/{id}/ - Delete exception
    """

    permission_classes = [IsCampStaffOrReadOnly]
    clock = system_clock

    def get_exception(self, request, pk):
        exception = get_object_or_404(
            ScheduleException.objects.select_related('camp'),
            pk=pk,
            camp__is_deleted=False
        )
        self.check_object_permissions(request, exception)
        return exception

    def get(self, request, pk):
        """Retrieve a schedule exception."""
        exception = self.get_exception(request, pk)
        serializer = ScheduleExceptionReadSerializer(exception)
        return Response(serializer.data)

    def patch(self, request, pk):
        """Update a schedule exception."""
        exception = self.get_exception(request, pk)
        serializer = ScheduleExceptionUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        updated_exception = services.update_schedule_exception(
            exception=exception,
            update_data=serializer.to_update_data(),
            clock=self.clock
        )

        response_serializer = ScheduleExceptionReadSerializer(updated_exception)
        return Response(response_serializer.data)

    def delete(self, request, pk):
        """Delete a schedule exception."""
        exception = self.get_exception(request, pk)
        exception_date = exception.exception_date

        services.delete_schedule_exception(exception, clock=self.clock)

        return Response({
            'message': f'Exception on {exception_date} has been deleted.'
        }, status=status.HTTP_200_OK)
