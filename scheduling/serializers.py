"""
Serializers for the camp scheduling system.
"""

from rest_framework import serializers

from .models import CampSession, RecurrencePattern, ScheduleException
from .types import (
    EXCEPTION_TYPES,
    EXCEPTION_TYPES_WITH_TIMES,
    FREQUENCIES,
    ExceptionData,
    ExceptionUpdateData,
    PatternData,
    PatternUpdateData,
    SessionUpdateData,
)


class RecurrencePatternReadSerializer(serializers.ModelSerializer):
    """Serializer for reading/displaying RecurrencePattern (output)."""

    weekday_names = serializers.ReadOnlyField()

    class Meta:
        model = RecurrencePattern
        fields = [
            'id',
            'camp',
            'name',
            'frequency',
            'interval',
            'weekdays',
            'weekday_names',
            'start_date',
            'end_date',
            'max_occurrences',
            'start_time',
            'end_time',
            'capacity',
            'is_active',
            'created_at',
            'updated_at',
        ]


class RecurrencePatternInputSerializer(serializers.Serializer):
    """Serializer for creating or previewing a recurrence pattern."""

    name = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    frequency = serializers.ChoiceField(choices=FREQUENCIES)
    interval = serializers.IntegerField(min_value=1, default=1)
    weekdays = serializers.ListField(
        child=serializers.IntegerField(min_value=0, max_value=6),
        required=False,
        default=list
    )
    start_date = serializers.DateField()
    end_date = serializers.DateField(required=False, allow_null=True)
    max_occurrences = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    start_time = serializers.TimeField()
    end_time = serializers.TimeField()
    capacity = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    generate_sessions = serializers.BooleanField(default=True)

    def validate(self, data):
        """Validate pattern data."""
        has_end_date = data.get('end_date') is not None
        has_count = data.get('max_occurrences') is not None
        if has_end_date == has_count:
            raise serializers.ValidationError({
                'end_date': 'Set exactly one of end_date or max_occurrences.'
            })

        if data['start_time'] >= data['end_time']:
            raise serializers.ValidationError({
                'end_time': 'End time must be after start time.'
            })

        return data

    def to_pattern_data(self) -> PatternData:
        data = self.validated_data
        return PatternData(
            name=data.get('name', ''),
            frequency=data['frequency'],
            interval=data.get('interval', 1),
            weekdays=data.get('weekdays', []),
            start_date=data['start_date'],
            end_date=data.get('end_date'),
            max_occurrences=data.get('max_occurrences'),
            start_time=data['start_time'],
            end_time=data['end_time'],
            capacity=data.get('capacity'),
        )


class RecurrencePatternUpdateSerializer(serializers.Serializer):
    """Serializer for updating a recurrence pattern (input)."""

    name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    frequency = serializers.ChoiceField(choices=FREQUENCIES, required=False)
    interval = serializers.IntegerField(min_value=1, required=False)
    weekdays = serializers.ListField(
        child=serializers.IntegerField(min_value=0, max_value=6),
        required=False
    )
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    max_occurrences = serializers.IntegerField(min_value=1, required=False)
    start_time = serializers.TimeField(required=False)
    end_time = serializers.TimeField(required=False)
    capacity = serializers.IntegerField(min_value=1, required=False)
    is_active = serializers.BooleanField(required=False)
    regenerate = serializers.BooleanField(default=True)

    def validate(self, data):
        """Only one termination condition may be sent."""
        if 'end_date' in data and 'max_occurrences' in data:
            raise serializers.ValidationError({
                'end_date': 'Set either end_date or max_occurrences, not both.'
            })
        return data

    def to_update_data(self) -> PatternUpdateData:
        data = self.validated_data
        return PatternUpdateData(
            name=data.get('name'),
            frequency=data.get('frequency'),
            interval=data.get('interval'),
            weekdays=data.get('weekdays'),
            start_date=data.get('start_date'),
            end_date=data.get('end_date'),
            max_occurrences=data.get('max_occurrences'),
            start_time=data.get('start_time'),
            end_time=data.get('end_time'),
            capacity=data.get('capacity'),
            is_active=data.get('is_active'),
        )


class CampSessionReadSerializer(serializers.ModelSerializer):
    """Serializer for reading/displaying CampSession (output)."""

    pattern_id = serializers.IntegerField(source='recurrence_pattern_id', allow_null=True, read_only=True)
    exception_id = serializers.IntegerField(source='schedule_exception_id', allow_null=True, read_only=True)
    is_one_time = serializers.BooleanField(read_only=True)
    is_generated = serializers.BooleanField(read_only=True)

    class Meta:
        model = CampSession
        fields = [
            'id',
            'camp',
            'pattern_id',
            'exception_id',
            'session_date',
            'start_time',
            'end_time',
            'capacity',
            'status',
            'is_exception',
            'is_one_time',
            'is_generated',
            'notes',
            'created_at',
            'updated_at',
        ]


class CampSessionCreateSerializer(serializers.Serializer):
    """Serializer for creating a one-time camp session."""

    session_date = serializers.DateField()
    start_time = serializers.TimeField()
    end_time = serializers.TimeField()
    capacity = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, data):
        """Ensure start is before end."""
        if data['start_time'] >= data['end_time']:
            raise serializers.ValidationError({
                'end_time': 'End time must be after start time.'
            })
        return data


class CampSessionUpdateSerializer(serializers.Serializer):
    """Serializer for updating a camp session."""

    start_time = serializers.TimeField(required=False)
    end_time = serializers.TimeField(required=False)
    capacity = serializers.IntegerField(min_value=1, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)

    def to_update_data(self) -> SessionUpdateData:
        data = self.validated_data
        return SessionUpdateData(
            start_time=data.get('start_time'),
            end_time=data.get('end_time'),
            capacity=data.get('capacity'),
            notes=data.get('notes'),
        )


class SessionQuerySerializer(serializers.Serializer):
    """Serializer for session list query parameters."""

    start = serializers.DateField(required=False)
    end = serializers.DateField(required=False)
    status = serializers.ChoiceField(
        choices=['scheduled', 'cancelled'],
        required=False,
        allow_null=True
    )

    def validate(self, data):
        """Ensure start is not after end."""
        if data.get('start') and data.get('end') and data['start'] > data['end']:
            raise serializers.ValidationError(
                "Start date must not be after end date."
            )
        return data


class ScheduleExceptionReadSerializer(serializers.ModelSerializer):
    """Serializer for reading/displaying ScheduleException (output)."""

    class Meta:
        model = ScheduleException
        fields = [
            'id',
            'camp',
            'exception_date',
            'exception_type',
            'start_time',
            'end_time',
            'reason',
            'created_at',
            'updated_at',
        ]


class ScheduleExceptionCreateSerializer(serializers.Serializer):
    """Serializer for creating a schedule exception."""

    exception_date = serializers.DateField()
    exception_type = serializers.ChoiceField(choices=EXCEPTION_TYPES)
    start_time = serializers.TimeField(required=False, allow_null=True)
    end_time = serializers.TimeField(required=False, allow_null=True)
    reason = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, data):
        """Replacement times are required for time changes and additions."""
        if data['exception_type'] in EXCEPTION_TYPES_WITH_TIMES:
            start_time = data.get('start_time')
            end_time = data.get('end_time')
            if start_time is None or end_time is None:
                raise serializers.ValidationError({
                    'start_time': 'Start and end time are required for this exception type.'
                })
            if start_time >= end_time:
                raise serializers.ValidationError({
                    'end_time': 'End time must be after start time.'
                })
        return data

    def to_exception_data(self) -> ExceptionData:
        data = self.validated_data
        return ExceptionData(
            exception_date=data['exception_date'],
            exception_type=data['exception_type'],
            start_time=data.get('start_time'),
            end_time=data.get('end_time'),
            reason=data.get('reason', ''),
        )


class ScheduleExceptionUpdateSerializer(serializers.Serializer):
    """Serializer for updating a schedule exception."""

    exception_date = serializers.DateField(required=False)
    exception_type = serializers.ChoiceField(choices=EXCEPTION_TYPES, required=False)
    start_time = serializers.TimeField(required=False)
    end_time = serializers.TimeField(required=False)
    reason = serializers.CharField(required=False, allow_blank=True)

    def to_update_data(self) -> ExceptionUpdateData:
        data = self.validated_data
        return ExceptionUpdateData(
            exception_date=data.get('exception_date'),
            exception_type=data.get('exception_type'),
            start_time=data.get('start_time'),
            end_time=data.get('end_time'),
            reason=data.get('reason'),
        )
