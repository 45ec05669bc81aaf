"""
Data types and constants for the camp scheduling system.

This module contains:
- Constants shared by models, services and serializers
- DTOs (Data Transfer Objects) for service layer operations
"""

from dataclasses import dataclass, field
from datetime import date, time
from typing import List, Optional


DAILY = 'daily'
WEEKLY = 'weekly'
BIWEEKLY = 'biweekly'
MONTHLY = 'monthly'

FREQUENCIES = (DAILY, WEEKLY, BIWEEKLY, MONTHLY)
WEEKDAY_FREQUENCIES = (WEEKLY, BIWEEKLY)

WEEKDAY_NAMES = (
    'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday',
)

SESSION_SCHEDULED = 'scheduled'
SESSION_CANCELLED = 'cancelled'

EXCEPTION_CANCEL = 'cancel'
EXCEPTION_TIME_CHANGE = 'time_change'
EXCEPTION_ADD = 'add'

EXCEPTION_TYPES = (EXCEPTION_CANCEL, EXCEPTION_TIME_CHANGE, EXCEPTION_ADD)
EXCEPTION_TYPES_WITH_TIMES = (EXCEPTION_TIME_CHANGE, EXCEPTION_ADD)


@dataclass
class PatternData:
    """DTO for pattern creation and previews."""
    frequency: str
    start_date: date
    start_time: time
    end_time: time
    name: str = ''
    interval: int = 1
    weekdays: List[int] = field(default_factory=list)
    end_date: Optional[date] = None
    max_occurrences: Optional[int] = None
    capacity: Optional[int] = None


@dataclass
class PatternUpdateData:
    """
    DTO for pattern update operations.

    ``None`` leaves a field unchanged. Setting ``end_date`` clears
    ``max_occurrences`` and vice versa.
    """
    name: Optional[str] = None
    frequency: Optional[str] = None
    interval: Optional[int] = None
    weekdays: Optional[List[int]] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    max_occurrences: Optional[int] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    capacity: Optional[int] = None
    is_active: Optional[bool] = None


@dataclass
class SessionUpdateData:
    """DTO for session update operations."""
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    capacity: Optional[int] = None
    notes: Optional[str] = None


@dataclass
class ExceptionData:
    """DTO for schedule exception creation."""
    exception_date: date
    exception_type: str
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: str = ''


@dataclass
class ExceptionUpdateData:
    """DTO for schedule exception update operations."""
    exception_date: Optional[date] = None
    exception_type: Optional[str] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: Optional[str] = None


@dataclass
class GenerationSummary:
    """Counts reported after materializing a pattern."""
    pattern_id: int
    created: int = 0
    updated: int = 0
    cancelled: int = 0
    unchanged: int = 0
    error: Optional[str] = None

    @property
    def changed(self):
        return self.created + self.updated + self.cancelled
