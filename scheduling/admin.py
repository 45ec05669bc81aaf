"""
Admin configuration for the scheduling app.
"""

from django.contrib import admin
from .models import (
    Camp,
    CampSession,
    Organization,
    OrganizationMember,
    RecurrencePattern,
    ScheduleException,
)


class OrganizationMemberInline(admin.TabularInline):
    model = OrganizationMember
    extra = 0
    raw_id_fields = ['user']


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ['name', 'created_at']
    search_fields = ['name']
    inlines = [OrganizationMemberInline]


@admin.register(Camp)
class CampAdmin(admin.ModelAdmin):
    """Admin interface for Camp model."""

    list_display = ['name', 'organization', 'start_date', 'end_date', 'capacity', 'is_deleted']
    list_filter = ['is_deleted', 'organization']
    search_fields = ['name', 'description']
    date_hierarchy = 'start_date'

    fieldsets = (
        ('Basic Information', {
            'fields': ('organization', 'name', 'description', 'capacity')
        }),
        ('Dates', {
            'fields': ('start_date', 'end_date')
        }),
        ('Deletion', {
            'fields': ('is_deleted', 'deleted_at')
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    readonly_fields = ['created_at', 'updated_at']


@admin.register(RecurrencePattern)
class RecurrencePatternAdmin(admin.ModelAdmin):
    """Admin interface for RecurrencePattern model."""

    list_display = ['__str__', 'camp', 'frequency', 'interval', 'start_date', 'end_date', 'max_occurrences', 'is_active']
    list_filter = ['is_active', 'frequency', 'camp']
    search_fields = ['name', 'camp__name']
    date_hierarchy = 'start_date'

    fieldsets = (
        ('Basic Information', {
            'fields': ('camp', 'name', 'is_active')
        }),
        ('Recurrence Rules', {
            'fields': ('frequency', 'interval', 'weekdays')
        }),
        ('Pattern Boundaries', {
            'fields': ('start_date', 'end_date', 'max_occurrences')
        }),
        ('Sessions', {
            'fields': ('start_time', 'end_time', 'capacity')
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    readonly_fields = ['created_at', 'updated_at']


@admin.register(ScheduleException)
class ScheduleExceptionAdmin(admin.ModelAdmin):
    """Admin interface for ScheduleException model."""

    list_display = ['camp', 'exception_date', 'exception_type', 'start_time', 'end_time']
    list_filter = ['exception_type', 'camp']
    search_fields = ['reason', 'camp__name']
    date_hierarchy = 'exception_date'

    fieldsets = (
        ('Exception', {
            'fields': ('camp', 'exception_date', 'exception_type', 'reason')
        }),
        ('Replacement Times', {
            'fields': ('start_time', 'end_time')
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    readonly_fields = ['created_at', 'updated_at']


@admin.register(CampSession)
class CampSessionAdmin(admin.ModelAdmin):
    """Admin interface for CampSession model."""

    list_display = ['camp', 'session_date', 'start_time', 'end_time', 'capacity', 'status', 'is_exception', 'recurrence_pattern']
    list_filter = ['status', 'is_exception', 'camp']
    search_fields = ['notes', 'camp__name']
    date_hierarchy = 'session_date'
    raw_id_fields = ['recurrence_pattern', 'schedule_exception']

    fieldsets = (
        ('Basic Information', {
            'fields': ('camp', 'recurrence_pattern', 'schedule_exception', 'notes')
        }),
        ('Schedule', {
            'fields': ('session_date', 'start_time', 'end_time', 'capacity')
        }),
        ('Status', {
            'fields': ('status', 'is_exception')
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    readonly_fields = ['created_at', 'updated_at']
