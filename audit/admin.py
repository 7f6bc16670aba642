"""
Audit Admin - READ ONLY

Audit records are written by the application, never edited by hand.
"""

import json

from django.contrib import admin
from django.utils.html import format_html

from audit.models import AuditRequest, ApiLog, ErrorLog, ErrorLogEntry


class ReadOnlyAdmin(admin.ModelAdmin):
    """Disable add/change/delete and bulk actions"""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def get_actions(self, request):
        actions = super().get_actions(request)
        if 'delete_selected' in actions:
            del actions['delete_selected']
        return actions


def _pretty_json(value):
    if value in (None, '', {}, []):
        return "-"
    return format_html('<pre>{}</pre>', json.dumps(value, indent=2, default=str))


@admin.register(AuditRequest)
class AuditRequestAdmin(ReadOnlyAdmin):
    list_display = [
        'id',
        'created_at',
        'url_short',
        'environment',
        'api_log_count',
        'error_log_count',
        'log_line_count',
        'time',
    ]
    list_filter = ['environment', 'created_at']
    search_fields = ['url', 'session_id']
    readonly_fields = [
        'session_id',
        'user',
        'environment',
        'url',
        'parent',
        'request_display',
        'response_display',
        'logs',
        'api_log_count',
        'error_log_count',
        'log_line_count',
        'time',
        'created_at',
    ]
    exclude = ['request', 'response']
    date_hierarchy = 'created_at'
    ordering = ['-id']

    @admin.display(description='URL')
    def url_short(self, obj):
        max_length = 80
        if len(obj.url) > max_length:
            return f"{obj.url[:max_length]}..."
        return obj.url

    @admin.display(description='Request')
    def request_display(self, obj):
        return _pretty_json(obj.request)

    @admin.display(description='Response')
    def response_display(self, obj):
        return _pretty_json(obj.response)


@admin.register(ApiLog)
class ApiLogAdmin(ReadOnlyAdmin):
    list_display = ['id', 'created_at', 'service_name', 'method', 'status_code', 'url', 'run_time_ms']
    list_filter = ['service_name', 'method', 'status_code']
    search_fields = ['url', 'service_name', 'api_class']
    raw_id_fields = ['audit_request']


class ErrorLogEntryInline(admin.TabularInline):
    model = ErrorLogEntry
    fields = ['created_at', 'audit_request', 'message', 'is_retryable']
    readonly_fields = fields
    extra = 0
    can_delete = False
    show_change_link = True

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(ErrorLog)
class ErrorLogAdmin(ReadOnlyAdmin):
    list_display = ['id', 'last_seen_at', 'level', 'error_class', 'message', 'count']
    list_filter = ['level', 'error_class']
    search_fields = ['message', 'error_class', 'file']
    inlines = [ErrorLogEntryInline]


@admin.register(ErrorLogEntry)
class ErrorLogEntryAdmin(ReadOnlyAdmin):
    list_display = ['id', 'created_at', 'error_log', 'audit_request', 'message', 'is_retryable']
    list_filter = ['is_retryable']
    search_fields = ['message']
    raw_id_fields = ['error_log', 'audit_request']
