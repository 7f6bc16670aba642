"""
Audit Serializers

Read-only: audit records are written by audit.helpers, never through the API.
"""

from rest_framework import serializers
from audit.models import AuditRequest, ApiLog, ErrorLogEntry
from audit.helpers import resolve_ancestor_ids


class DynamicFieldsModelSerializer(serializers.ModelSerializer):
    """
    ModelSerializer that takes an optional ``fields`` argument restricting
    which fields are rendered. Unknown names raise ValueError.
    """

    def __init__(self, *args, **kwargs):
        fields = kwargs.pop('fields', None)
        super().__init__(*args, **kwargs)

        if fields is not None:
            unknown = set(fields) - set(self.fields)
            if unknown:
                raise ValueError(f"Unknown fields for {self.__class__.__name__}: {sorted(unknown)}")
            for name in set(self.fields) - set(fields):
                self.fields.pop(name)

    @classmethod
    def available_fields(cls):
        return list(cls.Meta.fields)


class ApiLogSerializer(DynamicFieldsModelSerializer):
    """Shape of an API call entry in a job dispatch's apiLogs"""

    class Meta:
        model = ApiLog
        fields = [
            'id',
            'audit_request_id',
            'api_class',
            'service_name',
            'endpoint',
            'method',
            'url',
            'full_url',
            'status_code',
            'request',
            'response',
            'request_headers',
            'response_headers',
            'stack_trace',
            'run_time_ms',
            'started_at',
            'finished_at',
            'created_at',
        ]
        read_only_fields = fields

    # Default shape when no sub-fields are requested
    default_fields = [
        'id',
        'service_name',
        'method',
        'url',
        'status_code',
        'run_time_ms',
        'created_at',
    ]


class ErrorLogEntrySerializer(DynamicFieldsModelSerializer):
    """Shape of an error entry in a job dispatch's errors"""

    error_class = serializers.CharField(read_only=True, allow_null=True)
    level = serializers.CharField(read_only=True, allow_null=True)

    class Meta:
        model = ErrorLogEntry
        fields = [
            'id',
            'error_log_id',
            'audit_request_id',
            'error_class',
            'level',
            'message',
            'full_message',
            'data',
            'is_retryable',
            'created_at',
        ]
        read_only_fields = fields

    default_fields = [
        'id',
        'error_class',
        'level',
        'message',
        'is_retryable',
        'created_at',
    ]


class AuditRequestSerializer(serializers.ModelSerializer):
    """Audit request with its counters and ancestor chain"""

    user_name = serializers.SerializerMethodField()
    http_method = serializers.SerializerMethodField()
    http_status_code = serializers.SerializerMethodField()
    ran_jobs_count = serializers.SerializerMethodField()
    dispatched_jobs_count = serializers.SerializerMethodField()
    ancestor_ids = serializers.SerializerMethodField()

    class Meta:
        model = AuditRequest
        fields = [
            'id',
            'session_id',
            'user_id',
            'user_name',
            'environment',
            'http_method',
            'http_status_code',
            'url',
            'request',
            'response',
            'logs',
            'time',
            'parent_id',
            'api_log_count',
            'error_log_count',
            'log_line_count',
            'ran_jobs_count',
            'dispatched_jobs_count',
            'ancestor_ids',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_user_name(self, obj):
        if obj.user:
            return f"{obj.user.email or obj.user.get_username()} ({obj.user_id})"
        return 'N/A'

    def get_http_method(self, obj):
        return obj.request_method()

    def get_http_status_code(self, obj):
        return obj.status_code()

    def get_ran_jobs_count(self, obj):
        return obj.ran_jobs.count()

    def get_dispatched_jobs_count(self, obj):
        return obj.dispatched_jobs.count()

    def get_ancestor_ids(self, obj):
        return resolve_ancestor_ids(obj)
