"""
Job Dispatch Admin - READ ONLY
"""

from django.contrib import admin
from django.urls import reverse
from django.utils.html import format_html

from audit.admin import ReadOnlyAdmin
from jobs.models import JobDispatch, JobBatch


@admin.register(JobDispatch)
class JobDispatchAdmin(ReadOnlyAdmin):
    list_display = [
        'id',
        'ref',
        'name',
        'status',
        'count',
        'created_at',
        'ran_at',
        'run_time_ms',
        'running_audit_link',
    ]
    list_filter = ['status', 'name', 'created_at']
    search_fields = ['ref', 'name']
    readonly_fields = [
        'ref',
        'name',
        'status',
        'user',
        'job_batch',
        'running_audit_link',
        'dispatch_audit_link',
        'count',
        'ran_at',
        'completed_at',
        'timeout_at',
        'run_time_ms',
        'data',
        'created_at',
    ]
    exclude = ['running_audit_request', 'dispatch_audit_request']
    date_hierarchy = 'created_at'
    ordering = ['-id']

    def _audit_link(self, audit_request_id):
        if not audit_request_id:
            return "-"
        url = reverse('admin:audit_auditrequest_change', args=[audit_request_id])
        return format_html('<a href="{}">#{}</a>', url, audit_request_id)

    @admin.display(description='Running audit request')
    def running_audit_link(self, obj):
        return self._audit_link(obj.running_audit_request_id)

    @admin.display(description='Dispatch audit request')
    def dispatch_audit_link(self, obj):
        return self._audit_link(obj.dispatch_audit_request_id)


@admin.register(JobBatch)
class JobBatchAdmin(ReadOnlyAdmin):
    list_display = ['id', 'name', 'total_jobs', 'pending_jobs', 'failed_jobs', 'progress', 'created_at', 'finished_at']
    search_fields = ['name']
    ordering = ['-id']
