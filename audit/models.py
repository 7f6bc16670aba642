"""
Audit Models

One AuditRequest per logical unit of work (an HTTP request or a job run),
with the API calls, error log entries and log lines recorded during it.
The per-request counters are maintained by audit.helpers with atomic updates.
"""

import hashlib
import json

from django.db import models
from django.conf import settings

from core.constants import ErrorLevel, DefaultLimits


class AuditRequest(models.Model):
    """Request/response/log trail of one unit of work"""

    session_id = models.CharField(max_length=64, blank=True, default='', db_index=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_requests',
    )
    environment = models.CharField(max_length=32, blank=True, default='')
    url = models.CharField(max_length=DefaultLimits.URL_LENGTH, blank=True, default='')
    request = models.JSONField(null=True, blank=True)
    response = models.JSONField(null=True, blank=True)
    logs = models.TextField(blank=True, default='')
    log_line_count = models.PositiveIntegerField(default=0)
    api_log_count = models.PositiveIntegerField(default=0)
    error_log_count = models.PositiveIntegerField(default=0)
    time = models.FloatField(default=0, help_text="Seconds spent on the request")
    parent = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='children',
        help_text="Audit request that dispatched the job this request ran",
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'audit_request'
        ordering = ['-id']
        verbose_name = "Audit Request"
        verbose_name_plural = "Audit Requests"

    def __str__(self):
        return f"AuditRequest {self.id} {self.url}"

    def request_method(self):
        """HTTP method of the recorded request, if any"""
        if self.request:
            return self.request.get('method')
        return None

    def status_code(self):
        """HTTP status of the recorded response, if any"""
        if self.response:
            return self.response.get('status', 0)
        return None

    @property
    def ran_jobs(self):
        from jobs.models import JobDispatch
        return JobDispatch.objects.filter(running_audit_request_id=self.id)

    @property
    def dispatched_jobs(self):
        from jobs.models import JobDispatch
        return JobDispatch.objects.filter(dispatch_audit_request_id=self.id)


class ApiLog(models.Model):
    """One outgoing API call made during an audit request"""

    audit_request = models.ForeignKey(
        AuditRequest,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='api_logs',
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='api_logs',
    )
    api_class = models.CharField(max_length=255, blank=True, default='')
    service_name = models.CharField(max_length=255, blank=True, default='', db_index=True)
    endpoint = models.CharField(max_length=255, blank=True, default='')
    url = models.CharField(max_length=DefaultLimits.URL_LENGTH, blank=True, default='')
    full_url = models.TextField(blank=True, default='')
    method = models.CharField(max_length=10, blank=True, default='')
    status_code = models.PositiveSmallIntegerField(default=0)
    request = models.JSONField(null=True, blank=True)
    response = models.JSONField(null=True, blank=True)
    request_headers = models.JSONField(null=True, blank=True)
    response_headers = models.JSONField(null=True, blank=True)
    stack_trace = models.JSONField(null=True, blank=True)
    run_time_ms = models.PositiveIntegerField(null=True, blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    finished_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'api_logs'
        ordering = ['id']
        verbose_name = "API Log"
        verbose_name_plural = "API Logs"

    def __str__(self):
        request = json.dumps(self.request)
        response = json.dumps(self.response)
        return f"{self.method} {self.status_code} {self.url}\n\nRequest:\n{request}\n\nResponse:\n{response}"


class ErrorLog(models.Model):
    """
    A distinct error, deduplicated by hash.
    Each occurrence is an ErrorLogEntry; count tracks how often it was seen.
    """

    error_class = models.CharField(max_length=255, default='Message')
    code = models.CharField(max_length=64, blank=True, default='0')
    level = models.CharField(max_length=16, choices=ErrorLevel.CHOICES, default='ERROR')
    message = models.CharField(max_length=DefaultLimits.ERROR_MESSAGE_LENGTH, blank=True, default='')
    file = models.CharField(max_length=512, blank=True, default='')
    line = models.PositiveIntegerField(null=True, blank=True)
    stack_trace = models.JSONField(null=True, blank=True)
    hash = models.CharField(max_length=32, unique=True)
    count = models.PositiveIntegerField(default=1)
    last_seen_at = models.DateTimeField(null=True, blank=True)
    send_notifications = models.BooleanField(default=True)
    parent = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='children',
    )
    root = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='chain',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'error_logs'
        ordering = ['-last_seen_at']
        verbose_name = "Error Log"
        verbose_name_plural = "Error Logs"

    def __str__(self):
        return f"ErrorLog ({self.id}): {self.level} {self.code} {self.error_class}"

    def generate_hash(self) -> str:
        """Identity of the error: class, level, code and location (or message head)"""
        if self.stack_trace:
            identity = json.dumps(self.stack_trace, sort_keys=True)
        else:
            identity = (self.message or '').split(':')[0]

        key = f"{self.error_class}:::{self.level}:::{self.code}:::{self.file}:::{self.line}:::{identity}"
        return hashlib.md5(key.encode('utf-8')).hexdigest()


class ErrorLogEntry(models.Model):
    """One occurrence of an ErrorLog within an audit request"""

    error_log = models.ForeignKey(
        ErrorLog,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='entries',
    )
    audit_request = models.ForeignKey(
        AuditRequest,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='error_log_entries',
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='error_log_entries',
    )
    message = models.CharField(max_length=DefaultLimits.ERROR_MESSAGE_LENGTH, blank=True, default='')
    full_message = models.TextField(blank=True, default='')
    data = models.JSONField(null=True, blank=True)
    is_retryable = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'error_log_entry'
        ordering = ['id']
        verbose_name = "Error Log Entry"
        verbose_name_plural = "Error Log Entries"

    def __str__(self):
        return f"ErrorLogEntry ({self.id}): {self.message}"

    @property
    def level(self):
        return self.error_log.level if self.error_log_id else None

    @property
    def error_class(self):
        return self.error_log.error_class if self.error_log_id else None
