"""
Job Dispatch Models

A JobDispatch is one tracked execution attempt of a named background job.
It is correlated with two audit requests: the one that dispatched it and the
one it ran under. Scheduling itself belongs to the task runner; these rows
only record what happened.
"""

from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone

from common.models import RefModel
from core.constants import JobStatus, RefPrefix, DefaultLimits


class JobDispatchQuerySet(models.QuerySet):
    """Lookup helpers for job dispatches"""

    def pending(self, ref):
        """The pending dispatch with the given ref"""
        return self.filter(ref=ref, status=JobStatus.PENDING).first()

    def running(self, ref):
        """The running dispatch with the given ref"""
        return self.filter(ref=ref, status=JobStatus.RUNNING).first()

    def active(self):
        return self.filter(status__in=JobStatus.ACTIVE)

    def for_audit_request(self, audit_request):
        """Dispatches that ran under or were dispatched by the audit request"""
        audit_request_id = getattr(audit_request, 'id', audit_request)
        return self.filter(
            models.Q(running_audit_request_id=audit_request_id) |
            models.Q(dispatch_audit_request_id=audit_request_id)
        )

    def timed_out(self, now=None):
        """Active dispatches whose timeout has passed"""
        now = now or timezone.now()
        default_cutoff = now - timedelta(seconds=default_timeout_seconds())
        return self.active().filter(
            models.Q(timeout_at__lt=now) |
            models.Q(timeout_at__isnull=True, created_at__lt=default_cutoff)
        )


def default_timeout_seconds():
    return getattr(settings, 'JOBTRAIL_DEFAULT_JOB_TIMEOUT_SECONDS', DefaultLimits.JOB_TIMEOUT_SECONDS)


class JobBatch(models.Model):
    """A group of job dispatches tracked together"""

    name = models.CharField(max_length=255)
    total_jobs = models.PositiveIntegerField(default=0)
    pending_jobs = models.PositiveIntegerField(default=0)
    failed_jobs = models.PositiveIntegerField(default=0)
    failed_job_ids = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(default=timezone.now)
    finished_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'job_batches'
        ordering = ['-id']
        verbose_name = "Job Batch"
        verbose_name_plural = "Job Batches"

    def __str__(self):
        return f"{self.name} ({self.processed_jobs}/{self.total_jobs})"

    @property
    def processed_jobs(self):
        """Number of jobs no longer pending"""
        return self.total_jobs - self.pending_jobs

    @property
    def progress(self):
        if not self.total_jobs:
            return 0
        return round(self.processed_jobs / self.total_jobs, 1)


class JobDispatch(RefModel):
    """
    One execution attempt of a named job.

    running_audit_request_id / dispatch_audit_request_id point at audit
    requests owned by the audit app. They carry no database constraint, so a
    linked row may be gone: always go through the *_or_none() accessors.
    """

    ref_prefix = RefPrefix.JOB_DISPATCH

    name = models.CharField(max_length=255, db_index=True)
    status = models.CharField(
        max_length=16,
        choices=JobStatus.CHOICES,
        default=JobStatus.PENDING,
        db_index=True,
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='job_dispatches',
    )
    job_batch = models.ForeignKey(
        JobBatch,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='job_dispatches',
    )
    running_audit_request = models.ForeignKey(
        'audit.AuditRequest',
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        null=True,
        blank=True,
        related_name='+',
        help_text="Audit request the job ran under",
    )
    dispatch_audit_request = models.ForeignKey(
        'audit.AuditRequest',
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        null=True,
        blank=True,
        related_name='+',
        help_text="Audit request that queued the job",
    )
    count = models.PositiveIntegerField(default=1, help_text="Number of execution attempts")
    ran_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    timeout_at = models.DateTimeField(null=True, blank=True)
    run_time_ms = models.PositiveBigIntegerField(null=True, blank=True)
    data = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = JobDispatchQuerySet.as_manager()

    class Meta:
        db_table = 'job_dispatch'
        ordering = ['-id']
        verbose_name = "Job Dispatch"
        verbose_name_plural = "Job Dispatches"
        indexes = [
            models.Index(fields=['ref', 'status'], name='job_dispatch_ref_status_idx'),
            models.Index(fields=['status', 'timeout_at'], name='job_dispatch_timeout_idx'),
        ]

    def __str__(self):
        created = self.created_at.strftime('%Y-%m-%d %H:%M:%S') if self.created_at else 'unsaved'
        return f"<JobDispatch {self.id} ({self.ref}) status='{self.status}' count='{self.count}' created='{created}'>"

    def save(self, *args, **kwargs):
        """Keep run_time_ms in step with ran_at / completed_at"""
        self.run_time_ms = self.compute_run_time_ms()

        update_fields = kwargs.get('update_fields')
        if update_fields is not None and ({'ran_at', 'completed_at'} & set(update_fields)):
            kwargs['update_fields'] = set(update_fields) | {'run_time_ms'}

        super().save(*args, **kwargs)

    def compute_run_time_ms(self):
        if self.ran_at and self.completed_at:
            delta = self.completed_at - self.ran_at
            return max(int(delta.total_seconds() * 1000), 0)
        return None

    def is_timed_out(self, now=None) -> bool:
        """
        Whether the job is past its timeout.
        Without a timeout_at, jobs time out a default period after creation.
        """
        now = now or timezone.now()
        if self.timeout_at:
            return self.timeout_at < now
        if self.created_at:
            return self.created_at + timedelta(seconds=default_timeout_seconds()) < now
        return False

    def running_audit_request_or_none(self):
        """The running AuditRequest, or None if unlinked or missing"""
        return self._audit_request_or_none('running_audit_request')

    def dispatch_audit_request_or_none(self):
        """The dispatching AuditRequest, or None if unlinked or missing"""
        return self._audit_request_or_none('dispatch_audit_request')

    def _audit_request_or_none(self, field_name):
        from audit.models import AuditRequest

        field = self._meta.get_field(field_name)
        if getattr(self, field.attname) is None:
            return None
        if field.is_cached(self):
            return field.get_cached_value(self)

        audit_request = AuditRequest.objects.filter(id=getattr(self, field.attname)).first()
        if audit_request is not None:
            field.set_cached_value(self, audit_request)
        return audit_request
