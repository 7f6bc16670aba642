"""
Job services - Business logic for job dispatch records and batches.

These services record facts about job execution (status, timestamps, audit
correlation). Queueing, retries and backoff belong to the task runner.
"""
from datetime import timedelta
from typing import Iterable, List

from django.db import transaction
from django.utils import timezone

from common.refs import generate
from core.constants import JobStatus, RefPrefix
from core.dto import JobDispatchDTO
from core.exceptions import NotFoundError, RefGenerationError, ValidationError
from core.services import BaseService
from core.validators import JobStatusValidator
from .models import JobDispatch, JobBatch, default_timeout_seconds
from .repositories import JobDispatchRepository, JobBatchRepository


class JobDispatchService(BaseService):
    """Service for job dispatch lifecycle records"""

    def __init__(self):
        super().__init__()
        self.dispatch_repo = JobDispatchRepository()

    def create_dispatch(self, dispatch_data: JobDispatchDTO) -> JobDispatch:
        """
        Create a job dispatch record.

        A ref is generated when none is given; an explicit ref is kept as is.
        timeout_at defaults to the configured job timeout from now.

        Raises:
            ValidationError: missing name or invalid status
            RefGenerationError: no ref could be issued
        """
        if not dispatch_data.name:
            raise ValidationError("A job dispatch requires a name", code="MISSING_NAME")

        status = dispatch_data.status or JobStatus.PENDING
        JobStatusValidator.validate_status(status)

        timeout_at = dispatch_data.timeout_at or timezone.now() + timedelta(seconds=default_timeout_seconds())

        try:
            with transaction.atomic():
                job_dispatch = self.dispatch_repo.create(
                    name=dispatch_data.name,
                    ref=dispatch_data.ref or '',
                    status=status,
                    job_batch_id=dispatch_data.job_batch_id,
                    user_id=dispatch_data.user_id,
                    running_audit_request_id=dispatch_data.running_audit_request_id,
                    dispatch_audit_request_id=dispatch_data.dispatch_audit_request_id,
                    timeout_at=timeout_at,
                    data=dispatch_data.data or None,
                )
        except RefGenerationError as e:
            self.log_error(f"Could not issue a ref for job dispatch {dispatch_data.name}", error=e, prefix=e.prefix)
            raise

        self.log_info(f"Job dispatch created: {job_dispatch.name}", job_dispatch_id=job_dispatch.id, ref=job_dispatch.ref)
        return job_dispatch

    def get_dispatch(self, job_dispatch_id: int) -> JobDispatch:
        return self.dispatch_repo.get_by_id_or_raise(job_dispatch_id)

    def assign_ref(self, job_dispatch: JobDispatch) -> JobDispatch:
        """Replace the dispatch's ref with a freshly generated one"""
        old_ref = job_dispatch.ref
        job_dispatch.assign_ref()
        job_dispatch.save(update_fields=['ref', 'updated_at'])
        self.log_info("Job dispatch ref reassigned", job_dispatch_id=job_dispatch.id, old_ref=old_ref, ref=job_dispatch.ref)
        return job_dispatch

    def increment_count(self, ref: str) -> bool:
        """Count another attempt against the pending dispatch with this ref"""
        updated = self.dispatch_repo.increment_count(ref)
        if not updated:
            self.log_debug("No pending dispatch to increment", ref=ref)
        return bool(updated)

    def set_status(self, job_dispatch: JobDispatch, status: str, now=None) -> JobDispatch:
        """
        Record a status change.

        Running stamps ran_at (and clears completed_at); Complete, Exception
        and Failed stamp completed_at. No transition order is enforced.
        """
        JobStatusValidator.validate_status(status)
        now = now or timezone.now()

        fields = {'status': status}
        if status == JobStatus.RUNNING:
            fields['ran_at'] = now
            fields['completed_at'] = None
        elif status in JobStatus.FINISHED:
            fields['completed_at'] = now

        self.dispatch_repo.update(job_dispatch, **fields)
        self.log_debug(f"Job dispatch {job_dispatch.ref} -> {status}", job_dispatch_id=job_dispatch.id)
        return job_dispatch

    def mark_running(self, job_dispatch: JobDispatch, audit_request=None, now=None) -> JobDispatch:
        if audit_request is not None:
            job_dispatch.running_audit_request_id = audit_request.id
        return self.set_status(job_dispatch, JobStatus.RUNNING, now)

    def mark_complete(self, job_dispatch: JobDispatch, now=None) -> JobDispatch:
        return self.set_status(job_dispatch, JobStatus.COMPLETE, now)

    def mark_exception(self, job_dispatch: JobDispatch, now=None) -> JobDispatch:
        return self.set_status(job_dispatch, JobStatus.EXCEPTION, now)

    def mark_failed(self, job_dispatch: JobDispatch, now=None) -> JobDispatch:
        return self.set_status(job_dispatch, JobStatus.FAILED, now)

    def mark_aborted(self, job_dispatch: JobDispatch, now=None) -> JobDispatch:
        return self.set_status(job_dispatch, JobStatus.ABORTED, now)

    def mark_timeout(self, job_dispatch: JobDispatch, now=None) -> JobDispatch:
        return self.set_status(job_dispatch, JobStatus.TIMEOUT, now)

    def attach_running_audit_request(self, job_dispatch: JobDispatch, audit_request) -> JobDispatch:
        """
        Link the audit request the job runs under. The running request's
        parent becomes the dispatching request, if it has none yet.
        """
        self.dispatch_repo.update(job_dispatch, running_audit_request_id=audit_request.id)

        if job_dispatch.dispatch_audit_request_id and not audit_request.parent_id:
            audit_request.parent_id = job_dispatch.dispatch_audit_request_id
            audit_request.save(update_fields=['parent', 'updated_at'])

        return job_dispatch

    def attach_dispatch_audit_request(self, job_dispatch: JobDispatch, audit_request) -> JobDispatch:
        return self.dispatch_repo.update(job_dispatch, dispatch_audit_request_id=audit_request.id)

    def flag_timed_out(self, now=None) -> int:
        """
        Mark Pending/Running dispatches past their timeout as Timeout.

        Returns:
            Number of dispatches flagged
        """
        now = now or timezone.now()
        flagged = self.dispatch_repo.get_timed_out(now).update(status=JobStatus.TIMEOUT, updated_at=now)
        if flagged:
            self.log_warning(f"Flagged {flagged} timed out job dispatches")
        return flagged


class JobBatchService(BaseService):
    """Service for job batch bookkeeping"""

    def __init__(self):
        super().__init__()
        self.batch_repo = JobBatchRepository()
        self.dispatch_repo = JobDispatchRepository()

    def create_for_dispatches(self, name: str, dispatches: Iterable[JobDispatch]) -> JobBatch:
        """
        Create a batch and associate the given dispatches with it.
        The batch name is suffixed with a JB- ref so it is unique.
        """
        dispatch_ids: List[int] = [dispatch.id for dispatch in dispatches if dispatch.id]

        with transaction.atomic():
            batch_ref = generate(RefPrefix.JOB_BATCH)
            batch = self.batch_repo.create(
                name=f"{name} - {batch_ref}",
                total_jobs=len(dispatch_ids),
                pending_jobs=len(dispatch_ids),
                failed_jobs=0,
                failed_job_ids='',
            )
            self.dispatch_repo.get_all(id__in=dispatch_ids).update(job_batch=batch)

        self.log_info(f"Job batch created: {batch.name}", job_batch_id=batch.id, total_jobs=batch.total_jobs)
        return batch

    def _lock(self, batch: JobBatch) -> JobBatch:
        locked = JobBatch.objects.select_for_update().filter(id=batch.id).first()
        if not locked:
            raise NotFoundError(resource_type="JobBatch", resource_id=batch.id)
        return locked

    @transaction.atomic
    def record_job_completed(self, batch: JobBatch) -> JobBatch:
        """Count one job as processed; stamps finished_at when none are pending"""
        batch = self._lock(batch)
        if batch.pending_jobs > 0:
            batch.pending_jobs -= 1
        if batch.pending_jobs == 0 and not batch.finished_at:
            batch.finished_at = timezone.now()
            self.log_info(f"Job batch finished: {batch.name}", job_batch_id=batch.id, failed_jobs=batch.failed_jobs)
        batch.save(update_fields=['pending_jobs', 'finished_at'])
        return batch

    @transaction.atomic
    def record_job_failed(self, batch: JobBatch, job_dispatch: JobDispatch) -> JobBatch:
        batch = self._lock(batch)
        failed_ids = [value for value in batch.failed_job_ids.split(',') if value]
        failed_ids.append(str(job_dispatch.id))
        batch.failed_jobs += 1
        batch.failed_job_ids = ','.join(failed_ids)
        batch.save(update_fields=['failed_jobs', 'failed_job_ids'])
        return batch
