from datetime import timedelta

import pytest
from django.utils import timezone

from core.constants import JobStatus
from core.exceptions import NotFoundError, ValidationError
from jobs.models import JobDispatch, JobBatch
from jobs.services import JobBatchService

pytestmark = pytest.mark.django_db


class TestCreateDispatch:
    def test_defaults(self, make_dispatch):
        before = timezone.now()
        job = make_dispatch()

        assert job.status == JobStatus.PENDING
        assert job.count == 1
        assert job.run_time_ms is None
        assert before + timedelta(seconds=89) < job.timeout_at < timezone.now() + timedelta(seconds=91)

    def test_timeout_setting(self, make_dispatch, settings):
        settings.JOBTRAIL_DEFAULT_JOB_TIMEOUT_SECONDS = 10
        job = make_dispatch()
        assert job.timeout_at < timezone.now() + timedelta(seconds=11)

    def test_name_is_required(self, make_dispatch):
        with pytest.raises(ValidationError) as exc_info:
            make_dispatch(name='')
        assert exc_info.value.code == 'MISSING_NAME'

    def test_invalid_status(self, make_dispatch):
        with pytest.raises(ValidationError) as exc_info:
            make_dispatch(status='Sleeping')
        assert exc_info.value.code == 'INVALID_JOB_STATUS'

    def test_links_user(self, make_dispatch, user):
        job = make_dispatch(user_id=user.id)
        assert JobDispatch.objects.get(id=job.id).user == user

    def test_get_dispatch_missing(self, dispatch_service):
        with pytest.raises(NotFoundError):
            dispatch_service.get_dispatch(424242)


class TestStatus:
    def test_running_then_complete(self, make_dispatch, dispatch_service):
        job = make_dispatch()
        started = timezone.now()

        dispatch_service.mark_running(job, now=started)
        assert job.status == JobStatus.RUNNING
        assert job.ran_at == started
        assert job.completed_at is None

        dispatch_service.mark_complete(job, now=started + timedelta(milliseconds=1500))
        job.refresh_from_db()
        assert job.status == JobStatus.COMPLETE
        assert job.run_time_ms == 1500

    @pytest.mark.parametrize('mark', ['mark_exception', 'mark_failed'])
    def test_finished_statuses_stamp_completed_at(self, make_dispatch, dispatch_service, mark):
        job = make_dispatch()
        dispatch_service.mark_running(job)
        getattr(dispatch_service, mark)(job)
        assert job.completed_at is not None
        assert job.run_time_ms is not None

    def test_aborted_and_timeout_leave_completed_at(self, make_dispatch, dispatch_service):
        job = make_dispatch()
        dispatch_service.mark_aborted(job)
        assert job.status == JobStatus.ABORTED
        assert job.completed_at is None

        dispatch_service.mark_timeout(job)
        assert job.status == JobStatus.TIMEOUT
        assert job.completed_at is None

    def test_any_transition_is_recorded(self, make_dispatch, dispatch_service):
        job = make_dispatch()
        dispatch_service.mark_complete(job)
        dispatch_service.mark_running(job)
        job.refresh_from_db()
        assert job.status == JobStatus.RUNNING
        assert job.completed_at is None

    def test_mark_running_links_audit_request(self, make_dispatch, dispatch_service, make_audit_request):
        audit_request = make_audit_request()
        job = make_dispatch()
        dispatch_service.mark_running(job, audit_request=audit_request)
        job.refresh_from_db()
        assert job.running_audit_request_id == audit_request.id

    def test_rejects_unknown_status(self, make_dispatch, dispatch_service):
        with pytest.raises(ValidationError):
            dispatch_service.set_status(make_dispatch(), 'Paused')


class TestAuditLinks:
    def test_attach_running_sets_parent(self, make_dispatch, dispatch_service, make_audit_request):
        dispatcher = make_audit_request(url='https://app.example.com/api/reports')
        runner = make_audit_request(url='job://ExportReport')
        job = make_dispatch(dispatch_audit_request_id=dispatcher.id)

        dispatch_service.attach_running_audit_request(job, runner)
        runner.refresh_from_db()

        assert job.running_audit_request_or_none() == runner
        assert job.dispatch_audit_request_or_none() == dispatcher
        assert runner.parent_id == dispatcher.id

    def test_attach_dispatch(self, make_dispatch, dispatch_service, make_audit_request):
        dispatcher = make_audit_request()
        job = make_dispatch()
        dispatch_service.attach_dispatch_audit_request(job, dispatcher)
        assert JobDispatch.objects.get(id=job.id).dispatch_audit_request_id == dispatcher.id

    def test_missing_audit_request_is_none(self, make_dispatch):
        job = make_dispatch(running_audit_request_id=555, dispatch_audit_request_id=556)
        job = JobDispatch.objects.get(id=job.id)
        assert job.running_audit_request_or_none() is None
        assert job.dispatch_audit_request_or_none() is None

    def test_for_audit_request(self, make_dispatch, make_audit_request):
        audit_request = make_audit_request()
        ran = make_dispatch(name='Ran', running_audit_request_id=audit_request.id)
        dispatched = make_dispatch(name='Dispatched', dispatch_audit_request_id=audit_request.id)
        make_dispatch(name='Unrelated')

        found = set(JobDispatch.objects.for_audit_request(audit_request).values_list('id', flat=True))
        assert found == {ran.id, dispatched.id}
        assert list(audit_request.ran_jobs) == [ran]
        assert list(audit_request.dispatched_jobs) == [dispatched]


class TestCountAndTimeout:
    def test_increment_count_on_pending(self, make_dispatch, dispatch_service):
        job = make_dispatch()
        assert dispatch_service.increment_count(job.ref) is True
        assert dispatch_service.increment_count(job.ref) is True
        job.refresh_from_db()
        assert job.count == 3

    def test_increment_count_ignores_running(self, make_dispatch, dispatch_service):
        job = make_dispatch()
        dispatch_service.mark_running(job)
        assert dispatch_service.increment_count(job.ref) is False
        job.refresh_from_db()
        assert job.count == 1

    def test_pending_and_running_lookups(self, make_dispatch, dispatch_service):
        job = make_dispatch()
        assert JobDispatch.objects.pending(job.ref) == job
        assert JobDispatch.objects.running(job.ref) is None
        dispatch_service.mark_running(job)
        assert JobDispatch.objects.running(job.ref) == job

    def test_is_timed_out(self, make_dispatch):
        now = timezone.now()
        job = make_dispatch(timeout_at=now + timedelta(seconds=30))
        assert job.is_timed_out(now) is False
        assert job.is_timed_out(now + timedelta(seconds=31)) is True

    def test_is_timed_out_without_timeout_at(self, make_dispatch):
        job = make_dispatch()
        JobDispatch.objects.filter(id=job.id).update(timeout_at=None)
        job.refresh_from_db()
        assert job.is_timed_out(job.created_at + timedelta(seconds=60)) is False
        assert job.is_timed_out(job.created_at + timedelta(seconds=91)) is True

    def test_flag_timed_out(self, make_dispatch, dispatch_service):
        now = timezone.now()
        overdue = make_dispatch(name='Overdue', timeout_at=now - timedelta(seconds=1))
        running_overdue = make_dispatch(name='RunningOverdue', timeout_at=now - timedelta(seconds=1))
        dispatch_service.mark_running(running_overdue)
        finished = make_dispatch(name='Finished', timeout_at=now - timedelta(seconds=1))
        dispatch_service.mark_complete(finished)
        on_time = make_dispatch(name='OnTime', timeout_at=now + timedelta(minutes=5))

        assert dispatch_service.flag_timed_out(now) == 2

        statuses = dict(JobDispatch.objects.values_list('name', 'status'))
        assert statuses[overdue.name] == JobStatus.TIMEOUT
        assert statuses[running_overdue.name] == JobStatus.TIMEOUT
        assert statuses[finished.name] == JobStatus.COMPLETE
        assert statuses[on_time.name] == JobStatus.PENDING


class TestJobBatch:
    def test_create_for_dispatches(self, make_dispatch):
        jobs = [make_dispatch(name=f'Export{i}') for i in range(3)]
        batch = JobBatchService().create_for_dispatches('Nightly export', jobs)

        assert batch.name == 'Nightly export - JB-10001'
        assert batch.total_jobs == 3
        assert batch.pending_jobs == 3
        assert JobDispatch.objects.filter(job_batch=batch).count() == 3

    def test_progress_and_finish(self, make_dispatch):
        jobs = [make_dispatch(name=f'Export{i}') for i in range(2)]
        service = JobBatchService()
        batch = service.create_for_dispatches('Nightly export', jobs)

        batch = service.record_job_failed(batch, jobs[0])
        batch = service.record_job_completed(batch)
        assert batch.processed_jobs == 1
        assert batch.progress == 0.5
        assert batch.finished_at is None

        batch = service.record_job_completed(batch)
        batch.refresh_from_db()
        assert batch.pending_jobs == 0
        assert batch.failed_jobs == 1
        assert batch.failed_job_ids == str(jobs[0].id)
        assert batch.finished_at is not None

    def test_empty_batch_progress(self):
        assert JobBatch(name='Empty').progress == 0
