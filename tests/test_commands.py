import json
from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError
from django.utils import timezone

from core.constants import JobStatus
from jobs.models import JobDispatch

pytestmark = pytest.mark.django_db


def run(*args):
    out = StringIO()
    call_command(*args, stdout=out)
    return out.getvalue()


def test_sweep_timed_out_jobs(make_dispatch):
    overdue = make_dispatch(timeout_at=timezone.now() - timedelta(seconds=5))

    assert 'DRY RUN: 1' in run('sweep_timed_out_jobs', '--dry-run')
    assert JobDispatch.objects.get(id=overdue.id).status == JobStatus.PENDING

    assert 'Flagged 1' in run('sweep_timed_out_jobs')
    assert JobDispatch.objects.get(id=overdue.id).status == JobStatus.TIMEOUT


def test_list_recent(make_dispatch):
    job = make_dispatch(name='ExportReport')
    output = run('job_dispatches')
    assert job.ref in output
    assert 'Total: 1' in output


def test_list_recent_json_with_filters(make_dispatch, dispatch_service):
    export = make_dispatch(name='ExportReport')
    make_dispatch(name='SendEmail')
    dispatch_service.mark_failed(export)

    rows = json.loads(run('job_dispatches', '--json', '--status=Failed'))
    assert [row['ref'] for row in rows] == [export.ref]


def test_list_for_audit_request(make_dispatch, make_audit_request):
    audit_request = make_audit_request()
    ran = make_dispatch(name='Ran', running_audit_request_id=audit_request.id)
    dispatched = make_dispatch(name='Dispatched', dispatch_audit_request_id=audit_request.id)

    payload = json.loads(run('job_dispatches', '--json', f'--audit-request={audit_request.id}'))
    assert [row['id'] for row in payload['ran']] == [ran.id]
    assert [row['id'] for row in payload['dispatched']] == [dispatched.id]


def test_missing_audit_request():
    with pytest.raises(CommandError):
        run('job_dispatches', '--audit-request=999')


def test_detail(make_dispatch):
    job = make_dispatch(data={'report': 'monthly'}, running_audit_request_id=31337)
    output = run('job_dispatches', f'--job-id={job.id}')

    assert f'Ref: {job.ref}' in output
    assert '#31337 (missing)' in output
    assert '"report": "monthly"' in output


def test_detail_json(make_dispatch):
    job = make_dispatch()
    data = json.loads(run('job_dispatches', '--json', f'--job-id={job.id}'))
    assert data['ref'] == job.ref
    assert data['apiLogs'] == []


def test_detail_missing():
    with pytest.raises(CommandError):
        run('job_dispatches', '--job-id=999')


def test_detail_by_ref(make_dispatch):
    job = make_dispatch(name='ExportReport')
    output = run('job_dispatches', f'--ref={job.ref}')
    assert f'Job Dispatch #{job.id}' in output

    with pytest.raises(CommandError):
        run('job_dispatches', '--ref=JD-0')
