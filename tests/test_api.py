import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from audit.helpers import record_api_log, record_error
from core.dto import JobDispatchDTO

pytestmark = pytest.mark.django_db


@pytest.fixture
def audited_job(make_dispatch, make_audit_request):
    audit_request = make_audit_request()
    for status_code in (200, 200, 502):
        record_api_log(audit_request, service_name='Storage', method='PUT',
                       url='https://storage.example.com/reports/1.csv', status_code=status_code)
    record_error(audit_request, 'Upload failed', error_class='StorageError')
    return make_dispatch(name='ExportReport', running_audit_request_id=audit_request.id)


def test_requires_authentication(make_dispatch):
    make_dispatch()
    response = APIClient().get(reverse('jobdispatch-list'))
    assert response.status_code == 401


def test_list_job_dispatches(api_client, make_dispatch):
    make_dispatch(name='ExportReport')
    make_dispatch(name='SendEmail')

    response = api_client.get(reverse('jobdispatch-list'))
    assert response.status_code == 200
    assert response.data['count'] == 2
    assert [row['name'] for row in response.data['results']] == ['SendEmail', 'ExportReport']


def test_filters(api_client, make_dispatch, dispatch_service):
    export = make_dispatch(name='ExportReport')
    make_dispatch(name='SendEmail')
    dispatch_service.mark_running(export)

    by_status = api_client.get(reverse('jobdispatch-list'), {'status': 'Running'})
    assert [row['id'] for row in by_status.data['results']] == [export.id]

    by_name = api_client.get(reverse('jobdispatch-list'), {'name': 'email'})
    assert [row['name'] for row in by_name.data['results']] == ['SendEmail']

    by_ref = api_client.get(reverse('jobdispatch-list'), {'ref': export.ref})
    assert by_ref.data['count'] == 1


def test_retrieve_base_fields(api_client, audited_job):
    response = api_client.get(reverse('jobdispatch-detail', args=[audited_job.id]))

    assert response.status_code == 200
    assert response.data['ref'] == audited_job.ref
    assert response.data['api_log_count'] == 3
    assert response.data['error_log_count'] == 1
    assert 'apiLogs' not in response.data
    assert isinstance(response.data['created_at'], str)


def test_retrieve_with_derived_fields(api_client, audited_job):
    response = api_client.get(
        reverse('jobdispatch-detail', args=[audited_job.id]),
        {'include': 'apiLogs,errors,logs', 'api_log_fields': 'url,status_code', 'error_fields': 'message'},
    )

    assert response.status_code == 200
    assert [entry['status_code'] for entry in response.data['apiLogs']] == [200, 200, 502]
    assert set(response.data['apiLogs'][0]) == {'url', 'status_code'}
    assert response.data['errors'] == [{'message': 'Upload failed'}]
    assert response.data['logs'] == ''


def test_unknown_include_is_bad_request(api_client, audited_job):
    response = api_client.get(reverse('jobdispatch-detail', args=[audited_job.id]), {'include': 'secrets'})
    assert response.status_code == 400
    assert 'include' in response.data


def test_unknown_sub_field_is_bad_request(api_client, audited_job):
    response = api_client.get(
        reverse('jobdispatch-list'),
        {'include': 'apiLogs', 'api_log_fields': 'url,password'},
    )
    assert response.status_code == 400


def test_read_only(api_client, make_dispatch):
    job = make_dispatch()
    assert api_client.post(reverse('jobdispatch-list'), {'name': 'New'}).status_code == 405
    assert api_client.delete(reverse('jobdispatch-detail', args=[job.id])).status_code == 405


def test_job_batches(api_client, make_dispatch):
    from jobs.services import JobBatchService

    batch = JobBatchService().create_for_dispatches('Nightly', [make_dispatch()])
    response = api_client.get(reverse('jobbatch-detail', args=[batch.id]))

    assert response.status_code == 200
    assert response.data['total_jobs'] == 1
    assert response.data['progress'] == 0


def test_audit_request_detail(api_client, make_audit_request, dispatch_service):
    root = make_audit_request(request={'method': 'POST'}, response={'status': 202})
    child = make_audit_request(url='job://ExportReport')
    dispatch_service.create_dispatch(JobDispatchDTO(
        name='ExportReport', dispatch_audit_request_id=root.id, running_audit_request_id=child.id,
    ))

    response = api_client.get(reverse('audit:auditrequest-detail', args=[child.id]))
    assert response.status_code == 200
    assert response.data['ancestor_ids'] == [root.id, child.id]
    assert response.data['ran_jobs_count'] == 1

    root_response = api_client.get(reverse('audit:auditrequest-detail', args=[root.id]))
    assert root_response.data['http_method'] == 'POST'
    assert root_response.data['http_status_code'] == 202
    assert root_response.data['dispatched_jobs_count'] == 1


def test_audit_request_actions(api_client, audited_job):
    audit_request_id = audited_job.running_audit_request_id

    api_logs = api_client.get(reverse('audit:auditrequest-api-logs', args=[audit_request_id]))
    assert len(api_logs.data) == 3

    errors = api_client.get(reverse('audit:auditrequest-errors', args=[audit_request_id]))
    assert errors.data[0]['error_class'] == 'StorageError'

    jobs = api_client.get(reverse('audit:auditrequest-jobs', args=[audit_request_id]))
    assert [job['ref'] for job in jobs.data['ran_jobs']] == [audited_job.ref]
    assert jobs.data['dispatched_jobs'] == []

    detail = api_client.get(reverse('jobdispatch-detail', args=[audited_job.id]))
    assert jobs.data['ran_jobs'][0]['created_at'] == detail.data['created_at']
    assert jobs.data['ran_jobs'][0]['timeout_at'] == detail.data['timeout_at']


def test_job_batch_filter(api_client, make_dispatch):
    from jobs.services import JobBatchService

    batched = make_dispatch(name='ExportReport')
    make_dispatch(name='SendEmail')
    batch = JobBatchService().create_for_dispatches('Nightly', [batched])

    response = api_client.get(reverse('jobdispatch-list'), {'job_batch': batch.id})
    assert [row['id'] for row in response.data['results']] == [batched.id]


def test_non_numeric_job_batch_is_bad_request(api_client, make_dispatch):
    make_dispatch()
    response = api_client.get(reverse('jobdispatch-list'), {'job_batch': 'abc'})
    assert response.status_code == 400
    assert 'job_batch' in response.data


def test_request_id_header(api_client, make_dispatch):
    response = api_client.get(reverse('jobdispatch-list'), HTTP_X_REQUEST_ID='trace-123')
    assert response['X-Request-ID'] == 'trace-123'

    generated = api_client.get(reverse('jobdispatch-list'))
    assert len(generated['X-Request-ID']) == 8
