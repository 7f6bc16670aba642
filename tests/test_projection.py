import pytest
from django.db import connection
from django.test.utils import CaptureQueriesContext

from audit.helpers import append_log, record_api_log, record_error
from core.exceptions import InvalidFieldRequestError, ValidationError
from jobs.projection import build_job_dispatch_view, project_job_dispatch, resolve_derived_fields

pytestmark = pytest.mark.django_db


@pytest.fixture
def busy_audit_request(make_audit_request):
    audit_request = make_audit_request()
    for status_code in (200, 201, 500):
        record_api_log(
            audit_request,
            service_name='Billing',
            method='POST',
            url='https://billing.example.com/v1/invoices',
            status_code=status_code,
            run_time_ms=120,
        )
    record_error(audit_request, 'Invoice service returned 500', error_class='BillingError')
    append_log(audit_request, 'info', 'export started')
    append_log(audit_request, 'info', 'export finished')
    audit_request.refresh_from_db()
    return audit_request


class TestEagerView:
    def test_no_running_audit_request(self, make_dispatch):
        job = make_dispatch()
        view = build_job_dispatch_view(job)

        assert view.ref == job.ref
        assert view.name == 'ExportReport'
        assert view.status == 'Pending'
        assert view.running_audit_request_id is None
        assert view.api_log_count == 0
        assert view.error_log_count == 0
        assert view.log_line_count == 0

    def test_counters_come_from_running_audit_request(self, make_dispatch, busy_audit_request):
        job = make_dispatch(running_audit_request_id=busy_audit_request.id)
        view = build_job_dispatch_view(job)

        assert view.api_log_count == 3
        assert view.error_log_count == 1
        assert view.log_line_count == 2

    def test_dangling_audit_request_id(self, make_dispatch):
        job = make_dispatch(running_audit_request_id=987654)
        data = project_job_dispatch(job, ['logs', 'errors', 'apiLogs'])

        assert data['running_audit_request_id'] == 987654
        assert data['api_log_count'] == 0
        assert data['logs'] == ''
        assert data['errors'] == []
        assert data['apiLogs'] == []


class TestDerivedFields:
    def test_nothing_requested(self, make_dispatch, busy_audit_request):
        job = make_dispatch(running_audit_request_id=busy_audit_request.id)
        data = project_job_dispatch(job)

        assert 'logs' not in data
        assert 'errors' not in data
        assert 'apiLogs' not in data

    def test_unrequested_fields_cost_no_queries(self, make_dispatch, busy_audit_request):
        job = make_dispatch(running_audit_request_id=busy_audit_request.id)
        with CaptureQueriesContext(connection) as queries:
            assert resolve_derived_fields(job, None) == {}
        assert len(queries) == 0

    def test_no_audit_request_defaults(self, make_dispatch):
        job = make_dispatch()
        data = project_job_dispatch(job, ['logs', 'errors', 'apiLogs'])

        assert data['logs'] == ''
        assert data['errors'] == []
        assert data['apiLogs'] == []

    def test_logs(self, make_dispatch, busy_audit_request):
        job = make_dispatch(running_audit_request_id=busy_audit_request.id)
        logs = project_job_dispatch(job, ['logs'])['logs']

        assert 'INFO export started' in logs
        assert 'INFO export finished' in logs

    def test_api_logs_default_shape(self, make_dispatch, busy_audit_request):
        job = make_dispatch(running_audit_request_id=busy_audit_request.id)
        api_logs = project_job_dispatch(job, {'apiLogs': True})['apiLogs']

        assert len(api_logs) == 3
        assert [entry['status_code'] for entry in api_logs] == [200, 201, 500]
        assert set(api_logs[0]) == {'id', 'service_name', 'method', 'url', 'status_code', 'run_time_ms', 'created_at'}

    def test_api_logs_sub_fields(self, make_dispatch, busy_audit_request):
        job = make_dispatch(running_audit_request_id=busy_audit_request.id)
        api_logs = project_job_dispatch(job, {'apiLogs': ['url', 'status_code']})['apiLogs']

        assert api_logs == [
            {'url': 'https://billing.example.com/v1/invoices', 'status_code': 200},
            {'url': 'https://billing.example.com/v1/invoices', 'status_code': 201},
            {'url': 'https://billing.example.com/v1/invoices', 'status_code': 500},
        ]

    def test_errors_sub_fields(self, make_dispatch, busy_audit_request):
        job = make_dispatch(running_audit_request_id=busy_audit_request.id)
        errors = project_job_dispatch(job, {'errors': {'message': True, 'error_class': True, 'data': False}})['errors']

        assert errors == [{'error_class': 'BillingError', 'message': 'Invoice service returned 500'}]

    def test_false_selection_is_skipped(self, make_dispatch):
        job = make_dispatch()
        assert 'logs' not in project_job_dispatch(job, {'logs': False})

    def test_unknown_field_is_rejected(self, make_dispatch):
        job = make_dispatch()
        with pytest.raises(InvalidFieldRequestError) as exc_info:
            project_job_dispatch(job, ['logs', 'stackTraces'])

        assert exc_info.value.field == 'stackTraces'
        assert exc_info.value.allowed == ['apiLogs', 'errors', 'logs']
        assert isinstance(exc_info.value, ValidationError)

    def test_unknown_sub_field_is_rejected(self, make_dispatch):
        job = make_dispatch()
        with pytest.raises(InvalidFieldRequestError) as exc_info:
            project_job_dispatch(job, {'apiLogs': ['url', 'password']})

        assert exc_info.value.field == 'apiLogs.password'
