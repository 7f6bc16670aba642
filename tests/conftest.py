import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from audit.models import AuditRequest
from core.dto import JobDispatchDTO
from jobs.services import JobDispatchService


@pytest.fixture
def user(db):
    return get_user_model().objects.create_user(
        username='operator',
        email='operator@example.com',
        password='not-a-real-password',
    )


@pytest.fixture
def api_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def make_audit_request(db):
    def _make(**fields):
        fields.setdefault('url', 'https://app.example.com/api/reports/export')
        fields.setdefault('environment', 'testing')
        return AuditRequest.objects.create(**fields)
    return _make


@pytest.fixture
def dispatch_service():
    return JobDispatchService()


@pytest.fixture
def make_dispatch(db, dispatch_service):
    def _make(name='ExportReport', **fields):
        return dispatch_service.create_dispatch(JobDispatchDTO(name=name, **fields))
    return _make
