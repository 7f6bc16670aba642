"""
Job Dispatch API Views

Read-only: job dispatches are recorded by the task runner through
JobDispatchService, never edited over the API.
"""

from rest_framework import viewsets, serializers
from rest_framework.permissions import IsAuthenticated

from core.exceptions import InvalidFieldRequestError
from core.validators import FieldRequestValidator
from jobs.models import JobDispatch, JobBatch
from jobs.projection import DERIVED_FIELDS
from jobs.serializers import JobDispatchSerializer, JobBatchSerializer

# Query parameter carrying the sub-fields for each derived field
SUB_FIELD_PARAMS = {
    'errors': 'error_fields',
    'apiLogs': 'api_log_fields',
}


def _split(value):
    return [part.strip() for part in (value or '').split(',') if part.strip()]


def parse_include(query_params):
    """
    Build the derived-field request from the query string.

    Example: ?include=logs,apiLogs&api_log_fields=url,status_code
        -> {'logs': True, 'apiLogs': ['url', 'status_code']}

    Raises:
        serializers.ValidationError: unknown field or sub-field
    """
    include = {}
    for name in _split(query_params.get('include')):
        sub_fields = _split(query_params.get(SUB_FIELD_PARAMS.get(name, '')))
        include[name] = sub_fields or True

    allowed = {name: sub_fields for name, (_, sub_fields) in DERIVED_FIELDS.items()}
    try:
        FieldRequestValidator.normalize(include, allowed)
    except InvalidFieldRequestError as e:
        raise serializers.ValidationError({'include': [e.message]})

    return include


class JobDispatchViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Read-only ViewSet for job dispatches.

    Query params:
    - status, name (partial), ref: filters
    - include: comma separated derived fields (logs, errors, apiLogs)
    - error_fields / api_log_fields: sub-fields for errors / apiLogs

    Example: GET /api/job-dispatches/5/?include=apiLogs&api_log_fields=url,status_code
    """

    serializer_class = JobDispatchSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        queryset = JobDispatch.objects.order_by('-id')
        params = self.request.query_params

        if params.get('status'):
            queryset = queryset.filter(status=params['status'])
        if params.get('name'):
            queryset = queryset.filter(name__icontains=params['name'])
        if params.get('ref'):
            queryset = queryset.filter(ref=params['ref'])
        if params.get('job_batch'):
            try:
                job_batch_id = int(params['job_batch'])
            except ValueError:
                raise serializers.ValidationError({'job_batch': ['A valid integer is required.']})
            queryset = queryset.filter(job_batch_id=job_batch_id)

        return queryset

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['include'] = parse_include(self.request.query_params)
        return context


class JobBatchViewSet(viewsets.ReadOnlyModelViewSet):
    """Read-only ViewSet for job batches"""

    serializer_class = JobBatchSerializer
    permission_classes = [IsAuthenticated]
    queryset = JobBatch.objects.order_by('-id')
