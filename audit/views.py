"""
Audit API Views

Read-only access to audit requests and the job dispatches correlated with them.
"""

from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from audit.models import AuditRequest
from audit.serializers import AuditRequestSerializer, ApiLogSerializer, ErrorLogEntrySerializer


class AuditRequestViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Read-only ViewSet for audit requests.

    Features:
    - List / retrieve audit requests with counters and ancestor chain
    - API logs and error entries recorded during a request
    - Jobs ran and dispatched by a request
    """

    serializer_class = AuditRequestSerializer
    permission_classes = [IsAuthenticated]
    queryset = AuditRequest.objects.select_related('user').order_by('-id')

    @action(detail=True, methods=['get'], url_path='api-logs')
    def api_logs(self, request, pk=None):
        """
        API calls made during the audit request.

        Example: GET /api/audit/requests/12/api-logs/
        """
        audit_request = self.get_object()
        serializer = ApiLogSerializer(audit_request.api_logs.order_by('id'), many=True)
        return Response(serializer.data)

    @action(detail=True, methods=['get'])
    def errors(self, request, pk=None):
        """
        Error log entries recorded during the audit request.

        Example: GET /api/audit/requests/12/errors/
        """
        audit_request = self.get_object()
        entries = audit_request.error_log_entries.select_related('error_log').order_by('id')
        serializer = ErrorLogEntrySerializer(entries, many=True)
        return Response(serializer.data)

    @action(detail=True, methods=['get'])
    def jobs(self, request, pk=None):
        """
        Jobs that ran during, and jobs dispatched by, the audit request.

        Example: GET /api/audit/requests/12/jobs/
        """
        from jobs.serializers import JobDispatchSerializer

        audit_request = self.get_object()
        context = self.get_serializer_context()
        return Response({
            'ran_jobs': JobDispatchSerializer(
                audit_request.ran_jobs.order_by('id'), many=True, context=context,
            ).data,
            'dispatched_jobs': JobDispatchSerializer(
                audit_request.dispatched_jobs.order_by('id'), many=True, context=context,
            ).data,
        })
