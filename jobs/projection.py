"""
Job dispatch projection.

Builds the read-only view of a JobDispatch handed to API consumers, in two
phases:

1. build_job_dispatch_view(): the fields available without extra queries,
   plus the counters stored on the running audit request.
2. resolve_derived_fields(): logs / errors / apiLogs, computed only when
   requested so unrequested fields cost no queries.

A missing running audit request never fails the projection; counters fall
back to 0, logs to "" and collections to [].
"""
import logging

from audit.serializers import ApiLogSerializer, ErrorLogEntrySerializer
from core.dto import JobDispatchView
from core.validators import FieldRequestValidator

logger = logging.getLogger(__name__)


def _resolve_logs(audit_request, sub_fields):
    if audit_request is None:
        return ''
    return audit_request.logs or ''


def _resolve_errors(audit_request, sub_fields):
    if audit_request is None:
        return []
    entries = audit_request.error_log_entries.select_related('error_log').order_by('id')
    fields = sub_fields or ErrorLogEntrySerializer.default_fields
    return list(ErrorLogEntrySerializer(entries, many=True, fields=fields).data)


def _resolve_api_logs(audit_request, sub_fields):
    if audit_request is None:
        return []
    api_logs = audit_request.api_logs.order_by('id')
    fields = sub_fields or ApiLogSerializer.default_fields
    return list(ApiLogSerializer(api_logs, many=True, fields=fields).data)


# Derived field name -> (resolver, allowed sub-fields)
DERIVED_FIELDS = {
    'logs': (_resolve_logs, None),
    'errors': (_resolve_errors, ErrorLogEntrySerializer.available_fields()),
    'apiLogs': (_resolve_api_logs, ApiLogSerializer.available_fields()),
}


def build_job_dispatch_view(job_dispatch) -> JobDispatchView:
    """Eager projection of a job dispatch"""
    audit_request = job_dispatch.running_audit_request_or_none()

    return JobDispatchView(
        id=job_dispatch.id,
        name=job_dispatch.name,
        ref=job_dispatch.ref,
        job_batch_id=job_dispatch.job_batch_id,
        running_audit_request_id=job_dispatch.running_audit_request_id,
        dispatch_audit_request_id=job_dispatch.dispatch_audit_request_id,
        status=job_dispatch.status,
        ran_at=job_dispatch.ran_at,
        completed_at=job_dispatch.completed_at,
        timeout_at=job_dispatch.timeout_at,
        run_time_ms=job_dispatch.run_time_ms,
        count=job_dispatch.count,
        created_at=job_dispatch.created_at,
        api_log_count=audit_request.api_log_count if audit_request else 0,
        error_log_count=audit_request.error_log_count if audit_request else 0,
        log_line_count=audit_request.log_line_count if audit_request else 0,
    )


def resolve_derived_fields(job_dispatch, include=None) -> dict:
    """
    Compute the requested derived fields.

    Args:
        job_dispatch: JobDispatch instance
        include: derived fields to compute, e.g. ['logs'] or
            {'apiLogs': ['url', 'status_code'], 'errors': True}

    Raises:
        InvalidFieldRequestError: unknown field or sub-field requested
    """
    allowed = {name: sub_fields for name, (_, sub_fields) in DERIVED_FIELDS.items()}
    requested = FieldRequestValidator.normalize(include, allowed)
    if not requested:
        return {}

    audit_request = job_dispatch.running_audit_request_or_none()
    if audit_request is None and job_dispatch.running_audit_request_id is not None:
        logger.debug(
            f"Running audit request {job_dispatch.running_audit_request_id} "
            f"for job dispatch {job_dispatch.id} no longer exists"
        )

    derived = {}
    for name, sub_fields in requested.items():
        resolver, _ = DERIVED_FIELDS[name]
        derived[name] = resolver(audit_request, sub_fields)
    return derived


def project_job_dispatch(job_dispatch, include=None) -> dict:
    """Base fields always, plus whichever derived fields were requested"""
    data = build_job_dispatch_view(job_dispatch).to_dict()
    data.update(resolve_derived_fields(job_dispatch, include))
    return data
