"""
Audit Helper Functions

Record API calls, errors and log lines against an AuditRequest while keeping
its counters (api_log_count, error_log_count, log_line_count) in step. All
counter changes are single UPDATE statements, so concurrent writers to the
same audit request never lose increments.
"""

import logging

from django.db import transaction
from django.db.models import F, Value, TextField
from django.db.models.functions import Coalesce, Concat
from django.utils import timezone

from audit.models import AuditRequest, ApiLog, ErrorLog, ErrorLogEntry
from core.constants import ErrorLevel, DefaultLimits

logger = logging.getLogger(__name__)


def append_log(audit_request, level, message):
    """
    Append a timestamped line to the audit request's log text.

    Concatenation happens in SQL so parallel writers cannot overwrite each
    other. Returns the number of lines added.
    """
    timestamp = timezone.now().strftime('%Y-%m-%d %H:%M:%S')
    entry = f"\n{timestamp} {str(level).upper()} {message}"
    line_count = entry.count("\n")

    AuditRequest.objects.filter(id=audit_request.id).update(
        logs=Concat(
            Coalesce(F('logs'), Value(''), output_field=TextField()),
            Value(entry),
            output_field=TextField(),
        ),
        log_line_count=F('log_line_count') + line_count,
    )
    return line_count


def record_api_log(audit_request, **fields):
    """
    Create an ApiLog for an outgoing API call and bump api_log_count.

    Args:
        audit_request: AuditRequest the call belongs to (optional)
        **fields: ApiLog field values (service_name, method, url, status_code...)

    Returns:
        ApiLog instance
    """
    url = fields.get('url') or ''
    if len(url) > DefaultLimits.URL_LENGTH:
        fields.setdefault('full_url', url)
        fields['url'] = url[:DefaultLimits.URL_LENGTH]

    with transaction.atomic():
        api_log = ApiLog.objects.create(audit_request=audit_request, **fields)

        if audit_request is not None:
            AuditRequest.objects.filter(id=audit_request.id).update(
                api_log_count=F('api_log_count') + 1
            )

    logger.debug(f"API log {api_log.id}: {api_log.method} {api_log.status_code} {api_log.url}")
    return api_log


def record_error(audit_request, message, level='ERROR', error_class='Message', code=0,
                 file='', line=None, stack_trace=None, data=None, user=None, is_retryable=False):
    """
    Record an error occurrence.

    Occurrences with the same identity share one ErrorLog (count and
    last_seen_at are bumped); each occurrence gets its own ErrorLogEntry.
    WARNING and lower levels are ignored. level is a name ('ERROR') or its
    numeric value (400).

    Returns:
        ErrorLogEntry instance, or None if the level was ignored
    """
    if isinstance(level, int):
        level = ErrorLevel.name_for(level)
    level = str(level).upper()
    if ErrorLevel.value_for(level) <= ErrorLevel.WARNING:
        return None

    message = str(message)
    error_log = ErrorLog(
        error_class=error_class,
        code=str(code),
        level=level,
        message=message[:DefaultLimits.ERROR_MESSAGE_LENGTH],
        file=file or '',
        line=line,
        stack_trace=stack_trace,
    )
    error_log.hash = error_log.generate_hash()
    now = timezone.now()

    with transaction.atomic():
        error_log, created = ErrorLog.objects.get_or_create(
            hash=error_log.hash,
            defaults={
                'error_class': error_log.error_class,
                'code': error_log.code,
                'level': error_log.level,
                'message': error_log.message,
                'file': error_log.file,
                'line': error_log.line,
                'stack_trace': error_log.stack_trace,
                'count': 1,
                'last_seen_at': now,
            },
        )
        if not created:
            ErrorLog.objects.filter(id=error_log.id).update(count=F('count') + 1, last_seen_at=now)

        full_message = message[:DefaultLimits.ERROR_FULL_MESSAGE_LENGTH]
        entry = ErrorLogEntry.objects.create(
            error_log=error_log,
            audit_request=audit_request,
            user=user,
            message=full_message[:DefaultLimits.ERROR_MESSAGE_LENGTH],
            full_message=full_message,
            data=data or None,
            is_retryable=is_retryable,
        )

        if audit_request is not None:
            AuditRequest.objects.filter(id=audit_request.id).update(
                error_log_count=F('error_log_count') + 1
            )

    return entry


def record_exception(audit_request, exception, level='ERROR', data=None, user=None):
    """Record a caught exception, including its location and traceback frames"""
    import traceback

    frames = traceback.extract_tb(exception.__traceback__) if exception.__traceback__ else []
    last = frames[-1] if frames else None

    return record_error(
        audit_request,
        message=str(exception) or exception.__class__.__name__,
        level=level,
        error_class=f"{exception.__class__.__module__}.{exception.__class__.__name__}",
        code=getattr(exception, 'code', 0) or 0,
        file=last.filename if last else '',
        line=last.lineno if last else None,
        stack_trace=[
            {'file': frame.filename, 'line': frame.lineno, 'function': frame.name}
            for frame in frames
        ] or None,
        data=data,
        user=user,
    )


def resolve_ancestor_ids(audit_request, limit=DefaultLimits.ANCESTOR_DEPTH):
    """
    Trace the chain of audit requests from the root HTTP request down to this one.

    Each audit request that ran a job was dispatched by a parent audit request
    (the job's dispatch_audit_request_id). The root ran no job.

    Returns:
        List of audit request ids ordered root first, ending with audit_request.id
    """
    ids = [audit_request.id]
    current = audit_request

    while limit > 0:
        limit -= 1
        ran_job = current.ran_jobs.order_by('id').first()

        if not ran_job or not ran_job.dispatch_audit_request_id:
            break

        parent = AuditRequest.objects.filter(id=ran_job.dispatch_audit_request_id).first()
        if not parent or parent.id in ids:
            break

        ids.append(parent.id)
        current = parent

    return list(reversed(ids))
