"""
Management command to inspect job dispatches.

Usage:
    python manage.py job_dispatches                      # 20 most recent
    python manage.py job_dispatches --status=Failed --name=Export
    python manage.py job_dispatches --audit-request=42   # ran / dispatched by request 42
    python manage.py job_dispatches --job-id=7 --full    # one dispatch in detail
    python manage.py job_dispatches --ref=JD-10042
    python manage.py job_dispatches --json
"""
import json

from django.core.management.base import BaseCommand, CommandError
from django.core.serializers.json import DjangoJSONEncoder

from audit.models import AuditRequest
from core.constants import JobStatus
from jobs.models import JobDispatch
from jobs.projection import project_job_dispatch
from jobs.repositories import JobDispatchRepository

DATA_TRUNCATE = 2000


class Command(BaseCommand):
    help = 'List recent job dispatches or show one in detail'

    def add_arguments(self, parser):
        parser.add_argument('--limit', type=int, default=20, help='Number of dispatches to list (default 20)')
        parser.add_argument('--status', choices=JobStatus.ALL, help='Only dispatches with this status')
        parser.add_argument('--name', help='Only dispatches whose name contains this text')
        parser.add_argument('--audit-request', type=int, help='Dispatches that ran under or were dispatched by this audit request')
        parser.add_argument('--job-id', type=int, help='Show full details for one dispatch')
        parser.add_argument('--ref', help='Show full details for the dispatch with this ref')
        parser.add_argument('--full', action='store_true', help='Do not truncate the data payload')
        parser.add_argument('--json', action='store_true', help='Output JSON instead of a table')

    def handle(self, *args, **options):
        self.repo = JobDispatchRepository()

        if options['ref']:
            job = self.repo.get_by_ref(options['ref'])
            if not job:
                raise CommandError(f"Job Dispatch with ref {options['ref']} not found.")
            self.show_detail(job.id, options['full'], options['json'])
        elif options['job_id']:
            self.show_detail(options['job_id'], options['full'], options['json'])
        elif options['audit_request']:
            self.list_for_audit_request(options['audit_request'], options)
        else:
            jobs = self.repo.get_recent(options['limit'], options['status'], options['name'])
            self.output_jobs('Recent Job Dispatches', list(jobs), options['json'])

    def list_for_audit_request(self, audit_request_id, options):
        audit_request = AuditRequest.objects.filter(id=audit_request_id).first()
        if not audit_request:
            raise CommandError(f"Audit Request #{audit_request_id} not found.")

        sections = {
            'ran': self._filter(audit_request.ran_jobs, options),
            'dispatched': self._filter(audit_request.dispatched_jobs, options),
        }

        if options['json']:
            payload = {key: [self._row(job) for job in jobs] for key, jobs in sections.items()}
            self.stdout.write(json.dumps(payload, cls=DjangoJSONEncoder, indent=2))
            return

        self.stdout.write(self.style.MIGRATE_HEADING(f"Job Dispatches for Audit Request #{audit_request.id}"))
        self.output_jobs('Jobs Ran During Request', sections['ran'], False)
        self.output_jobs('Jobs Dispatched By Request', sections['dispatched'], False)

    def _filter(self, queryset, options):
        if options['status']:
            queryset = queryset.filter(status=options['status'])
        if options['name']:
            queryset = queryset.filter(name__icontains=options['name'])
        return list(queryset.order_by('created_at'))

    def _row(self, job):
        return {
            'id': job.id,
            'ref': job.ref,
            'name': job.name,
            'status': job.status,
            'count': job.count,
            'run_time_ms': job.run_time_ms,
            'created_at': job.created_at,
            'running_audit_request_id': job.running_audit_request_id,
            'dispatch_audit_request_id': job.dispatch_audit_request_id,
        }

    def output_jobs(self, title, jobs, as_json):
        if as_json:
            self.stdout.write(json.dumps([self._row(job) for job in jobs], cls=DjangoJSONEncoder, indent=2))
            return

        self.stdout.write(f"\n{'=' * 60}")
        self.stdout.write(f"  {title}")
        self.stdout.write(f"{'=' * 60}")

        if not jobs:
            self.stdout.write('No job dispatches found matching the filters.')
            return

        self.stdout.write(f"{'ID':>6}  {'Ref':<12} {'Status':<10} {'Count':>5} {'Run ms':>8}  Name")
        for job in jobs:
            run_time = job.run_time_ms if job.run_time_ms is not None else '-'
            self.stdout.write(
                f"{job.id:>6}  {job.ref:<12} {self.colorize(job.status):<10} {job.count:>5} {run_time:>8}  {job.name}"
            )

        by_status = {}
        for job in jobs:
            by_status[job.status] = by_status.get(job.status, 0) + 1
        summary = ', '.join(f"{status}: {count}" for status, count in sorted(by_status.items()))
        self.stdout.write(f"Total: {len(jobs)} ({summary})")

    def colorize(self, status):
        if status == JobStatus.COMPLETE:
            return self.style.SUCCESS(status)
        if status in (JobStatus.EXCEPTION, JobStatus.FAILED, JobStatus.TIMEOUT):
            return self.style.ERROR(status)
        if status == JobStatus.RUNNING:
            return self.style.WARNING(status)
        return status

    def show_detail(self, job_id, full, as_json):
        job = JobDispatch.objects.filter(id=job_id).select_related('user').first()
        if not job:
            raise CommandError(f"Job Dispatch #{job_id} not found.")

        if as_json:
            data = project_job_dispatch(job, ['errors', 'apiLogs'])
            data['data'] = job.data
            self.stdout.write(json.dumps(data, cls=DjangoJSONEncoder, indent=2))
            return

        self.stdout.write(self.style.MIGRATE_HEADING(f"Job Dispatch #{job.id}"))
        self.stdout.write(f"Name: {job.name}")
        self.stdout.write(f"Ref: {job.ref}")
        self.stdout.write(f"Status: {self.colorize(job.status)}")
        self.stdout.write(f"Count: {job.count}")

        self.stdout.write('\nTiming:')
        self.stdout.write(f"  Created: {job.created_at}")
        self.stdout.write(f"  Ran at: {job.ran_at or 'Not started'}")
        self.stdout.write(f"  Completed at: {job.completed_at or '-'}")
        self.stdout.write(f"  Timeout at: {job.timeout_at or '-'}")
        self.stdout.write(f"  Duration: {f'{job.run_time_ms}ms' if job.run_time_ms is not None else '-'}")

        self.stdout.write('')
        self.stdout.write(f"User: {job.user.username} (ID: {job.user_id})" if job.user else 'User: -')
        self.stdout.write(f"Job Batch: {job.job_batch_id or '-'}")

        for label, audit_request_id, audit_request in (
            ('Running Audit Request', job.running_audit_request_id, job.running_audit_request_or_none()),
            ('Dispatch Audit Request', job.dispatch_audit_request_id, job.dispatch_audit_request_or_none()),
        ):
            if audit_request:
                self.stdout.write(f"{label}: #{audit_request.id} {audit_request.url}")
            elif audit_request_id:
                self.stdout.write(self.style.WARNING(f"{label}: #{audit_request_id} (missing)"))
            else:
                self.stdout.write(f"{label}: -")

        self.stdout.write('\nData:')
        if not job.data:
            self.stdout.write('    No data')
            return

        payload = json.dumps(job.data, cls=DjangoJSONEncoder, indent=2)
        if not full and len(payload) > DATA_TRUNCATE:
            payload = payload[:DATA_TRUNCATE] + '\n... (truncated, use --full)'
        self.stdout.write(payload)
