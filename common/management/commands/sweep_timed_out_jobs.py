"""
Management command to flag job dispatches that are past their timeout.

Runs every JOBTRAIL_TIMEOUT_SWEEP_SECONDS from the background scheduler when
ENABLE_BACKGROUND_SCHEDULER is set, or from cron:
    * * * * * cd /path/to/project && python manage.py sweep_timed_out_jobs
"""

from django.core.management.base import BaseCommand

from jobs.services import JobDispatchService


class Command(BaseCommand):
    help = 'Mark Pending/Running job dispatches past their timeout as Timeout'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Only count the dispatches that would be flagged',
        )

    def handle(self, *args, **options):
        service = JobDispatchService()

        if options['dry_run']:
            count = service.dispatch_repo.get_timed_out().count()
            self.stdout.write(self.style.WARNING(f"DRY RUN: {count} job dispatches would be flagged as timed out"))
            return

        flagged = service.flag_timed_out()
        self.stdout.write(self.style.SUCCESS(f"Flagged {flagged} job dispatches as timed out"))
