"""
Job repositories - Data access layer for job dispatches and batches.
"""
from django.db.models import F, QuerySet
from django.utils import timezone

from core.constants import JobStatus
from core.repositories import BaseRepository, RefRepository
from .models import JobDispatch, JobBatch


class JobDispatchRepository(RefRepository[JobDispatch]):
    """Repository for JobDispatch model"""

    def __init__(self):
        super().__init__(JobDispatch)

    def get_recent(self, limit: int = 20, status: str = None, name: str = None) -> QuerySet[JobDispatch]:
        """Most recent dispatches, optionally filtered by exact status and partial name"""
        queryset = self.get_queryset().order_by('-id')
        if status:
            queryset = queryset.filter(status=status)
        if name:
            queryset = queryset.filter(name__icontains=name)
        return queryset[:limit]

    def increment_count(self, ref: str) -> int:
        """Atomically bump count on the pending dispatch with this ref. Returns rows updated."""
        return self.get_all(ref=ref, status=JobStatus.PENDING).update(
            count=F('count') + 1,
            updated_at=timezone.now(),
        )

    def get_timed_out(self, now=None) -> QuerySet[JobDispatch]:
        return self.model.objects.timed_out(now)


class JobBatchRepository(BaseRepository[JobBatch]):
    """Repository for JobBatch model"""

    def __init__(self):
        super().__init__(JobBatch)
