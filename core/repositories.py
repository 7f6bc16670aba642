"""
Repository pattern implementation.
Abstracts data access and provides a clean interface for domain services.
"""
from typing import Generic, TypeVar, Optional, List
from django.db.models import QuerySet, Model
from django.db import transaction
import logging

from core.exceptions import NotFoundError

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=Model)


class BaseRepository(Generic[T]):
    """
    Base repository providing common CRUD operations.
    Follows Repository pattern for data access abstraction.
    """

    def __init__(self, model: type[T]):
        self.model = model

    def get_by_id(self, id: int, **filters) -> Optional[T]:
        """Get a single instance by ID, or None"""
        if id is None:
            return None
        return self.model.objects.filter(id=id, **filters).first()

    def get_by_id_or_raise(self, id: int, **filters) -> T:
        """Get a single instance by ID or raise NotFoundError"""
        instance = self.get_by_id(id, **filters)
        if instance is None:
            raise NotFoundError(resource_type=self.model.__name__, resource_id=id)
        return instance

    def get_all(self, **filters) -> QuerySet[T]:
        """Get all instances matching filters"""
        return self.model.objects.filter(**filters)

    def prepare_for_insert(self, instance: T) -> T:
        """Normalize an unsaved instance before it is inserted"""
        return instance

    def create(self, **kwargs) -> T:
        """Create a new instance"""
        instance = self.model(**kwargs)
        self.prepare_for_insert(instance)
        instance.save(force_insert=True)
        return instance

    def update(self, instance: T, **kwargs) -> T:
        """Update an existing instance"""
        for key, value in kwargs.items():
            setattr(instance, key, value)
        instance.save()
        return instance

    @transaction.atomic
    def bulk_create(self, instances: List[T]) -> List[T]:
        """Bulk create instances"""
        for instance in instances:
            self.prepare_for_insert(instance)
        return self.model.objects.bulk_create(instances)

    def get_queryset(self) -> QuerySet[T]:
        """Get base queryset for custom queries"""
        return self.model.objects.all()


class RefRepository(BaseRepository[T]):
    """
    Repository for models carrying a unique ``ref``.

    Ref assignment happens here, right before insert, instead of in a
    model signal. An instance without a ref gets one. An explicit ref is kept
    and added to the ref ledger so it is never generated for another row.
    """

    def prepare_for_insert(self, instance: T) -> T:
        from common.refs import record

        if instance.ensure_ref():
            logger.debug(f"Assigned ref {instance.ref} to new {self.model.__name__}")
            return instance

        prefix = self.model.ref_prefix if instance.ref.startswith(self.model.ref_prefix) else ''
        if record(prefix, instance.ref):
            logger.debug(f"Recorded explicit ref {instance.ref} for new {self.model.__name__}")
        return instance

    def get_by_ref(self, ref: str, **filters) -> Optional[T]:
        """Most recent instance with the given ref"""
        return self.model.objects.filter(ref=ref, **filters).order_by('-id').first()
