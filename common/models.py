from django.db import models

from core.exceptions import ImmutableRefError


class RefCounter(models.Model):
    """
    Per-prefix sequence used to issue reference codes.
    Incremented with a single UPDATE so the row lock serializes concurrent callers.
    """
    prefix = models.CharField(max_length=32, unique=True)
    value = models.PositiveBigIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'ref_counters'
        verbose_name = "Ref Counter"
        verbose_name_plural = "Ref Counters"

    def __str__(self):
        return f"{self.prefix or '(no prefix)'} @ {self.value}"


class ModelRef(models.Model):
    """Ledger of every reference code that has been issued"""
    prefix = models.CharField(max_length=32, db_index=True)
    ref = models.CharField(max_length=64, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'model_refs'
        ordering = ['-id']
        verbose_name = "Model Ref"
        verbose_name_plural = "Model Refs"

    def __str__(self):
        return self.ref


class RefModel(models.Model):
    """
    Abstract base for models with a unique, human-readable ``ref``.

    The ref is filled in by ensure_ref() right before insert (see
    core.repositories.RefRepository). Once persisted it only changes through
    assign_ref().
    """
    ref_prefix = ''

    ref = models.CharField(max_length=64, unique=True)

    class Meta:
        abstract = True

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._persisted_ref = None
        self._ref_reassigned = False

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._persisted_ref = instance.__dict__.get('ref')
        return instance

    @classmethod
    def generate_ref(cls) -> str:
        """Issue the next sequential ref for this model"""
        from common.refs import generate
        return generate(cls.ref_prefix, is_taken=lambda ref: cls._default_manager.filter(ref=ref).exists())

    def ensure_ref(self) -> bool:
        """Assign a ref if this instance has none. Returns True when one was assigned."""
        if self.ref:
            return False
        self.ref = self.generate_ref()
        return True

    def assign_ref(self):
        """Explicitly replace the ref with a freshly generated one"""
        self.ref = self.generate_ref()
        self._ref_reassigned = True
        return self

    def save(self, *args, **kwargs):
        if (
            self.pk is not None
            and self._persisted_ref
            and self.ref != self._persisted_ref
            and not self._ref_reassigned
        ):
            raise ImmutableRefError(
                details={'model': self.__class__.__name__, 'ref': self._persisted_ref}
            )

        super().save(*args, **kwargs)

        self._persisted_ref = self.ref
        self._ref_reassigned = False
