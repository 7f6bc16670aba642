"""
Reference code generator.

Issues unique, sequential, prefixed codes (``JD-10001``, ``JD-10002``...)
for any model that needs a human-readable identifier. Uniqueness across
processes comes from the database: the counter row is incremented with an
atomic UPDATE inside a transaction, and every issued code is recorded in
model_refs under a unique constraint.
"""
import logging

from django.conf import settings
from django.db import transaction, IntegrityError, DatabaseError
from django.db.models import F

from common.models import RefCounter, ModelRef
from core.constants import DefaultLimits
from core.exceptions import RefGenerationError

logger = logging.getLogger(__name__)


def pad_number(number: int, min_chars: int) -> int:
    """Numbers shorter than min_chars are offset by 10**(min_chars - 1)"""
    if len(str(number)) < min_chars:
        number += 10 ** (min_chars - 1)
    return number


def _next_value(prefix: str, min_chars: int) -> int:
    """
    Advance the counter for prefix and return the new number.
    The counter keeps the padded number, so the sequence continues from the
    last issued ref (10001, 10002...). Must run inside a transaction.
    """
    updated = RefCounter.objects.filter(prefix=prefix).update(value=F('value') + 1)
    if not updated:
        # First ref for this prefix. A concurrent creator may win the insert.
        try:
            with transaction.atomic():
                RefCounter.objects.create(prefix=prefix, value=pad_number(1, min_chars))
            return pad_number(1, min_chars)
        except IntegrityError:
            RefCounter.objects.filter(prefix=prefix).update(value=F('value') + 1)

    value = RefCounter.objects.filter(prefix=prefix).values_list('value', flat=True).get()
    number = pad_number(value, min_chars)
    if number != value:
        RefCounter.objects.filter(prefix=prefix).update(value=number)
    return number


def record(prefix: str, ref: str) -> bool:
    """
    Add a ref that was not issued by generate() to the ledger, so the
    counter never hands it out. Returns True when it was not recorded yet.
    """
    with transaction.atomic():
        _, created = ModelRef.objects.get_or_create(ref=ref, defaults={'prefix': prefix})
    return created


def generate(prefix: str = '', min_chars: int = None, is_taken=None) -> str:
    """
    Generate a unique ref with the given prefix.

    is_taken, when given, is called with each candidate; candidates it
    accepts are skipped like ledger collisions. Models pass a lookup on
    their own ref column so codes stored without a ledger row are not reissued.

    Raises:
        RefGenerationError: the counter storage is unavailable or every
            retry collided with an existing ref
    """
    if min_chars is None:
        min_chars = getattr(settings, 'JOBTRAIL_REF_MIN_CHARS', DefaultLimits.REF_MIN_CHARS)

    messages = []

    try:
        with transaction.atomic():
            for _ in range(DefaultLimits.REF_CREATE_RETRIES):
                ref = f"{prefix}{_next_value(prefix, min_chars)}"

                try:
                    with transaction.atomic():
                        ModelRef.objects.create(prefix=prefix, ref=ref)
                except IntegrityError as e:
                    # The code was issued outside the counter (imported or hand-written)
                    messages.append(str(e))
                    logger.warning(f"Ref {ref} already exists, advancing counter for '{prefix}'")
                    continue

                if is_taken is not None and is_taken(ref):
                    messages.append(f"Ref {ref} is already in use")
                    logger.warning(f"Ref {ref} is already in use, advancing counter for '{prefix}'")
                    continue

                return ref
    except DatabaseError as e:
        logger.error(f"Ref counter storage unavailable for prefix '{prefix}': {e}", exc_info=True)
        raise RefGenerationError(
            prefix=prefix,
            message=f"Failed to create a ref for '{prefix}': {e}",
        ) from e

    raise RefGenerationError(
        prefix=prefix,
        message=(
            f"Failed to create a ref for '{prefix}'. "
            f"The max number of retries ({DefaultLimits.REF_CREATE_RETRIES}) has been reached"
        ),
        details={'errors': messages},
    )
