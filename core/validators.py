"""
Validation utilities and validators.
Centralized validation logic following single responsibility principle.
"""
from typing import Dict, Iterable, Optional, Tuple, Union

from core.constants import JobStatus
from core.exceptions import ValidationError as AppValidationError, InvalidFieldRequestError


class JobStatusValidator:
    """Validates job dispatch statuses"""

    @staticmethod
    def validate_status(status: str):
        if status not in JobStatus.ALL:
            raise AppValidationError(
                message=f"Invalid job status: {status}",
                code="INVALID_JOB_STATUS",
                details={
                    "status": status,
                    "allowed": JobStatus.ALL
                }
            )


class FieldRequestValidator:
    """
    Normalizes a request for derived fields.

    Accepts None, an iterable of field names, or a mapping of field name to
    True/False, an iterable of sub-field names or a {sub_field: bool} mapping.
    Returns {field: None | tuple(sub_fields)}, where None means the default shape.
    """

    @staticmethod
    def normalize(
        include: Union[None, Iterable[str], Dict[str, object]],
        allowed: Dict[str, Optional[Iterable[str]]],
    ) -> Dict[str, Optional[Tuple[str, ...]]]:
        if not include:
            return {}

        if isinstance(include, str):
            include = [name.strip() for name in include.split(',') if name.strip()]

        if not isinstance(include, dict):
            include = {name: True for name in include}

        normalized = {}
        for name, selection in include.items():
            if name not in allowed:
                raise InvalidFieldRequestError(field=name, allowed=allowed.keys())
            if selection is False or selection is None:
                continue
            if selection is True:
                normalized[name] = None
                continue

            if isinstance(selection, dict):
                sub_fields = [sub for sub, wanted in selection.items() if wanted]
            elif isinstance(selection, str):
                sub_fields = [sub.strip() for sub in selection.split(',') if sub.strip()]
            else:
                sub_fields = list(selection)

            known = set(allowed[name] or [])
            for sub in sub_fields:
                if sub not in known:
                    raise InvalidFieldRequestError(field=f"{name}.{sub}", allowed=known)
            normalized[name] = tuple(sub_fields) or None

        return normalized
