"""
Custom exceptions for the job tracking system.
Every domain failure derives from BaseApplicationException and carries a
message, a machine readable code and optional details.
"""


class BaseApplicationException(Exception):
    """Base exception for all application-specific exceptions"""
    default_message = "An application error occurred"

    def __init__(self, message=None, code=None, details=None):
        self.message = message or self.default_message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(BaseApplicationException):
    """Raised when validation fails"""
    default_message = "Validation failed"


class InvalidFieldRequestError(ValidationError):
    """Raised when a projection is asked for a field it does not know"""
    default_message = "Unknown field requested"

    def __init__(self, field=None, allowed=None, **kwargs):
        self.field = field
        self.allowed = sorted(allowed or [])
        kwargs.setdefault('code', 'INVALID_FIELD')
        kwargs.setdefault('details', {'field': field, 'allowed': self.allowed})
        if field and 'message' not in kwargs:
            kwargs['message'] = f"Unknown field requested: {field}"
        super().__init__(**kwargs)


class NotFoundError(BaseApplicationException):
    """Raised when a resource is not found"""
    default_message = "Resource not found"

    def __init__(self, resource_type=None, resource_id=None, **kwargs):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(**kwargs)


class BusinessLogicError(BaseApplicationException):
    """Raised when business rule is violated"""
    default_message = "Business rule violation"


class RefGenerationError(BaseApplicationException):
    """Raised when a unique reference code could not be issued"""
    default_message = "Failed to generate a reference code"

    def __init__(self, prefix='', **kwargs):
        self.prefix = prefix
        kwargs.setdefault('code', 'REF_GENERATION_FAILED')
        super().__init__(**kwargs)


class ImmutableRefError(BusinessLogicError):
    """Raised when a persisted ref is changed outside of assign_ref()"""
    default_message = "A persisted ref cannot be changed"
