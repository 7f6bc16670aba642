"""
Logging configuration with request ID support
"""
import logging
import threading
import uuid

REQUEST_ID_HEADER = 'X-Request-ID'

_local = threading.local()


def get_request_id():
    return getattr(_local, 'request_id', None)


def set_request_id(request_id):
    _local.request_id = request_id


def clear_request_id():
    try:
        del _local.request_id
    except AttributeError:
        pass


class RequestIDFilter(logging.Filter):
    """
    Logging filter to add request ID to log records
    """
    def filter(self, record):
        request_id = getattr(record, 'request_id', None) or get_request_id()
        record.request_id = request_id or 'N/A'
        return True


class RequestIDMiddleware:
    """
    Middleware to attach a request ID to each request.
    Reuses an incoming X-Request-ID header when present so ids follow a request
    across services, otherwise generates a short 8-character id.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        incoming = request.headers.get(REQUEST_ID_HEADER, '')[:64]
        request_id = incoming or uuid.uuid4().hex[:8]
        request.request_id = request_id
        set_request_id(request_id)

        try:
            response = self.get_response(request)
        finally:
            clear_request_id()

        response[REQUEST_ID_HEADER] = request_id
        return response

    def process_exception(self, request, exception):
        """Log exceptions with request ID"""
        request_id = getattr(request, 'request_id', 'N/A')
        logger = logging.getLogger('django.request')
        logger.error(
            f"Exception: {type(exception).__name__}: {str(exception)}",
            exc_info=True,
            extra={'request_id': request_id}
        )
