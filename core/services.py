"""
Base service classes.
Services contain business logic and orchestrate between repositories.
"""
import logging


class BaseService:
    """
    Base service class providing common functionality.
    Services should contain business logic and use repositories for data access.

    Log helpers append the keyword context as sorted key=value pairs, e.g.
    "Job dispatch created: ExportReport | job_dispatch_id=4 ref=JD-10004".
    """

    def __init__(self):
        self.logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    def _log(self, level: int, message: str, error: Exception = None, **context):
        if not self.logger.isEnabledFor(level):
            return
        if context:
            pairs = ' '.join(f"{key}={value}" for key, value in sorted(context.items()))
            message = f"{message} | {pairs}"
        self.logger.log(level, message, exc_info=error)

    def log_debug(self, message: str, **context):
        self._log(logging.DEBUG, message, **context)

    def log_info(self, message: str, **context):
        """Log info message with context"""
        self._log(logging.INFO, message, **context)

    def log_warning(self, message: str, **context):
        self._log(logging.WARNING, message, **context)

    def log_error(self, message: str, error: Exception = None, **context):
        """Log error message with context, including the traceback of error if given"""
        self._log(logging.ERROR, message, error=error, **context)
