"""
Application-wide constants.
Centralized constants following DRY principle.
"""

# Job Dispatch Status
class JobStatus:
    PENDING = 'Pending'
    RUNNING = 'Running'
    COMPLETE = 'Complete'
    EXCEPTION = 'Exception'
    ABORTED = 'Aborted'
    FAILED = 'Failed'
    TIMEOUT = 'Timeout'

    CHOICES = [
        (PENDING, 'Pending'),
        (RUNNING, 'Running'),
        (COMPLETE, 'Complete'),
        (EXCEPTION, 'Exception'),
        (ABORTED, 'Aborted'),
        (FAILED, 'Failed'),
        (TIMEOUT, 'Timeout'),
    ]

    ALL = [value for value, _ in CHOICES]

    # Statuses a dispatch can still time out from
    ACTIVE = [PENDING, RUNNING]

    # Statuses that stamp completed_at
    FINISHED = [COMPLETE, EXCEPTION, FAILED]


# Error Log Levels (monolog-compatible numeric values)
class ErrorLevel:
    DEBUG = 100
    INFO = 200
    NOTICE = 250
    WARNING = 300
    ERROR = 400
    CRITICAL = 500
    ALERT = 550
    EMERGENCY = 600

    NAMES = {
        DEBUG: 'DEBUG',
        INFO: 'INFO',
        NOTICE: 'NOTICE',
        WARNING: 'WARNING',
        ERROR: 'ERROR',
        CRITICAL: 'CRITICAL',
        ALERT: 'ALERT',
        EMERGENCY: 'EMERGENCY',
    }

    CHOICES = [(name, name.title()) for name in NAMES.values()]

    @classmethod
    def name_for(cls, level):
        return cls.NAMES.get(level, 'ERROR')

    @classmethod
    def value_for(cls, name):
        for value, level_name in cls.NAMES.items():
            if level_name == str(name).upper():
                return value
        return cls.ERROR


# Reference code prefixes
class RefPrefix:
    JOB_DISPATCH = 'JD-'
    JOB_BATCH = 'JB-'


# Default Limits
class DefaultLimits:
    REF_MIN_CHARS = 5
    REF_CREATE_RETRIES = 20
    JOB_TIMEOUT_SECONDS = 90
    ERROR_MESSAGE_LENGTH = 512
    ERROR_FULL_MESSAGE_LENGTH = 1024 * 1024 * 10
    URL_LENGTH = 512
    ANCESTOR_DEPTH = 20

