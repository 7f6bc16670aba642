"""
Data Transfer Objects (DTOs).
Used for passing data between layers without exposing domain models.
"""
from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any
from datetime import datetime


@dataclass
class JobDispatchDTO:
    """Data Transfer Object for creating a JobDispatch"""
    name: str = ""
    ref: Optional[str] = None
    status: Optional[str] = None
    job_batch_id: Optional[int] = None
    user_id: Optional[int] = None
    running_audit_request_id: Optional[int] = None
    dispatch_audit_request_id: Optional[int] = None
    timeout_at: Optional[datetime] = None
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class JobDispatchView:
    """
    Eagerly available fields of a JobDispatch projection.
    The audit counters are read from the running audit request and fall back to 0.
    """
    id: Optional[int] = None
    name: str = ""
    ref: str = ""
    job_batch_id: Optional[int] = None
    running_audit_request_id: Optional[int] = None
    dispatch_audit_request_id: Optional[int] = None
    status: str = ""
    ran_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    timeout_at: Optional[datetime] = None
    run_time_ms: Optional[int] = None
    count: int = 0
    created_at: Optional[datetime] = None
    api_log_count: int = 0
    error_log_count: int = 0
    log_line_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
