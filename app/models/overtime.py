"""
Overtime Model
Schema for overtime requests and per-employee weekly accruals
"""
from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator
from enum import Enum


class OvertimeStatus(str, Enum):
    """Overtime request status"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


WEEKDAY_BUCKETS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def _check_clock_time(value: str) -> str:
    value = (value or "").strip()
    try:
        datetime.strptime(value, "%H:%M")
    except ValueError:
        raise ValueError("time must be HH:MM")
    return value


class OvertimeRequest(BaseModel):
    """Overtime request as persisted in the `overtime_requests` collection"""

    id: Optional[str] = None

    # Employee Reference
    employee_id: str
    employee_name: str

    # Overtime Details
    date: date
    start_time: str
    end_time: str
    location: str = ""
    overtime_hours: float
    description: str
    photo_evidence: Optional[str] = None

    # Review
    status: OvertimeStatus = OvertimeStatus.PENDING
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    review_comments: Optional[str] = None

    # Metadata
    submitted_at: datetime = Field(default_factory=datetime.utcnow)


class OvertimeRequestCreate(BaseModel):
    """Schema for submitting overtime"""
    employee_id: str
    employee_name: str
    date: date
    start_time: str
    end_time: str
    location: str = ""
    description: str
    photo_evidence: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_clock_time(cls, v: str) -> str:
        return _check_clock_time(v)


class OvertimeReview(BaseModel):
    """Schema for approving/rejecting overtime"""
    status: OvertimeStatus
    reviewed_by: str
    comments: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_decision(cls, v: OvertimeStatus) -> OvertimeStatus:
        if v == OvertimeStatus.PENDING:
            raise ValueError("review status must be approved or rejected")
        return v


class OvertimeRequestListResponse(BaseModel):
    """Schema for list of overtime requests"""
    total: int
    requests: List[OvertimeRequest]


class WeeklyAccrual(BaseModel):
    """Accumulated overtime hours per weekday for one employee"""
    employee_id: str
    employee_name: str
    monday: float = 0.0
    tuesday: float = 0.0
    wednesday: float = 0.0
    thursday: float = 0.0
    friday: float = 0.0
    saturday: float = 0.0
    sunday: float = 0.0
    applied_requests: List[str] = []

    @property
    def total_hours(self) -> float:
        return sum(getattr(self, bucket) for bucket in WEEKDAY_BUCKETS)


class WeeklyAccrualUpdate(BaseModel):
    """Schema for overwriting accrual buckets"""
    monday: Optional[float] = Field(default=None, ge=0)
    tuesday: Optional[float] = Field(default=None, ge=0)
    wednesday: Optional[float] = Field(default=None, ge=0)
    thursday: Optional[float] = Field(default=None, ge=0)
    friday: Optional[float] = Field(default=None, ge=0)
    saturday: Optional[float] = Field(default=None, ge=0)
    sunday: Optional[float] = Field(default=None, ge=0)
