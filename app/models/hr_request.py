"""
HR Request Model
Schema for dual-approval employee change requests
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from enum import Enum


class RequestType(str, Enum):
    """Kinds of employee change a request can carry"""
    ADD_EMPLOYEE = "add_employee"
    EDIT_EMPLOYEE = "edit_employee"
    SALARY_CHANGE = "salary_change"
    POSITION_CHANGE = "position_change"
    DEPARTMENT_CHANGE = "department_change"
    STATUS_CHANGE = "status_change"


EDIT_REQUEST_TYPES = frozenset({
    RequestType.EDIT_EMPLOYEE,
    RequestType.SALARY_CHANGE,
    RequestType.POSITION_CHANGE,
    RequestType.DEPARTMENT_CHANGE,
    RequestType.STATUS_CHANGE,
})


class RequestStatus(str, Enum):
    """HR request status"""
    PENDING = "pending"
    APPROVED_BY_GM = "approved_by_gm"
    APPROVED_BY_HR = "approved_by_hr"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (RequestStatus.APPROVED, RequestStatus.REJECTED)


class ApprovalAction(str, Enum):
    """Actions an approver can take on an HR request"""
    APPROVE_GM = "approve_gm"
    APPROVE_HR = "approve_hr"
    REJECT = "reject"


REQUEST_TYPE_LABELS = {
    RequestType.ADD_EMPLOYEE: "Add Employee",
    RequestType.EDIT_EMPLOYEE: "Edit Employee",
    RequestType.SALARY_CHANGE: "Salary Change",
    RequestType.POSITION_CHANGE: "Position Change",
    RequestType.DEPARTMENT_CHANGE: "Department Change",
    RequestType.STATUS_CHANGE: "Status Change",
}

STATUS_LABELS = {
    RequestStatus.PENDING: "Pending",
    RequestStatus.APPROVED_BY_GM: "Approved by General Manager",
    RequestStatus.APPROVED_BY_HR: "Approved by HR",
    RequestStatus.APPROVED: "Approved",
    RequestStatus.REJECTED: "Rejected",
}

# Field that holds the one-time credential of an add-employee request
CREDENTIAL_FIELD = "password"


class Approval(BaseModel):
    """Sign-off on one approval track"""
    approved_by: str
    approved_at: datetime
    comments: str = ""


class HRRequest(BaseModel):
    """HR change request as persisted in the `hr_requests` collection"""

    id: Optional[str] = None

    # Request Details
    type: RequestType
    title: str
    description: str = ""
    current_data: Optional[Dict[str, Any]] = None
    proposed_data: Dict[str, Any]
    target_employee_id: Optional[str] = None
    target_employee_name: Optional[str] = None

    # Submitter
    requested_by: str
    requested_by_name: str
    requested_by_role: str

    # Status
    status: RequestStatus = RequestStatus.PENDING

    # Approval Workflow
    general_manager_approval: Optional[Approval] = None
    hr_approval: Optional[Approval] = None
    rejected_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    # Metadata
    submitted_at: datetime = Field(default_factory=datetime.utcnow)
    processed_at: Optional[datetime] = None

    class Config:
        json_schema_extra = {
            "example": {
                "type": "salary_change",
                "title": "Salary review",
                "requested_by": "user-123",
                "requested_by_name": "Juan Manager",
                "requested_by_role": "manager",
                "target_employee_id": "123456789",
                "proposed_data": {"salario": 550000},
                "status": "pending"
            }
        }


class HRRequestCreate(BaseModel):
    """Schema for submitting an HR request"""
    type: RequestType
    title: str
    description: str = ""
    requested_by: str
    requested_by_name: str
    requested_by_role: str
    current_data: Optional[Dict[str, Any]] = None
    proposed_data: Dict[str, Any]
    target_employee_id: Optional[str] = None
    target_employee_name: Optional[str] = None


class HRRequestActionBody(BaseModel):
    """Schema for approving/rejecting an HR request"""
    action: ApprovalAction
    approver_name: str
    comments: Optional[str] = None


class HRRequestListResponse(BaseModel):
    """Schema for list of HR requests"""
    total: int
    requests: List[HRRequest]
