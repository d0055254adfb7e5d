"""
HR Requests Routes
Endpoints for submitting and approving employee change requests
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import get_hr_request_service, http_error
from app.models.hr_request import (
    HRRequest,
    HRRequestActionBody,
    HRRequestCreate,
    HRRequestListResponse,
    RequestStatus,
    RequestType,
)
from app.services.exceptions import WorkflowError
from app.services.hr_requests import HRRequestService, request_type_label, status_label


router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED)
async def submit_hr_request(
    request_data: HRRequestCreate,
    service: HRRequestService = Depends(get_hr_request_service)
):
    """Submit a new HR request (starts as pending)"""
    try:
        request_id = await service.submit(request_data)
    except WorkflowError as e:
        raise http_error(e)

    return {
        "message": "HR request submitted successfully",
        "request_id": request_id,
        "status": "pending"
    }


@router.get("/", response_model=HRRequestListResponse)
async def get_hr_requests(
    status: Optional[str] = None,
    type: Optional[str] = None,
    requested_by: Optional[str] = None,
    service: HRRequestService = Depends(get_hr_request_service)
):
    """List HR requests, newest first"""
    try:
        requests = await service.list(status=status, type=type, requested_by=requested_by)
    except WorkflowError as e:
        raise http_error(e)

    return {
        "total": len(requests),
        "requests": requests
    }


@router.get("/labels")
async def get_labels():
    """Display names for request types and statuses"""
    return {
        "types": {t.value: request_type_label(t) for t in RequestType},
        "statuses": {s.value: status_label(s) for s in RequestStatus}
    }


@router.get("/{request_id}", response_model=HRRequest)
async def get_hr_request(
    request_id: str,
    service: HRRequestService = Depends(get_hr_request_service)
):
    """Get a single HR request"""
    try:
        return await service.get(request_id)
    except WorkflowError as e:
        raise http_error(e)


@router.post("/{request_id}/actions", response_model=HRRequest)
async def act_on_hr_request(
    request_id: str,
    body: HRRequestActionBody,
    service: HRRequestService = Depends(get_hr_request_service)
):
    """
    Approve as general manager, approve as HR, or reject.
    The change is applied once both approvals are present.
    """
    if not body.approver_name.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Approver name is required"
        )

    try:
        return await service.act(request_id, body.action, body.approver_name, body.comments)
    except WorkflowError as e:
        raise http_error(e)
