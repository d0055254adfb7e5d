"""
Overtime Requests Routes
Overtime submission and review
"""
from typing import Optional
from fastapi import APIRouter, Depends, status

from app.api.deps import get_overtime_request_service, http_error
from app.models.overtime import OvertimeRequest, OvertimeRequestCreate, OvertimeRequestListResponse, OvertimeReview
from app.services.exceptions import WorkflowError
from app.services.overtime_requests import OvertimeRequestService


router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED)
async def submit_overtime_request(
    request_data: OvertimeRequestCreate,
    service: OvertimeRequestService = Depends(get_overtime_request_service)
):
    """Register overtime worked, pending review"""
    try:
        request_id = await service.submit(request_data)
        request = await service.get(request_id)
    except WorkflowError as e:
        raise http_error(e)

    return {
        "message": "Overtime request submitted for review",
        "request_id": request_id,
        "overtime_hours": request.overtime_hours,
        "status": "pending"
    }


@router.get("/", response_model=OvertimeRequestListResponse)
async def get_overtime_requests(
    employee_id: Optional[str] = None,
    status: Optional[str] = None,
    service: OvertimeRequestService = Depends(get_overtime_request_service)
):
    """List overtime requests, newest first"""
    try:
        requests = await service.list(employee_id=employee_id, status=status)
    except WorkflowError as e:
        raise http_error(e)

    return {
        "total": len(requests),
        "requests": requests
    }


@router.get("/{request_id}", response_model=OvertimeRequest)
async def get_overtime_request(
    request_id: str,
    service: OvertimeRequestService = Depends(get_overtime_request_service)
):
    """Get a single overtime request"""
    try:
        return await service.get(request_id)
    except WorkflowError as e:
        raise http_error(e)


@router.patch("/{request_id}", response_model=OvertimeRequest)
async def review_overtime_request(
    request_id: str,
    review: OvertimeReview,
    service: OvertimeRequestService = Depends(get_overtime_request_service)
):
    """Approve or reject overtime; approval adds the hours to the weekly accrual"""
    try:
        return await service.review(request_id, review.status, review.reviewed_by, review.comments)
    except WorkflowError as e:
        raise http_error(e)
