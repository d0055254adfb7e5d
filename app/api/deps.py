"""
API Dependencies
Wires the workflow services onto the store held by the running application
"""
from fastapi import Depends, HTTPException, Request, status

from app.services.accrual import OvertimeAccrualApplicator
from app.services.change_applicator import ChangeApplicator
from app.services.exceptions import (
    ApplyFailure,
    DuplicateKeyError,
    IdentityConflictError,
    NotFoundError,
    ValidationError,
    WorkflowError,
)
from app.services.hr_requests import HRRequestService
from app.services.identity import IdentityProvider, StoreIdentityProvider
from app.services.overtime_requests import OvertimeRequestService
from app.services.store import DocumentStore


def get_store(request: Request) -> DocumentStore:
    """Store created in the application lifespan"""
    return request.app.state.store


def get_identity_provider(store: DocumentStore = Depends(get_store)) -> IdentityProvider:
    return StoreIdentityProvider(store)


def get_hr_request_service(
    store: DocumentStore = Depends(get_store),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> HRRequestService:
    return HRRequestService(store, ChangeApplicator(store, identity))


def get_accrual_applicator(store: DocumentStore = Depends(get_store)) -> OvertimeAccrualApplicator:
    return OvertimeAccrualApplicator(store)


def get_overtime_request_service(
    store: DocumentStore = Depends(get_store),
    accruals: OvertimeAccrualApplicator = Depends(get_accrual_applicator),
) -> OvertimeRequestService:
    return OvertimeRequestService(store, accruals)


def _status_for(error: BaseException) -> int:
    if isinstance(error, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(error, (DuplicateKeyError, IdentityConflictError)):
        return status.HTTP_409_CONFLICT
    if isinstance(error, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def http_error(error: WorkflowError) -> HTTPException:
    """Translate a workflow error into the HTTP response the routes return"""
    if isinstance(error, ApplyFailure):
        # the request was rolled back, report why applying it failed
        code = _status_for(error.cause) if error.cause is not None else status.HTTP_500_INTERNAL_SERVER_ERROR
        if code == status.HTTP_400_BAD_REQUEST:
            code = status.HTTP_422_UNPROCESSABLE_ENTITY
        return HTTPException(status_code=code, detail=str(error))
    return HTTPException(status_code=_status_for(error), detail=str(error))
