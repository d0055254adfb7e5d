"""
HR Request Workflow
Submission, listing and approval of dual-approval HR change requests
"""
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import ValidationError as SchemaError
from pydantic_core import to_jsonable_python

from app.models.employee import EMPLOYEE_KEY_FIELD, NewEmployee
from app.models.hr_request import (
    CREDENTIAL_FIELD,
    EDIT_REQUEST_TYPES,
    REQUEST_TYPE_LABELS,
    STATUS_LABELS,
    ApprovalAction,
    HRRequest,
    HRRequestCreate,
    RequestStatus,
    RequestType,
)
from app.services.approval import Transition, transition
from app.services.change_applicator import ChangeApplicator
from app.services.exceptions import ApplyFailure, NotFoundError, ValidationError
from app.services.store import DocumentStore


logger = logging.getLogger(__name__)

HR_REQUESTS_COLLECTION = "hr_requests"
CREDENTIALS_COLLECTION = "hr_request_credentials"


def request_type_label(request_type: Union[RequestType, str]) -> str:
    """Human readable name of a request type"""
    try:
        return REQUEST_TYPE_LABELS[RequestType(request_type)]
    except ValueError:
        return str(request_type)


def status_label(status: Union[RequestStatus, str]) -> str:
    """Human readable name of a request status"""
    try:
        return STATUS_LABELS[RequestStatus(status)]
    except ValueError:
        return str(status)


class HRRequestService:
    """Runs HR requests through the approval state machine"""

    def __init__(
        self,
        store: DocumentStore,
        applicator: ChangeApplicator,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self._store = store
        self._applicator = applicator
        self._clock = clock

    @staticmethod
    def _from_record(record: Dict[str, Any]) -> HRRequest:
        record = dict(record)
        proposed = dict(record.get("proposed_data") or {})
        proposed.pop(CREDENTIAL_FIELD, None)
        record["proposed_data"] = proposed
        return HRRequest.model_validate(record)

    async def submit(self, data: HRRequestCreate) -> str:
        """Persist a new pending request and return its id"""
        proposed = dict(data.proposed_data)
        credential = proposed.pop(CREDENTIAL_FIELD, None)

        if data.type == RequestType.ADD_EMPLOYEE:
            if not credential:
                raise ValidationError("A password is required to add an employee")
            try:
                NewEmployee.model_validate(proposed)
            except SchemaError as e:
                raise ValidationError(f"Invalid employee data: {e}")
        elif data.type in EDIT_REQUEST_TYPES:
            if not data.target_employee_id:
                raise ValidationError(f"{data.type.value} requests need a target employee")
            if not any(field != EMPLOYEE_KEY_FIELD for field in proposed):
                raise ValidationError("The request does not propose any change")
            credential = None

        request = HRRequest(
            **data.model_dump(exclude={"proposed_data"}),
            proposed_data=proposed,
            status=RequestStatus.PENDING,
            submitted_at=self._clock(),
        )
        request_id = await self._store.create(
            HR_REQUESTS_COLLECTION,
            to_jsonable_python(request.model_dump(exclude={"id"})),
        )

        if credential:
            try:
                await self._store.create(CREDENTIALS_COLLECTION, {"credential": credential}, key=request_id)
            except Exception:
                await self._store.delete(HR_REQUESTS_COLLECTION, request_id)
                raise

        logger.info(
            "HR request %s submitted: %s by %s",
            request_id, data.type.value, data.requested_by_name,
        )
        return request_id

    async def list(
        self,
        status: Optional[str] = None,
        type: Optional[str] = None,
        requested_by: Optional[str] = None,
    ) -> List[HRRequest]:
        """Requests matching the filters, newest first ("all" disables a filter)"""
        filters: Dict[str, Any] = {}
        try:
            if status and status != "all":
                filters["status"] = RequestStatus(status).value
            if type and type != "all":
                filters["type"] = RequestType(type).value
        except ValueError as e:
            raise ValidationError(str(e))
        if requested_by:
            filters["requested_by"] = requested_by

        records = await self._store.list(HR_REQUESTS_COLLECTION, filters)
        return [self._from_record(r) for r in records]

    async def get(self, request_id: str) -> HRRequest:
        record = await self._store.get(HR_REQUESTS_COLLECTION, request_id)
        if record is None:
            raise NotFoundError(f"HR request {request_id} not found")
        return self._from_record(record)

    async def act(
        self,
        request_id: str,
        action: ApprovalAction,
        approver_name: str,
        comments: Optional[str] = None,
    ) -> HRRequest:
        """
        Approve (on one track) or reject a request.

        The write is conditional on the state that was read, so a concurrent
        action on the same request fails instead of being applied twice. When
        the request becomes fully approved its change is applied; if that
        fails the request is put back to its previous status and ApplyFailure
        is raised.
        """
        try:
            action = ApprovalAction(action)
        except ValueError:
            raise ValidationError(f"Unknown action: {action}")

        request = await self.get(request_id)
        outcome = transition(request, action, approver_name, comments, self._clock())

        expected: Dict[str, Any] = {"status": outcome.previous_status.value}
        if outcome.track_field:
            expected[outcome.track_field] = None

        updated = await self._store.update_if(
            HR_REQUESTS_COLLECTION,
            request_id,
            expected,
            to_jsonable_python(outcome.fields),
        )
        if not updated:
            raise ValidationError(f"HR request {request_id} changed while it was being processed, retry")

        logger.info(
            "HR request %s: %s -> %s (%s by %s)",
            request_id, outcome.previous_status.value, outcome.status.value,
            action.value, approver_name,
        )

        if outcome.fully_approved:
            await self._apply(request.model_copy(update=outcome.fields), outcome)

        return await self.get(request_id)

    async def _apply(self, request: HRRequest, outcome: Transition) -> None:
        credential = None
        try:
            if request.type == RequestType.ADD_EMPLOYEE:
                secret = await self._store.get(CREDENTIALS_COLLECTION, request.id)
                credential = secret.get("credential") if secret else None
            await self._applicator.apply(request, credential)
        except Exception as e:
            logger.exception("Applying HR request %s failed, reverting to %s", request.id, outcome.previous_status.value)
            await self._store.update(
                HR_REQUESTS_COLLECTION,
                request.id,
                {"status": outcome.previous_status.value},
                unset=[outcome.track_field, "processed_at"],
            )
            raise ApplyFailure(request.id, f"Could not apply HR request {request.id}: {e}", cause=e) from e

        if credential is not None:
            await self._store.delete(CREDENTIALS_COLLECTION, request.id)
        logger.info("HR request %s processed", request.id)
