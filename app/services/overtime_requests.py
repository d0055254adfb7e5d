"""
Overtime Request Workflow
Single-approval overtime requests feeding the weekly accrual records
"""
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from pydantic_core import to_jsonable_python

from app.config import settings
from app.models.overtime import OvertimeRequest, OvertimeRequestCreate, OvertimeStatus
from app.services.accrual import OvertimeAccrualApplicator
from app.services.exceptions import ApplyFailure, NotFoundError, ValidationError
from app.services.store import DocumentStore


logger = logging.getLogger(__name__)

OVERTIME_REQUESTS_COLLECTION = "overtime_requests"


def calculate_overtime_hours(start_time: str, end_time: str) -> float:
    """Hours between two HH:MM clock times on the same day, 0 if end is not after start"""
    if not start_time or not end_time:
        return 0.0
    try:
        start = datetime.strptime(start_time.strip(), "%H:%M")
        end = datetime.strptime(end_time.strip(), "%H:%M")
    except ValueError:
        raise ValidationError("Invalid time (HH:MM)")

    if end <= start:
        return 0.0
    return (end - start).total_seconds() / 3600


class OvertimeRequestService:
    """Submits and reviews overtime requests"""

    def __init__(
        self,
        store: DocumentStore,
        accruals: OvertimeAccrualApplicator,
        clock: Callable[[], datetime] = datetime.utcnow,
        max_hours_per_day: Optional[float] = None,
    ):
        self._store = store
        self._accruals = accruals
        self._clock = clock
        self._max_hours = max_hours_per_day or settings.MAX_OVERTIME_HOURS_PER_DAY

    async def submit(self, data: OvertimeRequestCreate) -> str:
        """Persist a pending request; the overtime hours are computed here, once"""
        hours = calculate_overtime_hours(data.start_time, data.end_time)
        if hours <= 0:
            raise ValidationError("End time must be after start time")
        if hours > self._max_hours:
            raise ValidationError(f"Overtime cannot exceed {self._max_hours:g} hours per day")

        request = OvertimeRequest(
            **data.model_dump(),
            overtime_hours=hours,
            status=OvertimeStatus.PENDING,
            submitted_at=self._clock(),
        )
        request_id = await self._store.create(
            OVERTIME_REQUESTS_COLLECTION,
            to_jsonable_python(request.model_dump(exclude={"id"})),
        )
        logger.info("Overtime request %s submitted: %.2f h for %s", request_id, hours, data.employee_id)
        return request_id

    async def list(
        self,
        employee_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[OvertimeRequest]:
        filters: Dict[str, Any] = {}
        if employee_id:
            filters["employee_id"] = employee_id
        if status and status != "all":
            try:
                filters["status"] = OvertimeStatus(status).value
            except ValueError as e:
                raise ValidationError(str(e))

        records = await self._store.list(OVERTIME_REQUESTS_COLLECTION, filters)
        return [OvertimeRequest.model_validate(r) for r in records]

    async def get(self, request_id: str) -> OvertimeRequest:
        record = await self._store.get(OVERTIME_REQUESTS_COLLECTION, request_id)
        if record is None:
            raise NotFoundError(f"Overtime request {request_id} not found")
        return OvertimeRequest.model_validate(record)

    async def review(
        self,
        request_id: str,
        status: OvertimeStatus,
        reviewed_by: str,
        comments: Optional[str] = None,
    ) -> OvertimeRequest:
        """
        Approve or reject a pending request.

        An approval adds the stored overtime hours to the employee's accrual.
        If that fails the request goes back to pending with the failure in
        its review comments, and ApplyFailure is raised.
        """
        try:
            status = OvertimeStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown status: {status}")
        if status == OvertimeStatus.PENDING:
            raise ValidationError("A review must approve or reject the request")
        if not (reviewed_by or "").strip():
            raise ValidationError("Reviewer is required")

        request = await self.get(request_id)
        if request.status != OvertimeStatus.PENDING:
            raise ValidationError("request already finalized")

        fields = {
            "status": status,
            "reviewed_by": reviewed_by,
            "reviewed_at": self._clock(),
            "review_comments": comments or "",
        }
        updated = await self._store.update_if(
            OVERTIME_REQUESTS_COLLECTION,
            request_id,
            {"status": OvertimeStatus.PENDING.value},
            to_jsonable_python(fields),
        )
        if not updated:
            raise ValidationError(f"Overtime request {request_id} changed while it was being processed, retry")

        logger.info("Overtime request %s %s by %s", request_id, status.value, reviewed_by)

        if status == OvertimeStatus.APPROVED:
            await self._accrue(request)

        return await self.get(request_id)

    async def _accrue(self, request: OvertimeRequest) -> None:
        try:
            await self._accruals.apply(
                request.employee_id,
                request.employee_name,
                request.date,
                request.overtime_hours,
                request_id=request.id,
            )
        except Exception as e:
            logger.exception("Accruing overtime request %s failed, reverting to pending", request.id)
            await self._store.update(
                OVERTIME_REQUESTS_COLLECTION,
                request.id,
                {
                    "status": OvertimeStatus.PENDING.value,
                    "review_comments": f"Error processing: {e}",
                },
                unset=["reviewed_by", "reviewed_at"],
            )
            raise ApplyFailure(request.id, f"Could not add hours of overtime request {request.id}: {e}", cause=e) from e
