"""
Overtime Accrual Applicator
Adds approved overtime hours to the employee's weekly accrual buckets
"""
import logging
from datetime import date
from typing import Dict, List, Optional

from app.models.overtime import WEEKDAY_BUCKETS, WeeklyAccrual
from app.services.change_applicator import EMPLOYEES_COLLECTION
from app.services.exceptions import AccrualError, DuplicateKeyError, NotFoundError, RecordNotFoundError, ValidationError
from app.services.store import DocumentStore


logger = logging.getLogger(__name__)

ACCRUALS_COLLECTION = "overtime_accruals"


def weekday_bucket(day: date) -> str:
    """Accrual bucket for the calendar weekday of `day`"""
    index = day.weekday()
    if not 0 <= index < len(WEEKDAY_BUCKETS):
        raise AccrualError(f"Invalid weekday {index} for {day.isoformat()}")
    return WEEKDAY_BUCKETS[index]


class OvertimeAccrualApplicator:
    """Maintains one WeeklyAccrual record per employee, keyed by employee id"""

    def __init__(self, store: DocumentStore):
        self._store = store

    async def apply(
        self,
        employee_id: str,
        employee_name: str,
        day: date,
        hours: float,
        request_id: Optional[str] = None,
    ) -> bool:
        """
        Add `hours` to the bucket of `day`'s weekday.

        When `request_id` is given a request is accrued at most once; a repeat
        returns False and leaves the record untouched.
        """
        if not employee_id or not employee_name:
            raise ValidationError("Incomplete overtime data: employee is required")
        if hours is None or hours <= 0:
            raise ValidationError(f"Overtime hours must be positive, got {hours}")

        await self._ensure_record(employee_id, employee_name)
        bucket = weekday_bucket(day)
        applied = await self._store.increment(ACCRUALS_COLLECTION, employee_id, bucket, hours, marker=request_id)
        if applied:
            logger.info("Accrued %.2f h on %s for employee %s", hours, bucket, employee_id)
        return applied

    async def _ensure_record(self, employee_id: str, employee_name: str) -> None:
        if await self._store.get(ACCRUALS_COLLECTION, employee_id) is not None:
            return
        record = WeeklyAccrual(employee_id=employee_id, employee_name=employee_name)
        try:
            await self._store.create(ACCRUALS_COLLECTION, record.model_dump(), key=employee_id)
            logger.info("Created weekly accrual record for employee %s", employee_id)
        except DuplicateKeyError:
            # created by a concurrent approval in the meantime
            logger.debug("Accrual record for %s already exists", employee_id)

    async def get_accrual(self, employee_id: str) -> WeeklyAccrual:
        record = await self._store.get(ACCRUALS_COLLECTION, employee_id)
        if record is None:
            raise NotFoundError(f"No overtime accrual for employee {employee_id}")
        return WeeklyAccrual.model_validate(record)

    async def list_accruals(self) -> List[WeeklyAccrual]:
        records = await self._store.list(ACCRUALS_COLLECTION, order_by="employee_id")
        return [WeeklyAccrual.model_validate(r) for r in records]

    async def set_buckets(self, employee_id: str, buckets: Dict[str, float]) -> WeeklyAccrual:
        """Overwrite some buckets of an existing record"""
        unknown = set(buckets) - set(WEEKDAY_BUCKETS)
        if unknown:
            raise ValidationError(f"Unknown accrual buckets: {', '.join(sorted(unknown))}")
        if any(value is None or value < 0 for value in buckets.values()):
            raise ValidationError("Accrual hours cannot be negative")
        if not buckets:
            return await self.get_accrual(employee_id)

        try:
            await self._store.update(ACCRUALS_COLLECTION, employee_id, dict(buckets))
        except RecordNotFoundError:
            raise NotFoundError(f"No overtime accrual for employee {employee_id}")
        return await self.get_accrual(employee_id)

    async def initialize(self) -> int:
        """Create zeroed records for every employee that has none yet"""
        created = 0
        for employee in await self._store.list(EMPLOYEES_COLLECTION, order_by="cedula"):
            employee_id = employee["id"]
            if await self._store.get(ACCRUALS_COLLECTION, employee_id) is not None:
                continue
            record = WeeklyAccrual(employee_id=employee_id, employee_name=employee.get("nombre", ""))
            try:
                await self._store.create(ACCRUALS_COLLECTION, record.model_dump(), key=employee_id)
            except DuplicateKeyError:
                continue
            created += 1

        logger.info("Initialized %d weekly accrual records", created)
        return created
