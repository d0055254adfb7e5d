from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError as SchemaError

from conftest import InMemoryStore

from app.models.overtime import OvertimeRequestCreate, OvertimeStatus
from app.services.accrual import ACCRUALS_COLLECTION, OvertimeAccrualApplicator
from app.services.exceptions import ApplyFailure, NotFoundError, ValidationError
from app.services.overtime_requests import OvertimeRequestService, calculate_overtime_hours


def _overtime(start="17:30", end="19:30", day=date(2024, 1, 3), employee_id="123456789") -> OvertimeRequestCreate:
    return OvertimeRequestCreate(
        employee_id=employee_id,
        employee_name="Juan Pérez",
        date=day,
        start_time=start,
        end_time=end,
        location="Planta 1",
        description="Inventario de fin de mes",
    )


@pytest.mark.parametrize(
    "start, end, hours",
    [
        ("17:30", "19:30", 2.0),
        ("18:00", "18:45", 0.75),
        ("19:30", "17:30", 0.0),
        ("18:00", "18:00", 0.0),
        ("", "18:00", 0.0),
    ],
)
def test_calculate_overtime_hours(start, end, hours):
    assert calculate_overtime_hours(start, end) == hours


def test_calculate_overtime_hours_rejects_bad_times():
    with pytest.raises(ValidationError):
        calculate_overtime_hours("25:00", "26:00")


async def test_submit_stores_computed_hours(overtime_service):
    request_id = await overtime_service.submit(_overtime())

    request = await overtime_service.get(request_id)
    assert request.overtime_hours == 2.0
    assert request.status == OvertimeStatus.PENDING
    assert request.date == date(2024, 1, 3)
    assert request.location == "Planta 1"


@pytest.mark.parametrize("start, end", [("19:30", "17:30"), ("06:00", "18:30")])
async def test_submit_rejects_invalid_ranges(overtime_service, start, end):
    with pytest.raises(ValidationError):
        await overtime_service.submit(_overtime(start, end))


async def test_approval_accrues_on_request_weekday(overtime_service, accruals):
    request_id = await overtime_service.submit(_overtime())

    reviewed = await overtime_service.review(request_id, OvertimeStatus.APPROVED, "HR", "ok")

    assert reviewed.status == OvertimeStatus.APPROVED
    assert reviewed.reviewed_by == "HR"
    assert reviewed.reviewed_at is not None
    assert reviewed.review_comments == "ok"

    accrual = await accruals.get_accrual("123456789")
    assert accrual.wednesday == 2.0
    assert accrual.total_hours == 2.0


async def test_rejection_does_not_accrue(overtime_service, store):
    request_id = await overtime_service.submit(_overtime())

    reviewed = await overtime_service.review(request_id, OvertimeStatus.REJECTED, "HR", "no evidence")

    assert reviewed.status == OvertimeStatus.REJECTED
    assert reviewed.reviewed_by == "HR"
    assert reviewed.reviewed_at is not None
    assert await store.get(ACCRUALS_COLLECTION, "123456789") is None


@pytest.mark.parametrize("first", [OvertimeStatus.APPROVED, OvertimeStatus.REJECTED])
@pytest.mark.parametrize("second", [OvertimeStatus.APPROVED, OvertimeStatus.REJECTED])
async def test_reviewed_request_is_final(overtime_service, accruals, first, second):
    request_id = await overtime_service.submit(_overtime())
    await overtime_service.review(request_id, first, "HR")

    with pytest.raises(ValidationError, match="already finalized"):
        await overtime_service.review(request_id, second, "GM")

    if first == OvertimeStatus.APPROVED:
        assert (await accruals.get_accrual("123456789")).wednesday == 2.0


async def test_review_requires_decision(overtime_service):
    request_id = await overtime_service.submit(_overtime())

    with pytest.raises(ValidationError):
        await overtime_service.review(request_id, OvertimeStatus.PENDING, "HR")
    with pytest.raises(ValidationError):
        await overtime_service.review(request_id, OvertimeStatus.APPROVED, " ")


async def test_review_missing_request(overtime_service):
    with pytest.raises(NotFoundError):
        await overtime_service.review("missing", OvertimeStatus.APPROVED, "HR")


class AccrualWriteFailsStore(InMemoryStore):
    async def increment(self, collection, key, field, amount, marker=None):
        raise ConnectionError("accrual write timed out")


async def test_failed_accrual_reverts_to_pending(clock):
    store = AccrualWriteFailsStore()
    service = OvertimeRequestService(store, OvertimeAccrualApplicator(store), clock=clock)
    request_id = await service.submit(_overtime())

    with pytest.raises(ApplyFailure) as excinfo:
        await service.review(request_id, OvertimeStatus.APPROVED, "HR")

    assert isinstance(excinfo.value.cause, ConnectionError)
    assert excinfo.value.request_id == request_id
    assert request_id in str(excinfo.value)
    request = await service.get(request_id)
    assert request.status == OvertimeStatus.PENDING
    assert request.reviewed_by is None
    assert request.reviewed_at is None
    assert "accrual write timed out" in request.review_comments

    # the request can be reviewed again
    rejected = await service.review(request_id, OvertimeStatus.REJECTED, "HR")
    assert rejected.status == OvertimeStatus.REJECTED


async def test_list_filters(overtime_service):
    first = await overtime_service.submit(_overtime(employee_id="1"))
    second = await overtime_service.submit(_overtime(employee_id="2"))
    third = await overtime_service.submit(_overtime(employee_id="1", start="20:00", end="21:00"))
    await overtime_service.review(first, OvertimeStatus.APPROVED, "HR")

    assert [r.id for r in await overtime_service.list()] == [third, second, first]
    assert [r.id for r in await overtime_service.list(employee_id="1")] == [third, first]
    assert [r.id for r in await overtime_service.list(status="pending")] == [third, second]
    assert [r.id for r in await overtime_service.list(employee_id="1", status="all")] == [third, first]


def test_create_schema_validates_clock_times():
    with pytest.raises(SchemaError):
        _overtime(start="5pm")
