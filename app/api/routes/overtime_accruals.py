"""
Overtime Accrual Routes
Per-employee weekly overtime totals
"""
from fastapi import APIRouter, Depends

from app.api.deps import get_accrual_applicator, http_error
from app.models.overtime import WeeklyAccrual, WeeklyAccrualUpdate
from app.services.accrual import OvertimeAccrualApplicator
from app.services.exceptions import WorkflowError


router = APIRouter()


@router.get("/")
async def get_accruals(accruals: OvertimeAccrualApplicator = Depends(get_accrual_applicator)):
    """Weekly overtime of every employee"""
    records = await accruals.list_accruals()
    return {
        "total": len(records),
        "accruals": [
            {**record.model_dump(exclude={"applied_requests"}), "total_hours": record.total_hours}
            for record in records
        ]
    }


@router.post("/initialize")
async def initialize_accruals(accruals: OvertimeAccrualApplicator = Depends(get_accrual_applicator)):
    """Create empty accrual records for employees that have none"""
    created = await accruals.initialize()
    return {"message": f"{created} accrual records created", "created": created}


@router.get("/{employee_id}", response_model=WeeklyAccrual, response_model_exclude={"applied_requests"})
async def get_accrual(
    employee_id: str,
    accruals: OvertimeAccrualApplicator = Depends(get_accrual_applicator)
):
    """Weekly overtime of one employee"""
    try:
        return await accruals.get_accrual(employee_id)
    except WorkflowError as e:
        raise http_error(e)


@router.patch("/{employee_id}", response_model=WeeklyAccrual, response_model_exclude={"applied_requests"})
async def update_accrual(
    employee_id: str,
    update_data: WeeklyAccrualUpdate,
    accruals: OvertimeAccrualApplicator = Depends(get_accrual_applicator)
):
    """Overwrite individual weekday totals (HR correction)"""
    try:
        return await accruals.set_buckets(employee_id, update_data.model_dump(exclude_none=True))
    except WorkflowError as e:
        raise http_error(e)
