"""
Tardiness endpoints - pipeline entry point, lateness calculation and monthly stats
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.core.deps import get_db, get_employee_or_404
from app.models.employee import Employee
from app.schemas.disciplinary import DisciplinaryRecordOut
from app.schemas.tardiness import (
    MinutesLateRequest,
    MinutesLateResponse,
    MonthlyStatsOut,
    ProcessTardinessParams,
    ReevaluateRequest,
    TardinessResult,
    TardinessRuleOut,
)
from app.services import disciplinary_service, tardiness_service
from app.utils.datetime_utils import local_month_of, now_utc

router = APIRouter()


@router.post("/process", response_model=TardinessResult)
async def process_tardiness_endpoint(
    params: ProcessTardinessParams,
    db: Session = Depends(get_db)
):
    """Process one late check-in (idempotent per attendance_id)"""
    return tardiness_service.process_tardiness(db, params)


@router.post("/minutes-late", response_model=MinutesLateResponse)
async def minutes_late_endpoint(request: MinutesLateRequest):
    """Compute whole minutes late for a check-in against a schedule"""
    minutes = tardiness_service.calculate_minutes_late(
        request.check_in_time,
        request.scheduled_start_time,
        request.grace_period_minutes
    )
    return MinutesLateResponse(minutes_late=minutes)


@router.get("/stats/{employee_id}", response_model=MonthlyStatsOut)
async def monthly_stats_endpoint(
    month: Optional[int] = Query(None, ge=1, le=12, description="Month (defaults to current local month)"),
    year: Optional[int] = Query(None, ge=2000, le=9999, description="Year (defaults to current local year)"),
    employee: Employee = Depends(get_employee_or_404),
    db: Session = Depends(get_db)
):
    """Monthly tardiness counters; zeros when nothing was recorded"""
    current_month, current_year = local_month_of(now_utc())
    return tardiness_service.get_monthly_tardiness_stats(
        db,
        employee.id,
        month or current_month,
        year or current_year
    )


@router.post("/reevaluate", response_model=Optional[DisciplinaryRecordOut])
async def reevaluate_endpoint(
    request: ReevaluateRequest,
    db: Session = Depends(get_db)
):
    """Re-run the formal tardies check from stored counters; returns the created record, if any"""
    outcome = disciplinary_service.reevaluate_disciplinary_triggers(
        db, request.employee_id, request.month, request.year
    )
    return outcome.record


@router.get("/rules", response_model=List[TardinessRuleOut])
async def list_rules_endpoint(db: Session = Depends(get_db)):
    """Configured tardiness rules"""
    return tardiness_service.list_tardiness_rules(db)
