"""
Attendance endpoints - check-in and unjustified absences.
A late check-in runs the tardiness pipeline keyed by the new attendance id.
"""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.core.deps import get_db
from app.schemas.attendance import (
    AbsenceRequest,
    AbsenceResponse,
    CheckInRequest,
    CheckInResponse,
)
from app.services import attendance_service

router = APIRouter()
_log = logging.getLogger(__name__)


@router.post("/check-in", response_model=CheckInResponse, status_code=status.HTTP_201_CREATED)
async def check_in(
    request: CheckInRequest,
    db: Session = Depends(get_db)
):
    """Record a check-in; returns the tardiness result when late"""
    attendance_log, tardiness = attendance_service.record_check_in(
        db,
        employee_id=request.employee_id,
        check_in_time=request.check_in_time,
        source=request.source
    )
    return CheckInResponse(attendance=attendance_log, tardiness=tardiness)


@router.post("/absence", response_model=AbsenceResponse, status_code=status.HTTP_201_CREATED)
async def record_absence(
    request: AbsenceRequest,
    db: Session = Depends(get_db)
):
    """Record an unjustified absence and apply the absence sanction ladder"""
    attendance_log, absence_count, record = attendance_service.record_absence(
        db,
        employee_id=request.employee_id,
        absence_date=request.absence_date
    )
    if record is not None:
        _log.info("absence sanction: employee_id=%s record_id=%s", request.employee_id, record.id)
    return AbsenceResponse(attendance=attendance_log, absence_count=absence_count, disciplinary_record=record)
