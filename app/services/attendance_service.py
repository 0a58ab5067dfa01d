"""
Attendance service - check-ins and unjustified absences feeding the tardiness engine
"""
import logging
from datetime import date, datetime
from typing import Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.attendance import AttendanceLog, AttendanceStatus
from app.models.disciplinary import EmployeeDisciplinaryRecord
from app.models.employee import Employee
from app.schemas.tardiness import ProcessTardinessParams, TardinessResult
from app.services import disciplinary_service, tardiness_service
from app.services.audit_service import log_audit
from app.utils.datetime_utils import check_in_to_utc, now_utc, to_local

logger = logging.getLogger(__name__)


def _get_active_employee(db: Session, employee_id: int) -> Employee:
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if employee is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Employee with id {employee_id} not found"
        )
    if not employee.active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Employee is inactive"
        )
    return employee


def _ensure_no_entry(db: Session, employee_id: int, punch_date: date) -> None:
    existing = db.query(AttendanceLog).filter(
        AttendanceLog.employee_id == employee_id,
        AttendanceLog.punch_date == punch_date
    ).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Attendance already recorded for this date"
        )


def _commit_log(db: Session, attendance_log: AttendanceLog) -> None:
    """Commit a new attendance log; a unique-key race is reported as a duplicate."""
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Attendance already recorded for this date"
        )
    db.refresh(attendance_log)


def employee_schedule(employee: Employee) -> Tuple[str, int]:
    """Scheduled start (HH:MM) and grace minutes, falling back to the configured defaults."""
    scheduled_start = employee.scheduled_start_time or settings.DEFAULT_SCHEDULED_START
    grace = employee.grace_period_minutes
    if grace is None:
        grace = settings.DEFAULT_GRACE_PERIOD_MINUTES
    return scheduled_start, grace


def record_check_in(
    db: Session,
    employee_id: int,
    check_in_time: Optional[datetime] = None,
    source: str = "web"
) -> Tuple[AttendanceLog, Optional[TardinessResult]]:
    """
    Record an employee check-in and run the tardiness pipeline when late

    Args:
        db: Database session
        employee_id: ID of the employee checking in
        check_in_time: Check-in instant (defaults to server time); naive values are local time
        source: Source of check-in (e.g., "mobile", "web")

    Returns:
        Tuple of (AttendanceLog, TardinessResult or None when on time)

    Raises:
        HTTPException: Unknown/inactive employee, or already checked in that day (409)
        MalformedScheduleTimeError: The employee's schedule is not HH:MM; nothing is recorded
    """
    employee = _get_active_employee(db, employee_id)
    check_in_time = check_in_time or now_utc()
    punch_date = to_local(check_in_time).date()

    _ensure_no_entry(db, employee_id, punch_date)

    scheduled_start, grace = employee_schedule(employee)
    minutes_late = tardiness_service.calculate_minutes_late(check_in_time, scheduled_start, grace)

    attendance_log = AttendanceLog(
        employee_id=employee_id,
        punch_date=punch_date,
        in_time=check_in_to_utc(check_in_time),
        status=(AttendanceStatus.LATE if minutes_late > 0 else AttendanceStatus.PRESENT).value,
        minutes_late=minutes_late,
        source=source
    )
    db.add(attendance_log)
    db.flush()

    log_audit(
        db=db,
        actor_id=employee_id,
        action="ATTENDANCE_CHECK_IN",
        entity_type="attendance_logs",
        entity_id=attendance_log.id,
        meta={
            "punch_date": str(punch_date),
            "scheduled_start": scheduled_start,
            "grace_period_minutes": grace,
            "minutes_late": minutes_late,
            "source": source
        }
    )
    _commit_log(db, attendance_log)
    logger.info(
        "check-in recorded: employee_id=%s attendance_id=%s minutes_late=%s",
        employee_id, attendance_log.id, minutes_late,
    )

    if minutes_late == 0:
        return attendance_log, None

    # The check-in stays recorded if processing fails; reprocessing by
    # attendance id is idempotent.
    result = tardiness_service.process_tardiness(
        db,
        ProcessTardinessParams(
            employee_id=employee_id,
            minutes_late=minutes_late,
            check_in_time=check_in_time,
            attendance_id=str(attendance_log.id),
        ),
    )
    db.refresh(attendance_log)
    return attendance_log, result


def record_absence(
    db: Session,
    employee_id: int,
    absence_date: date
) -> Tuple[AttendanceLog, int, Optional[EmployeeDisciplinaryRecord]]:
    """
    Record an unjustified absence and apply the absence sanction ladder

    Returns:
        Tuple of (AttendanceLog, absences in the trailing window, created record or None)

    Raises:
        HTTPException: Unknown/inactive employee, or attendance already recorded that day (409)
    """
    _get_active_employee(db, employee_id)
    _ensure_no_entry(db, employee_id, absence_date)

    attendance_log = AttendanceLog(
        employee_id=employee_id,
        punch_date=absence_date,
        in_time=None,
        status=AttendanceStatus.ABSENT.value,
        minutes_late=0,
        source="system"
    )
    db.add(attendance_log)
    db.flush()

    log_audit(
        db=db,
        action="ATTENDANCE_ABSENCE",
        entity_type="attendance_logs",
        entity_id=attendance_log.id,
        meta={"employee_id": employee_id, "absence_date": str(absence_date)}
    )

    absence_count = disciplinary_service.count_unjustified_absences(db, employee_id, absence_date)
    record = disciplinary_service.process_unjustified_absence(db, employee_id, absence_date)
    _commit_log(db, attendance_log)
    if record is not None:
        db.refresh(record)

    logger.info(
        "absence recorded: employee_id=%s date=%s absences_in_window=%s record_id=%s",
        employee_id, absence_date, absence_count, record.id if record is not None else None,
    )
    return attendance_log, absence_count, record
