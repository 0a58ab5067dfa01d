"""
Employee service - row locking and employment status changes
"""
import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.models.employee import Employee
from app.services.audit_service import log_audit

logger = logging.getLogger(__name__)


def lock_employee(db: Session, employee_id: int) -> Employee:
    """
    Lock the employee row for the rest of the transaction.

    Every evaluation that may propose a termination runs behind this lock, so
    two of them for the same employee never interleave (no-op on SQLite).

    Raises:
        HTTPException 404: unknown employee
    """
    employee = db.query(Employee).filter(
        Employee.id == employee_id
    ).with_for_update().populate_existing().first()
    if employee is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Employee with id {employee_id} not found"
        )
    return employee


def terminate_employee(
    db: Session,
    employee: Employee,
    record_id: int,
    actor_id: Optional[int] = None
) -> None:
    """Deactivate an employee after an approved termination record (caller commits)."""
    if not employee.active:
        return
    employee.active = False
    db.flush()

    log_audit(
        db=db,
        action="EMPLOYEE_TERMINATED",
        entity_type="employees",
        entity_id=employee.id,
        actor_id=actor_id,
        meta={"disciplinary_record_id": record_id, "emp_code": employee.emp_code},
    )
    logger.warning(
        "employee terminated: employee_id=%s emp_code=%s record_id=%s",
        employee.id, employee.emp_code, record_id,
    )
