"""
Disciplinary endpoints - history, stats, at-risk report and the record approval workflow
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.core.deps import get_db, get_employee_or_404
from app.models.employee import Employee
from app.schemas.disciplinary import (
    CompleteExpiredResponse,
    DisciplinaryRecordListResponse,
    DisciplinaryRecordOut,
    EmployeeAtRiskOut,
    EmployeeDisciplinaryStatsOut,
    RecordDecisionRequest,
)
from app.services import disciplinary_service

router = APIRouter()


@router.get("/history/{employee_id}", response_model=DisciplinaryRecordListResponse)
async def disciplinary_history_endpoint(
    limit: Optional[int] = Query(None, ge=1, le=100, description="Maximum records (default 10)"),
    employee: Employee = Depends(get_employee_or_404),
    db: Session = Depends(get_db)
):
    """Disciplinary records of an employee, most recent first"""
    records = disciplinary_service.get_disciplinary_history(db, employee.id, limit)
    return DisciplinaryRecordListResponse(items=records, total=len(records))


@router.get("/at-risk", response_model=List[EmployeeAtRiskOut])
async def employees_at_risk_endpoint(db: Session = Depends(get_db)):
    """Employees close to the administrative-acts termination threshold"""
    return disciplinary_service.get_employees_at_risk(db)


@router.get("/stats/{employee_id}", response_model=EmployeeDisciplinaryStatsOut)
async def disciplinary_stats_endpoint(
    employee: Employee = Depends(get_employee_or_404),
    db: Session = Depends(get_db)
):
    """Record totals and termination risk of an employee"""
    return disciplinary_service.get_employee_disciplinary_stats(db, employee.id)


@router.get("/pending", response_model=DisciplinaryRecordListResponse)
async def pending_records_endpoint(
    limit: Optional[int] = Query(None, ge=1, le=500, description="Maximum records (default all)"),
    db: Session = Depends(get_db)
):
    """Records awaiting approval, most recent first"""
    records = disciplinary_service.get_pending_records(db, limit)
    return DisciplinaryRecordListResponse(items=records, total=len(records))


@router.post("/records/complete-expired", response_model=CompleteExpiredResponse)
async def complete_expired_records_endpoint(db: Session = Depends(get_db)):
    """Complete ACTIVE records whose served period has ended"""
    records = disciplinary_service.complete_expired_records(db)
    return CompleteExpiredResponse(completed=len(records), record_ids=[r.id for r in records])


@router.post("/records/{record_id}/approve", response_model=DisciplinaryRecordOut)
async def approve_record_endpoint(
    record_id: int,
    decision: RecordDecisionRequest,
    db: Session = Depends(get_db)
):
    """Approve a pending record (PENDING -> ACTIVE)"""
    return disciplinary_service.approve_record(db, record_id, decision.approved_by_id, decision.notes)


@router.post("/records/{record_id}/reject", response_model=DisciplinaryRecordOut)
async def reject_record_endpoint(
    record_id: int,
    decision: RecordDecisionRequest,
    db: Session = Depends(get_db)
):
    """Reject a pending record (PENDING -> CANCELLED)"""
    return disciplinary_service.reject_record(db, record_id, decision.approved_by_id, decision.notes)


@router.post("/records/{record_id}/complete", response_model=DisciplinaryRecordOut)
async def complete_record_endpoint(
    record_id: int,
    decision: RecordDecisionRequest,
    db: Session = Depends(get_db)
):
    """Mark an active record as served (ACTIVE -> COMPLETED)"""
    return disciplinary_service.complete_record(db, record_id, decision.notes)
