"""
Disciplinary service - escalation of formal tardies and absences into records

- Formal tardies: the highest active FORMAL_TARDIES rule met this month creates
  at most one record per employee, rule and calendar month.
- Administrative acts: ACTIVE/COMPLETED acts inside the rule's rolling window
  propose a termination (always PENDING) unless one is already outstanding.
- Unjustified absences: the highest active rule met within the trailing window
  creates at most one record per rule and rule period.
- Suspension days open a served period (effective -> expiration) once a record
  is ACTIVE; expired periods are completed by complete_expired_records.

Functions here flush and leave committing to the caller, except the record
workflow transitions which are standalone operations.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.sql import func

from app import constants
from app.core.config import settings
from app.core.errors import InvalidRecordTransitionError
from app.models.attendance import AttendanceLog, AttendanceStatus
from app.models.disciplinary import (
    DisciplinaryActionRule,
    DisciplinaryActionType,
    DisciplinaryTriggerType,
    EmployeeDisciplinaryRecord,
    SanctionStatus,
)
from app.models.employee import Employee
from app.models.tardiness import TardinessAccumulation
from app.services import employee_service
from app.services.audit_service import log_audit
from app.utils.datetime_utils import (
    check_in_to_utc,
    month_bounds_utc,
    now_utc,
    period_key,
    window_start,
)

logger = logging.getLogger(__name__)

# Statuses that count toward termination
COUNTED_ACT_STATUSES = (SanctionStatus.ACTIVE, SanctionStatus.COMPLETED)
# Statuses that block a second termination proposal
OUTSTANDING_STATUSES = (SanctionStatus.PENDING, SanctionStatus.ACTIVE)


@dataclass
class TriggerOutcome:
    """Records created by one disciplinary evaluation"""
    record: Optional[EmployeeDisciplinaryRecord] = None
    termination: Optional[EmployeeDisciplinaryRecord] = None


class RecordStateMachine:
    """Status transitions of a disciplinary record.

    - PENDING -> ACTIVE (approved)
    - PENDING -> CANCELLED (rejected)
    - ACTIVE -> COMPLETED (served / expired)
    """

    VALID_TRANSITIONS: Dict[SanctionStatus, List[SanctionStatus]] = {
        SanctionStatus.PENDING: [SanctionStatus.ACTIVE, SanctionStatus.CANCELLED],
        SanctionStatus.ACTIVE: [SanctionStatus.COMPLETED],
        SanctionStatus.COMPLETED: [],
        SanctionStatus.CANCELLED: [],
    }

    @classmethod
    def can_transition(cls, from_status: SanctionStatus, to_status: SanctionStatus) -> bool:
        return to_status in cls.VALID_TRANSITIONS.get(from_status, [])

    @classmethod
    def validate_transition(cls, from_status: SanctionStatus, to_status: SanctionStatus) -> None:
        if not cls.can_transition(from_status, to_status):
            raise InvalidRecordTransitionError(from_status.value, to_status.value)


def _initial_status(rule: DisciplinaryActionRule) -> SanctionStatus:
    return SanctionStatus.PENDING if rule.requires_approval else SanctionStatus.ACTIVE


def _highest_rule_met(
    db: Session,
    trigger_type: DisciplinaryTriggerType,
    count: int
) -> Optional[DisciplinaryActionRule]:
    """Active rule of this trigger type with the largest trigger_count <= count."""
    return db.query(DisciplinaryActionRule).filter(
        DisciplinaryActionRule.trigger_type == trigger_type,
        DisciplinaryActionRule.trigger_count <= count,
        DisciplinaryActionRule.is_active.is_(True),
    ).order_by(
        DisciplinaryActionRule.trigger_count.desc(),
        DisciplinaryActionRule.id.asc(),
    ).first()


def _start_suspension(record: EmployeeDisciplinaryRecord, start: datetime) -> None:
    """Open the served period of a record carrying suspension days."""
    if not record.suspension_days or record.effective_date is not None:
        return
    record.effective_date = start
    record.expiration_date = start + timedelta(days=record.suspension_days)


def _add_record(db: Session, record: EmployeeDisciplinaryRecord) -> bool:
    """Insert inside a savepoint; False if a unique key says it already exists."""
    if record.status == SanctionStatus.ACTIVE:
        _start_suspension(record, record.applied_date)
    try:
        with db.begin_nested():
            db.add(record)
    except IntegrityError:
        logger.info(
            "disciplinary record already exists: employee_id=%s rule_id=%s period=%s",
            record.employee_id, record.rule_id, record.period_key,
        )
        return False
    log_audit(
        db=db,
        action="DISCIPLINARY_RECORD_CREATED",
        entity_type="employee_disciplinary_records",
        entity_id=record.id,
        meta={
            "employee_id": record.employee_id,
            "rule_id": record.rule_id,
            "action_type": record.action_type,
            "trigger_type": record.trigger_type,
            "trigger_count": record.trigger_count,
            "status": record.status,
        },
    )
    return True


# ---------------------------------------------------------------------------
# Formal tardies -> disciplinary record
# ---------------------------------------------------------------------------

def check_disciplinary_triggers(
    db: Session,
    employee_id: int,
    formal_tardies_count: int,
    month: int,
    year: int,
    applied_at: Optional[datetime] = None
) -> TriggerOutcome:
    """
    Create the disciplinary record for this month's formal tardies, once per rule.

    On creation the month's administrative_acts counter is incremented and the
    termination threshold is evaluated, all inside the caller's transaction.

    Args:
        db: Database session
        employee_id: Employee ID
        formal_tardies_count: Post-update formal tardies for the month
        month: Accumulation month (1-12)
        year: Accumulation year
        applied_at: Instant stamped on the record (defaults to now)

    Returns:
        TriggerOutcome with the created record and termination proposal, if any
    """
    rule = _highest_rule_met(db, DisciplinaryTriggerType.FORMAL_TARDIES, formal_tardies_count)
    if rule is None:
        return TriggerOutcome()

    key = period_key(year, month)
    month_start, month_end = month_bounds_utc(year, month)
    existing = db.query(EmployeeDisciplinaryRecord).filter(
        EmployeeDisciplinaryRecord.employee_id == employee_id,
        EmployeeDisciplinaryRecord.rule_id == rule.id,
        or_(
            EmployeeDisciplinaryRecord.period_key == key,
            and_(
                EmployeeDisciplinaryRecord.applied_date >= month_start,
                EmployeeDisciplinaryRecord.applied_date < month_end,
            ),
        ),
    ).first()
    if existing is not None:
        return TriggerOutcome()

    rule_description = rule.description or rule.name
    record = EmployeeDisciplinaryRecord(
        employee_id=employee_id,
        rule_id=rule.id,
        action_type=rule.action_type,
        trigger_type=rule.trigger_type,
        trigger_count=formal_tardies_count,
        description=(
            f"Administrative act for accumulating {formal_tardies_count} formal tardies "
            f"in {month:02d}/{year}. Per regulation: {rule_description}"
        ),
        applied_date=check_in_to_utc(applied_at) if applied_at is not None else now_utc(),
        suspension_days=rule.suspension_days,
        status=_initial_status(rule),
        period_key=key,
    )
    if not _add_record(db, record):
        return TriggerOutcome()

    db.query(TardinessAccumulation).filter(
        TardinessAccumulation.employee_id == employee_id,
        TardinessAccumulation.year == year,
        TardinessAccumulation.month == month,
    ).update(
        {TardinessAccumulation.administrative_acts: TardinessAccumulation.administrative_acts + 1},
        synchronize_session=False,
    )
    logger.info(
        "disciplinary record created: employee_id=%s record_id=%s rule=%s formal_tardies=%s status=%s",
        employee_id, record.id, rule.code, formal_tardies_count, record.status.value,
    )

    termination = check_administrative_acts_threshold(db, employee_id)
    return TriggerOutcome(record=record, termination=termination)


def reevaluate_disciplinary_triggers(
    db: Session,
    employee_id: int,
    month: int,
    year: int
) -> TriggerOutcome:
    """
    Re-run the formal tardies check from the stored monthly counters and commit.

    Safe to call any number of times; recovers an evaluation that was lost
    after the counters were updated.
    """
    accumulation = db.query(TardinessAccumulation).filter(
        TardinessAccumulation.employee_id == employee_id,
        TardinessAccumulation.year == year,
        TardinessAccumulation.month == month,
    ).first()
    if accumulation is None:
        return TriggerOutcome()

    # Keep the record inside the evaluated month
    _, month_end = month_bounds_utc(year, month)
    applied_at = min(now_utc(), month_end - timedelta(seconds=1))

    outcome = check_disciplinary_triggers(
        db,
        employee_id=employee_id,
        formal_tardies_count=accumulation.formal_tardies_count,
        month=month,
        year=year,
        applied_at=applied_at,
    )
    db.commit()
    return outcome


# ---------------------------------------------------------------------------
# Administrative acts -> termination proposal
# ---------------------------------------------------------------------------

def count_administrative_acts(
    db: Session,
    employee_id: int,
    period_days: int,
    now: Optional[datetime] = None
) -> int:
    """ACTIVE/COMPLETED administrative acts applied within the last period_days."""
    since = window_start(now or now_utc(), period_days)
    return db.query(func.count(EmployeeDisciplinaryRecord.id)).filter(
        EmployeeDisciplinaryRecord.employee_id == employee_id,
        EmployeeDisciplinaryRecord.action_type == DisciplinaryActionType.ADMINISTRATIVE_ACT,
        EmployeeDisciplinaryRecord.status.in_(COUNTED_ACT_STATUSES),
        EmployeeDisciplinaryRecord.applied_date >= since,
    ).scalar() or 0


def _administrative_acts_rule(db: Session) -> Optional[DisciplinaryActionRule]:
    return db.query(DisciplinaryActionRule).filter(
        DisciplinaryActionRule.trigger_type == DisciplinaryTriggerType.ADMINISTRATIVE_ACTS,
        DisciplinaryActionRule.is_active.is_(True),
    ).order_by(DisciplinaryActionRule.id.asc()).first()


def check_administrative_acts_threshold(
    db: Session,
    employee_id: int,
    now: Optional[datetime] = None
) -> Optional[EmployeeDisciplinaryRecord]:
    """
    Propose termination when administrative acts in the rolling window reach the rule.

    The count is recomputed on every call, so acts cancelled in the meantime no
    longer contribute. No proposal is created while a PENDING or ACTIVE
    termination for the same rule exists.

    Returns:
        The created TERMINATION record (always PENDING), or None
    """
    rule = _administrative_acts_rule(db)
    if rule is None:
        return None

    now = now or now_utc()
    acts_count = count_administrative_acts(db, employee_id, rule.period_days, now)
    if acts_count < rule.trigger_count:
        return None

    outstanding = db.query(EmployeeDisciplinaryRecord).filter(
        EmployeeDisciplinaryRecord.employee_id == employee_id,
        EmployeeDisciplinaryRecord.rule_id == rule.id,
        EmployeeDisciplinaryRecord.action_type == DisciplinaryActionType.TERMINATION,
        EmployeeDisciplinaryRecord.status.in_(OUTSTANDING_STATUSES),
    ).first()
    if outstanding is not None:
        return None

    termination = EmployeeDisciplinaryRecord(
        employee_id=employee_id,
        rule_id=rule.id,
        action_type=DisciplinaryActionType.TERMINATION,
        trigger_type=rule.trigger_type,
        trigger_count=acts_count,
        description=(
            f"Termination proposal for accumulating {acts_count} administrative acts "
            f"in {rule.period_days} days. Per regulation: {rule.description or rule.name}"
        ),
        applied_date=now,
        status=SanctionStatus.PENDING,
    )
    if not _add_record(db, termination):
        return None

    logger.warning(
        "termination proposed: employee_id=%s record_id=%s acts=%s window_days=%s",
        employee_id, termination.id, acts_count, rule.period_days,
    )
    return termination


# ---------------------------------------------------------------------------
# Unjustified absences
# ---------------------------------------------------------------------------

def count_unjustified_absences(db: Session, employee_id: int, as_of: date) -> int:
    since = as_of - timedelta(days=settings.UNJUSTIFIED_ABSENCE_WINDOW_DAYS)
    return db.query(func.count(AttendanceLog.id)).filter(
        AttendanceLog.employee_id == employee_id,
        AttendanceLog.status == AttendanceStatus.ABSENT.value,
        AttendanceLog.punch_date > since,
        AttendanceLog.punch_date <= as_of,
    ).scalar() or 0


def process_unjustified_absence(
    db: Session,
    employee_id: int,
    as_of: date,
    now: Optional[datetime] = None
) -> Optional[EmployeeDisciplinaryRecord]:
    """
    Apply the highest UNJUSTIFIED_ABSENCES rule met by the trailing absence count.

    A rule fires at most once per employee within its own period_days.
    """
    absence_count = count_unjustified_absences(db, employee_id, as_of)
    rule = _highest_rule_met(db, DisciplinaryTriggerType.UNJUSTIFIED_ABSENCES, absence_count)
    if rule is None:
        return None

    now = now or now_utc()
    recent = db.query(EmployeeDisciplinaryRecord).filter(
        EmployeeDisciplinaryRecord.employee_id == employee_id,
        EmployeeDisciplinaryRecord.rule_id == rule.id,
        EmployeeDisciplinaryRecord.applied_date >= window_start(now, rule.period_days),
    ).first()
    if recent is not None:
        return None

    record = EmployeeDisciplinaryRecord(
        employee_id=employee_id,
        rule_id=rule.id,
        action_type=rule.action_type,
        trigger_type=rule.trigger_type,
        trigger_count=absence_count,
        description=(
            f"{absence_count} unjustified absence(s) in the last "
            f"{settings.UNJUSTIFIED_ABSENCE_WINDOW_DAYS} days. Per regulation: {rule.description or rule.name}"
        ),
        applied_date=now,
        suspension_days=rule.suspension_days,
        status=_initial_status(rule),
    )
    if not _add_record(db, record):
        return None
    logger.info(
        "absence sanction created: employee_id=%s record_id=%s rule=%s absences=%s",
        employee_id, record.id, rule.code, absence_count,
    )
    return record


# ---------------------------------------------------------------------------
# Record workflow
# ---------------------------------------------------------------------------

def _get_record_or_404(db: Session, record_id: int) -> EmployeeDisciplinaryRecord:
    record = db.query(EmployeeDisciplinaryRecord).filter(EmployeeDisciplinaryRecord.id == record_id).first()
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Disciplinary record not found"
        )
    return record


def _transition(
    db: Session,
    record_id: int,
    to_status: SanctionStatus,
    action: str,
    actor_id: Optional[int] = None,
    notes: Optional[str] = None
) -> EmployeeDisciplinaryRecord:
    record = _get_record_or_404(db, record_id)
    from_status = record.status
    RecordStateMachine.validate_transition(from_status, to_status)

    record.status = to_status
    if from_status == SanctionStatus.PENDING:
        record.approved_by_id = actor_id
        record.approved_at = now_utc()
    if to_status == SanctionStatus.ACTIVE:
        _start_suspension(record, record.approved_at)
    if notes:
        record.notes = notes
    db.flush()

    log_audit(
        db=db,
        action=action,
        entity_type="employee_disciplinary_records",
        entity_id=record.id,
        actor_id=actor_id,
        meta={"before": from_status, "after": to_status, "notes": notes},
    )
    logger.info(
        "disciplinary record transition: record_id=%s before=%s after=%s",
        record.id, from_status.value, to_status.value,
    )
    return record


def approve_record(
    db: Session,
    record_id: int,
    approved_by_id: Optional[int] = None,
    notes: Optional[str] = None
) -> EmployeeDisciplinaryRecord:
    """
    Approve a PENDING record (-> ACTIVE).

    Runs behind the employee row lock, in one transaction:
    - an approved administrative act starts counting toward termination, so
      the termination threshold is evaluated again;
    - an approved termination deactivates the employee.
    """
    employee = employee_service.lock_employee(db, _get_record_or_404(db, record_id).employee_id)
    record = _transition(db, record_id, SanctionStatus.ACTIVE, "DISCIPLINARY_RECORD_APPROVED", approved_by_id, notes)
    if record.action_type == DisciplinaryActionType.ADMINISTRATIVE_ACT:
        check_administrative_acts_threshold(db, record.employee_id)
    elif record.action_type == DisciplinaryActionType.TERMINATION:
        employee_service.terminate_employee(db, employee, record.id, approved_by_id)
    db.commit()
    db.refresh(record)
    return record


def reject_record(
    db: Session,
    record_id: int,
    approved_by_id: Optional[int] = None,
    notes: Optional[str] = None
) -> EmployeeDisciplinaryRecord:
    """Reject a PENDING record (-> CANCELLED)."""
    record = _transition(db, record_id, SanctionStatus.CANCELLED, "DISCIPLINARY_RECORD_REJECTED", approved_by_id, notes)
    db.commit()
    db.refresh(record)
    return record


def complete_record(
    db: Session,
    record_id: int,
    notes: Optional[str] = None
) -> EmployeeDisciplinaryRecord:
    """Mark an ACTIVE record as served (-> COMPLETED)."""
    record = _transition(db, record_id, SanctionStatus.COMPLETED, "DISCIPLINARY_RECORD_COMPLETED", notes=notes)
    db.commit()
    db.refresh(record)
    return record


def complete_expired_records(db: Session, now: Optional[datetime] = None) -> List[EmployeeDisciplinaryRecord]:
    """
    Move ACTIVE records whose served period has ended to COMPLETED and commit.

    Completed administrative acts keep counting toward termination.

    Returns:
        The records that were completed
    """
    now = now or now_utc()
    expired_ids = [
        record_id for (record_id,) in db.query(EmployeeDisciplinaryRecord.id).filter(
            EmployeeDisciplinaryRecord.status == SanctionStatus.ACTIVE,
            EmployeeDisciplinaryRecord.expiration_date.isnot(None),
            EmployeeDisciplinaryRecord.expiration_date < now,
        ).order_by(EmployeeDisciplinaryRecord.id.asc()).all()
    ]

    completed = [
        _transition(db, record_id, SanctionStatus.COMPLETED, "DISCIPLINARY_RECORD_EXPIRED")
        for record_id in expired_ids
    ]
    db.commit()
    logger.info("expired disciplinary records completed: count=%s", len(completed))
    return completed


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------

def get_disciplinary_history(
    db: Session,
    employee_id: int,
    limit: Optional[int] = None
) -> List[EmployeeDisciplinaryRecord]:
    """Most recent records first, with their rule loaded."""
    limit = limit or settings.DEFAULT_HISTORY_LIMIT
    return db.query(EmployeeDisciplinaryRecord).options(
        joinedload(EmployeeDisciplinaryRecord.rule)
    ).filter(
        EmployeeDisciplinaryRecord.employee_id == employee_id
    ).order_by(
        EmployeeDisciplinaryRecord.applied_date.desc(),
        EmployeeDisciplinaryRecord.id.desc(),
    ).limit(limit).all()


def get_pending_records(db: Session, limit: Optional[int] = None) -> List[EmployeeDisciplinaryRecord]:
    """Records awaiting approval, most recent first."""
    query = db.query(EmployeeDisciplinaryRecord).options(
        joinedload(EmployeeDisciplinaryRecord.rule)
    ).filter(
        EmployeeDisciplinaryRecord.status == SanctionStatus.PENDING
    ).order_by(
        EmployeeDisciplinaryRecord.applied_date.desc(),
        EmployeeDisciplinaryRecord.id.desc(),
    )
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def get_employee_disciplinary_stats(db: Session, employee_id: int, now: Optional[datetime] = None) -> dict:
    """
    Disciplinary summary of one employee.

    Args:
        db: Database session
        employee_id: Employee ID
        now: Reference instant for the rolling windows (defaults to now)

    Returns:
        Dict with record totals, counts over the last 30 and 90 days, served
        administrative acts and suspensions, the acts inside the termination
        rule's window and whether that window already reaches the threshold
    """
    now = now or now_utc()
    records = db.query(EmployeeDisciplinaryRecord).filter(EmployeeDisciplinaryRecord.employee_id == employee_id)

    def _count(*criteria) -> int:
        return records.filter(*criteria).count()

    rule = _administrative_acts_rule(db)
    acts_window = rule.period_days if rule is not None else constants.PERIOD_DAYS_ACTS
    recent_acts = count_administrative_acts(db, employee_id, acts_window, now)

    return {
        "employee_id": employee_id,
        "total_records": records.count(),
        "active_records": _count(EmployeeDisciplinaryRecord.status == SanctionStatus.ACTIVE),
        "pending_records": _count(EmployeeDisciplinaryRecord.status == SanctionStatus.PENDING),
        "last_30_days": _count(
            EmployeeDisciplinaryRecord.applied_date >= window_start(now, constants.STATS_SHORT_WINDOW_DAYS)
        ),
        "last_90_days": _count(
            EmployeeDisciplinaryRecord.applied_date >= window_start(now, constants.STATS_LONG_WINDOW_DAYS)
        ),
        "administrative_acts": _count(
            EmployeeDisciplinaryRecord.action_type == DisciplinaryActionType.ADMINISTRATIVE_ACT,
            EmployeeDisciplinaryRecord.status.in_(COUNTED_ACT_STATUSES),
        ),
        "suspensions": _count(
            EmployeeDisciplinaryRecord.action_type == DisciplinaryActionType.SUSPENSION,
            EmployeeDisciplinaryRecord.status.in_(COUNTED_ACT_STATUSES),
        ),
        "recent_acts": recent_acts,
        "at_risk_of_termination": rule is not None and recent_acts >= rule.trigger_count,
    }


def get_employees_at_risk(db: Session, now: Optional[datetime] = None) -> List[dict]:
    """
    Active employees at most one administrative act away from the termination threshold.

    HIGH when the next act proposes termination. MEDIUM once the threshold is
    reached, since the termination proposal itself is then outstanding.
    """
    rule = _administrative_acts_rule(db)
    if rule is None:
        return []

    since = window_start(now or now_utc(), rule.period_days)
    rows = db.query(
        Employee,
        func.count(EmployeeDisciplinaryRecord.id).label("acts_count"),
    ).join(
        EmployeeDisciplinaryRecord, EmployeeDisciplinaryRecord.employee_id == Employee.id
    ).filter(
        EmployeeDisciplinaryRecord.action_type == DisciplinaryActionType.ADMINISTRATIVE_ACT,
        EmployeeDisciplinaryRecord.status.in_(COUNTED_ACT_STATUSES),
        EmployeeDisciplinaryRecord.applied_date >= since,
        Employee.active.is_(True),
    ).group_by(Employee.id).all()

    at_risk = []
    for employee, acts_count in rows:
        remaining = max(0, rule.trigger_count - acts_count)
        if remaining > 1:
            continue
        at_risk.append({
            "employee_id": employee.id,
            "emp_code": employee.emp_code,
            "name": employee.name,
            "acts_count": acts_count,
            "remaining_acts": remaining,
            "risk_level": "HIGH" if remaining == 1 else "MEDIUM",
        })
    at_risk.sort(key=lambda item: (-item["acts_count"], item["employee_id"]))
    return at_risk
