"""
Tardiness service - lateness calculation, rule selection and monthly accumulation

Policy:
- Late arrivals (1-15 min): accumulate; every N late arrivals (rule.accumulation_count)
  convert into formal tardies and the late-arrival counter resets to 0.
- Direct tardiness (16+ min): one formal tardy per event, immediately.
- After the first formal tardy of the month any late arrival is a formal tardy.

One late check-in runs the whole pipeline in a single transaction:
accumulation update -> disciplinary trigger -> termination threshold.
"""
import enum
import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from app.core.config import settings
from app.core.errors import (
    AttendanceEventConflictError,
    ConcurrentAccumulationConflictError,
    MalformedScheduleTimeError,
    PersistenceFailureError,
    RuleNotFoundError,
    TardinessError,
)
from app.models.tardiness import TardinessAccumulation, TardinessEvent, TardinessRule
from app.schemas.tardiness import (
    AccumulationType,
    MonthlyStats,
    MonthlyStatsOut,
    ProcessTardinessParams,
    TardinessResult,
)
from app.services import disciplinary_service, employee_service
from app.utils.datetime_utils import check_in_to_utc, ensure_utc, local_month_of, to_local
from app.utils.json_serializer import sanitize_for_json

logger = logging.getLogger(__name__)


class TardinessRuleRole(str, enum.Enum):
    NORMAL_LATE_ARRIVAL = "NORMAL_LATE_ARRIVAL"
    POST_FIRST_TARDINESS = "POST_FIRST_TARDINESS"
    DIRECT_TARDINESS = "DIRECT_TARDINESS"


def rule_code_for_role(role: TardinessRuleRole) -> str:
    """Configured rule code bound to a rule role."""
    return {
        TardinessRuleRole.NORMAL_LATE_ARRIVAL: settings.LATE_ARRIVAL_RULE_CODE,
        TardinessRuleRole.POST_FIRST_TARDINESS: settings.POST_FIRST_TARDINESS_RULE_CODE,
        TardinessRuleRole.DIRECT_TARDINESS: settings.DIRECT_TARDINESS_RULE_CODE,
    }[role]


@dataclass
class AccumulationDelta:
    """Signed increments for the four monthly counters"""
    late_arrivals: int = 0
    direct_tardiness: int = 0
    formal_tardies: int = 0
    administrative_acts: int = 0

    def applied_to(self, stats: MonthlyStats) -> MonthlyStats:
        return MonthlyStats(
            late_arrivals_count=stats.late_arrivals_count + self.late_arrivals,
            direct_tardiness_count=stats.direct_tardiness_count + self.direct_tardiness,
            formal_tardies_count=stats.formal_tardies_count + self.formal_tardies,
            administrative_acts=stats.administrative_acts + self.administrative_acts,
        )


# ---------------------------------------------------------------------------
# Lateness calculator
# ---------------------------------------------------------------------------

def parse_schedule_time(value: str) -> time:
    """Parse a 24h "HH:MM" string."""
    try:
        hours_str, minutes_str = value.strip().split(":")
        if not (hours_str.isdigit() and minutes_str.isdigit()) or len(minutes_str) != 2:
            raise ValueError(value)
        return time(int(hours_str), int(minutes_str))
    except (AttributeError, ValueError) as exc:
        raise MalformedScheduleTimeError(
            f"Invalid scheduled start time {value!r}; expected HH:MM"
        ) from exc


def calculate_minutes_late(
    check_in_time: datetime,
    scheduled_start_time: str,
    grace_period_minutes: int = 0
) -> int:
    """
    Whole minutes between (scheduled start + grace) and the check-in.

    The scheduled instant is built on the check-in's local calendar day.
    Partial minutes are truncated, and early or on-time check-ins return 0.

    Raises:
        MalformedScheduleTimeError: scheduled_start_time is not HH:MM
    """
    if grace_period_minutes < 0:
        raise TardinessError("Grace period cannot be negative", status.HTTP_422_UNPROCESSABLE_ENTITY)

    start = parse_schedule_time(scheduled_start_time)
    local_check_in = to_local(check_in_time)
    scheduled = local_check_in.replace(hour=start.hour, minute=start.minute, second=0, microsecond=0)
    scheduled += timedelta(minutes=grace_period_minutes)

    elapsed = ensure_utc(local_check_in) - ensure_utc(scheduled)
    return max(0, elapsed // timedelta(minutes=1))


# ---------------------------------------------------------------------------
# Rule selector
# ---------------------------------------------------------------------------

def select_rule_role(minutes_late: int, formal_tardies_count: int) -> Optional[TardinessRuleRole]:
    """Decision table; None means on time."""
    if minutes_late < 1:
        return None
    if minutes_late <= settings.LATE_ARRIVAL_MAX_MINUTES:
        if formal_tardies_count >= 1:
            return TardinessRuleRole.POST_FIRST_TARDINESS
        return TardinessRuleRole.NORMAL_LATE_ARRIVAL
    return TardinessRuleRole.DIRECT_TARDINESS


def select_rule(
    db: Session,
    minutes_late: int,
    formal_tardies_count: int
) -> Tuple[TardinessRuleRole, TardinessRule]:
    """
    Pick the single tardiness rule for this lateness in the current month context.

    Raises:
        RuleNotFoundError: on-time input, or the configured rule is missing/inactive
    """
    role = select_rule_role(minutes_late, formal_tardies_count)
    if role is None:
        raise RuleNotFoundError(f"No applicable tardiness rule for {minutes_late} minutes late")

    code = rule_code_for_role(role)
    rule = db.query(TardinessRule).filter(
        TardinessRule.code == code,
        TardinessRule.is_active.is_(True)
    ).first()
    if rule is None:
        logger.error("tardiness rule missing: role=%s code=%s", role.value, code)
        raise RuleNotFoundError(f"Tardiness rule '{code}' ({role.value}) is not configured")
    return role, rule


# ---------------------------------------------------------------------------
# Accumulation store
# ---------------------------------------------------------------------------

def find_accumulation(
    db: Session,
    employee_id: int,
    month: int,
    year: int,
    lock: bool = False
) -> Optional[TardinessAccumulation]:
    query = db.query(TardinessAccumulation).filter(
        TardinessAccumulation.employee_id == employee_id,
        TardinessAccumulation.year == year,
        TardinessAccumulation.month == month,
    )
    if lock:
        query = query.with_for_update().populate_existing()
    return query.first()


def _dialect_insert(db: Session):
    """INSERT construct supporting ON CONFLICT for this dialect, if any."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
        return insert
    if dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
        return insert
    return None


def get_or_create_accumulation(
    db: Session,
    employee_id: int,
    month: int,
    year: int
) -> TardinessAccumulation:
    """
    Return the (employee, year, month) accumulation row, inserting a zeroed one if needed.

    The insert never produces a duplicate: ON CONFLICT DO NOTHING where the
    dialect supports it, otherwise a savepoint whose unique-key violation is
    treated as "another writer created it" and retried as a fetch. The row is
    returned locked for update.

    Raises:
        ConcurrentAccumulationConflictError: retries exhausted
    """
    insert = _dialect_insert(db)
    for attempt in range(1, settings.ACCUMULATION_RETRY_ATTEMPTS + 1):
        accumulation = find_accumulation(db, employee_id, month, year, lock=True)
        if accumulation is not None:
            return accumulation

        values = dict(
            employee_id=employee_id,
            month=month,
            year=year,
            late_arrivals_count=0,
            direct_tardiness_count=0,
            formal_tardies_count=0,
            administrative_acts=0,
        )
        if insert is not None:
            stmt = insert(TardinessAccumulation).values(**values).on_conflict_do_nothing(
                index_elements=["employee_id", "year", "month"]
            )
            db.execute(stmt)
            continue

        try:
            with db.begin_nested():
                db.add(TardinessAccumulation(**values))
        except IntegrityError:
            logger.warning(
                "concurrent accumulation insert: employee_id=%s period=%s-%02d attempt=%s",
                employee_id, year, month, attempt,
            )

    accumulation = find_accumulation(db, employee_id, month, year, lock=True)
    if accumulation is not None:
        return accumulation
    raise ConcurrentAccumulationConflictError(
        f"Could not obtain tardiness accumulation for employee {employee_id} ({year}-{month:02d})"
    )


def apply_accumulation_delta(db: Session, accumulation_id: int, delta: AccumulationDelta) -> None:
    """Apply all four counter increments in a single UPDATE statement."""
    updated = db.query(TardinessAccumulation).filter(
        TardinessAccumulation.id == accumulation_id
    ).update(
        {
            TardinessAccumulation.late_arrivals_count: TardinessAccumulation.late_arrivals_count + delta.late_arrivals,
            TardinessAccumulation.direct_tardiness_count: TardinessAccumulation.direct_tardiness_count + delta.direct_tardiness,
            TardinessAccumulation.formal_tardies_count: TardinessAccumulation.formal_tardies_count + delta.formal_tardies,
            TardinessAccumulation.administrative_acts: TardinessAccumulation.administrative_acts + delta.administrative_acts,
            TardinessAccumulation.updated_at: func.current_timestamp(),
        },
        synchronize_session=False,
    )
    if updated != 1:
        raise PersistenceFailureError(f"Tardiness accumulation {accumulation_id} not found")


# ---------------------------------------------------------------------------
# Rule applier
# ---------------------------------------------------------------------------

def compute_rule_delta(
    role: TardinessRuleRole,
    rule: TardinessRule,
    current: MonthlyStats
) -> Tuple[AccumulationDelta, AccumulationType]:
    """Counter delta and classification produced by one late check-in."""
    if role == TardinessRuleRole.POST_FIRST_TARDINESS:
        return AccumulationDelta(formal_tardies=1), "formal_tardy"

    if role == TardinessRuleRole.NORMAL_LATE_ARRIVAL:
        if current.late_arrivals_count + 1 >= rule.accumulation_count:
            # This arrival completes the threshold: reset and convert in one step
            return AccumulationDelta(
                late_arrivals=-current.late_arrivals_count,
                formal_tardies=rule.equivalent_formal_tardies,
            ), "formal_tardy"
        return AccumulationDelta(late_arrivals=1), "late_arrival"

    return AccumulationDelta(
        direct_tardiness=1,
        formal_tardies=rule.equivalent_formal_tardies,
    ), "direct_tardiness"


def apply_tardiness_rule(
    db: Session,
    role: TardinessRuleRole,
    rule: TardinessRule,
    accumulation: TardinessAccumulation
) -> Tuple[AccumulationDelta, AccumulationType, MonthlyStats]:
    """
    Persist the rule's delta against a locked accumulation row.

    Returns the delta, the classification and the post-update counters,
    computed from the locked snapshot rather than re-read.
    """
    snapshot = MonthlyStats.model_validate(accumulation)
    delta, accumulation_type = compute_rule_delta(role, rule, snapshot)
    apply_accumulation_delta(db, accumulation.id, delta)
    db.expire(accumulation)

    updated = delta.applied_to(snapshot)
    logger.info(
        "tardiness rule applied: employee_id=%s rule=%s type=%s formal_added=%s formal_total=%s late_arrivals=%s",
        accumulation.employee_id, rule.code, accumulation_type,
        delta.formal_tardies, updated.formal_tardies_count, updated.late_arrivals_count,
    )
    return delta, accumulation_type, updated


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def _stored_result(db: Session, params: ProcessTardinessParams) -> Optional[TardinessResult]:
    event = db.query(TardinessEvent).filter(TardinessEvent.attendance_id == params.attendance_id).first()
    if event is None:
        return None
    if event.employee_id != params.employee_id:
        raise AttendanceEventConflictError(
            f"Attendance event {params.attendance_id} was already processed for another employee"
        )
    return TardinessResult.model_validate(event.result_json)


def _run_pipeline(db: Session, params: ProcessTardinessParams) -> TardinessResult:
    employee_service.lock_employee(db, params.employee_id)
    month, year = local_month_of(params.check_in_time)

    # Rule selection happens before any write so a missing rule leaves no trace
    existing = find_accumulation(db, params.employee_id, month, year)
    current_formal = existing.formal_tardies_count if existing is not None else 0
    role, rule = select_rule(db, params.minutes_late, current_formal)

    accumulation = get_or_create_accumulation(db, params.employee_id, month, year)
    delta, accumulation_type, stats = apply_tardiness_rule(db, role, rule, accumulation)

    outcome = disciplinary_service.check_disciplinary_triggers(
        db,
        employee_id=params.employee_id,
        formal_tardies_count=stats.formal_tardies_count,
        month=month,
        year=year,
        applied_at=params.check_in_time,
    )
    if outcome.record is not None:
        stats.administrative_acts += 1

    result = TardinessResult(
        rule_applied=rule.code,
        rule_name=rule.name,
        accumulation_type=accumulation_type,
        formal_tardies_added=delta.formal_tardies,
        current_month_stats=stats,
        disciplinary_action_triggered=outcome.record is not None,
        disciplinary_action_id=outcome.record.id if outcome.record is not None else None,
        termination_proposal_id=outcome.termination.id if outcome.termination is not None else None,
    )

    db.add(TardinessEvent(
        attendance_id=params.attendance_id,
        employee_id=params.employee_id,
        accumulation_id=accumulation.id,
        rule_id=rule.id,
        minutes_late=params.minutes_late,
        check_in_time=check_in_to_utc(params.check_in_time),
        accumulation_type=accumulation_type,
        result_json=sanitize_for_json(result),
    ))
    db.flush()
    return result


def process_tardiness(db: Session, params: ProcessTardinessParams) -> TardinessResult:
    """
    Process one late check-in end to end and commit.

    Idempotent per (attendance_id, employee): a repeated call returns the stored result
    without touching any counter or record.

    Raises:
        RuleNotFoundError: no rule for this lateness (nothing persisted)
        PersistenceFailureError: store failure (whole unit rolled back)
        AttendanceEventConflictError: attendance_id already processed for another employee
        HTTPException 404: unknown employee
    """
    stored = _stored_result(db, params)
    if stored is not None:
        logger.info("tardiness already processed: attendance_id=%s", params.attendance_id)
        return stored

    try:
        result = _run_pipeline(db, params)
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except IntegrityError as exc:
        db.rollback()
        # A concurrent run for the same attendance event won the race
        stored = _stored_result(db, params)
        if stored is not None:
            return stored
        logger.error("tardiness processing failed: attendance_id=%s error=%s", params.attendance_id, exc)
        raise PersistenceFailureError("Failed to persist tardiness processing") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("tardiness processing failed: attendance_id=%s error=%s", params.attendance_id, exc)
        raise PersistenceFailureError("Failed to persist tardiness processing") from exc

    return result


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------

def get_monthly_tardiness_stats(db: Session, employee_id: int, month: int, year: int) -> MonthlyStatsOut:
    """Counters for one employee-month; zeros when nothing was recorded."""
    accumulation = find_accumulation(db, employee_id, month, year)
    stats = MonthlyStats.model_validate(accumulation) if accumulation is not None else MonthlyStats()
    return MonthlyStatsOut(employee_id=employee_id, month=month, year=year, **stats.model_dump())


def list_tardiness_rules(db: Session):
    return db.query(TardinessRule).order_by(TardinessRule.start_minutes_late, TardinessRule.id).all()
