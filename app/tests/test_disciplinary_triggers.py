"""
Tests for formal tardies -> disciplinary record escalation
"""
from datetime import datetime

from fastapi import status

from app import constants
from app.models.audit_log import AuditLog
from app.models.disciplinary import (
    DisciplinaryActionRule,
    DisciplinaryActionType,
    DisciplinaryTriggerType,
    EmployeeDisciplinaryRecord,
    SanctionStatus,
)
from app.models.tardiness import TardinessAccumulation
from app.schemas.tardiness import ProcessTardinessParams
from app.services import disciplinary_service
from app.services.tardiness_service import get_or_create_accumulation, process_tardiness


def _direct(db, employee_id, day, attendance_id, month=3):
    return process_tardiness(
        db,
        ProcessTardinessParams(
            employee_id=employee_id,
            minutes_late=20,
            check_in_time=datetime(2026, month, day, 8, 20),
            attendance_id=attendance_id,
        ),
    )


def _records(db, employee_id):
    return db.query(EmployeeDisciplinaryRecord).filter(
        EmployeeDisciplinaryRecord.employee_id == employee_id
    ).all()


def test_one_record_per_month(db, rules, employee):
    for day in range(2, 6):
        result = _direct(db, employee.id, day, f"att-{day}")
        assert result.disciplinary_action_triggered is False

    result = _direct(db, employee.id, 6, "att-6")
    assert result.current_month_stats.formal_tardies_count == 5
    assert result.disciplinary_action_triggered is True
    assert result.disciplinary_action_id is not None
    assert result.current_month_stats.administrative_acts == 1

    record = db.get(EmployeeDisciplinaryRecord, result.disciplinary_action_id)
    assert record.rule_id == rules["disciplinary"][constants.DISCIPLINARY_RULE_FIVE_TARDIES].id
    assert record.action_type == DisciplinaryActionType.ADMINISTRATIVE_ACT
    assert record.trigger_type == DisciplinaryTriggerType.FORMAL_TARDIES
    assert record.trigger_count == 5
    assert record.status == SanctionStatus.PENDING
    assert record.suspension_days == 1
    assert record.period_key == "2026-03"
    assert "5 formal tardies" in record.description
    assert "03/2026" in record.description

    result = _direct(db, employee.id, 9, "att-9")
    assert result.current_month_stats.formal_tardies_count == 6
    assert result.disciplinary_action_triggered is False
    assert result.disciplinary_action_id is None
    assert result.current_month_stats.administrative_acts == 1

    assert len(_records(db, employee.id)) == 1


def test_new_month_can_trigger_again(db, rules, employee):
    for day in range(2, 7):
        _direct(db, employee.id, day, f"mar-{day}")
    for day in range(1, 6):
        result = _direct(db, employee.id, day, f"apr-{day}", month=4)

    assert result.disciplinary_action_triggered is True
    keys = sorted(r.period_key for r in _records(db, employee.id))
    assert keys == ["2026-03", "2026-04"]


def test_repeated_trigger_checks_create_one_record(db, rules, employee):
    get_or_create_accumulation(db, employee.id, 3, 2026)
    for _ in range(3):
        disciplinary_service.check_disciplinary_triggers(
            db,
            employee_id=employee.id,
            formal_tardies_count=7,
            month=3,
            year=2026,
            applied_at=datetime(2026, 3, 20, 9, 0),
        )
    db.commit()

    assert len(_records(db, employee.id)) == 1
    accumulation = db.query(TardinessAccumulation).filter(TardinessAccumulation.employee_id == employee.id).first()
    assert accumulation.administrative_acts == 1


def test_below_threshold_creates_nothing(db, rules, employee):
    outcome = disciplinary_service.check_disciplinary_triggers(
        db, employee_id=employee.id, formal_tardies_count=4, month=3, year=2026
    )
    assert outcome.record is None
    assert outcome.termination is None
    assert _records(db, employee.id) == []


def test_highest_applicable_rule_wins(db, rules, employee):
    db.add(DisciplinaryActionRule(
        code="dar_formal_tardies_8",
        name="Suspension for 8 Formal Tardies",
        trigger_type=DisciplinaryTriggerType.FORMAL_TARDIES,
        trigger_count=8,
        period_days=30,
        action_type=DisciplinaryActionType.SUSPENSION,
        suspension_days=3,
        requires_approval=False,
    ))
    db.commit()

    for day in range(2, 7):
        _direct(db, employee.id, day, f"att-{day}")
    for day in range(9, 12):
        result = _direct(db, employee.id, day, f"att-{day}")

    assert result.current_month_stats.formal_tardies_count == 8
    assert result.disciplinary_action_triggered is True
    records = sorted(_records(db, employee.id), key=lambda r: r.trigger_count)
    assert [r.trigger_count for r in records] == [5, 8]
    assert records[1].action_type == DisciplinaryActionType.SUSPENSION
    # No approval required -> applied directly
    assert records[1].status == SanctionStatus.ACTIVE
    assert records[1].suspension_days == 3


def test_record_creation_is_audited(db, rules, employee):
    for day in range(2, 7):
        _direct(db, employee.id, day, f"att-{day}")

    audit = db.query(AuditLog).filter(AuditLog.action == "DISCIPLINARY_RECORD_CREATED").all()
    assert len(audit) == 1
    assert audit[0].entity_type == "employee_disciplinary_records"
    assert audit[0].meta_json["trigger_count"] == 5
    assert audit[0].meta_json["status"] == "PENDING"


def test_reevaluate_recovers_missing_record(db, rules, employee):
    accumulation = get_or_create_accumulation(db, employee.id, 3, 2026)
    accumulation.formal_tardies_count = 5
    db.commit()

    outcome = disciplinary_service.reevaluate_disciplinary_triggers(db, employee.id, 3, 2026)
    assert outcome.record is not None
    assert outcome.record.period_key == "2026-03"

    outcome = disciplinary_service.reevaluate_disciplinary_triggers(db, employee.id, 3, 2026)
    assert outcome.record is None
    assert len(_records(db, employee.id)) == 1


def test_reevaluate_endpoint(client, db, rules, employee):
    accumulation = get_or_create_accumulation(db, employee.id, 3, 2026)
    accumulation.formal_tardies_count = 6
    db.commit()

    response = client.post(
        "/api/v1/tardiness/reevaluate",
        json={"employee_id": employee.id, "month": 3, "year": 2026}
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["trigger_count"] == 6
    assert data["status"] == "PENDING"

    response = client.post(
        "/api/v1/tardiness/reevaluate",
        json={"employee_id": employee.id, "month": 3, "year": 2026}
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json() is None
