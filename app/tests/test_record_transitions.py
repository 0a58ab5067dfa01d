"""
Tests for the disciplinary record approval workflow and history
"""
import pytest
from fastapi import status

from app import constants
from app.core.errors import InvalidRecordTransitionError
from app.models.audit_log import AuditLog
from app.models.disciplinary import (
    DisciplinaryActionType,
    EmployeeDisciplinaryRecord,
    SanctionStatus,
)
from app.services import disciplinary_service
from app.services.disciplinary_service import RecordStateMachine


@pytest.mark.parametrize(
    "from_status,to_status,allowed",
    [
        (SanctionStatus.PENDING, SanctionStatus.ACTIVE, True),
        (SanctionStatus.PENDING, SanctionStatus.CANCELLED, True),
        (SanctionStatus.ACTIVE, SanctionStatus.COMPLETED, True),
        (SanctionStatus.PENDING, SanctionStatus.COMPLETED, False),
        (SanctionStatus.ACTIVE, SanctionStatus.CANCELLED, False),
        (SanctionStatus.COMPLETED, SanctionStatus.ACTIVE, False),
        (SanctionStatus.CANCELLED, SanctionStatus.ACTIVE, False),
    ],
)
def test_state_machine(from_status, to_status, allowed):
    assert RecordStateMachine.can_transition(from_status, to_status) is allowed


def test_approve_sets_approver(db, employee, make_employee, add_record):
    approver = make_employee()
    record = add_record(employee)

    approved = disciplinary_service.approve_record(db, record.id, approver.id, "Reviewed")
    assert approved.status == SanctionStatus.ACTIVE
    assert approved.approved_by_id == approver.id
    assert approved.approved_at is not None
    assert approved.notes == "Reviewed"

    audit = db.query(AuditLog).filter(AuditLog.action == "DISCIPLINARY_RECORD_APPROVED").one()
    assert audit.meta_json["before"] == "PENDING"
    assert audit.meta_json["after"] == "ACTIVE"


def test_reject_then_approve_is_invalid(db, employee, add_record):
    record = add_record(employee)
    rejected = disciplinary_service.reject_record(db, record.id, notes="Justified")
    assert rejected.status == SanctionStatus.CANCELLED

    with pytest.raises(InvalidRecordTransitionError) as exc_info:
        disciplinary_service.approve_record(db, record.id)
    assert exc_info.value.status_code == status.HTTP_409_CONFLICT


def test_complete_requires_active(db, employee, add_record):
    record = add_record(employee)
    with pytest.raises(InvalidRecordTransitionError):
        disciplinary_service.complete_record(db, record.id)

    disciplinary_service.approve_record(db, record.id)
    completed = disciplinary_service.complete_record(db, record.id)
    assert completed.status == SanctionStatus.COMPLETED


def test_approving_third_act_proposes_termination(db, employee, add_record):
    add_record(employee, status=SanctionStatus.ACTIVE, days_ago=40)
    add_record(employee, status=SanctionStatus.ACTIVE, days_ago=20)
    pending = add_record(employee, days_ago=2)

    # Pending acts do not count yet
    assert disciplinary_service.check_administrative_acts_threshold(db, employee.id) is None

    disciplinary_service.approve_record(db, pending.id)

    terminations = db.query(EmployeeDisciplinaryRecord).filter(
        EmployeeDisciplinaryRecord.employee_id == employee.id,
        EmployeeDisciplinaryRecord.action_type == DisciplinaryActionType.TERMINATION,
    ).all()
    assert len(terminations) == 1
    assert terminations[0].status == SanctionStatus.PENDING


def test_history_newest_first_with_limit(db, employee, add_record):
    for days_ago in (30, 10, 20, 1):
        add_record(employee, days_ago=days_ago)

    history = disciplinary_service.get_disciplinary_history(db, employee.id, limit=3)
    assert len(history) == 3
    dates = [r.applied_date for r in history]
    assert dates == sorted(dates, reverse=True)
    assert history[0].rule.code == constants.DISCIPLINARY_RULE_FIVE_TARDIES


def test_history_default_limit(db, employee, add_record):
    for days_ago in range(1, 13):
        add_record(employee, days_ago=days_ago)

    assert len(disciplinary_service.get_disciplinary_history(db, employee.id)) == 10


def test_history_endpoint(client, employee, add_record):
    add_record(employee, days_ago=5)
    add_record(employee, days_ago=1)

    response = client.get(f"/api/v1/disciplinary/history/{employee.id}")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["total"] == 2
    assert data["items"][0]["applied_date"].endswith("Z")
    assert data["items"][0]["rule"]["code"] == constants.DISCIPLINARY_RULE_FIVE_TARDIES
    assert data["items"][0]["applied_date"] > data["items"][1]["applied_date"]


def test_history_endpoint_unknown_employee(client):
    response = client.get("/api/v1/disciplinary/history/9999")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"] is True


def test_decision_endpoints(client, employee, add_record):
    record = add_record(employee)

    response = client.post(f"/api/v1/disciplinary/records/{record.id}/approve", json={"notes": "ok"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "ACTIVE"

    response = client.post(f"/api/v1/disciplinary/records/{record.id}/reject", json={})
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["code"] == "INVALID_RECORD_TRANSITION"

    response = client.post(f"/api/v1/disciplinary/records/{record.id}/complete", json={})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "COMPLETED"

    response = client.post("/api/v1/disciplinary/records/9999/approve", json={})
    assert response.status_code == status.HTTP_404_NOT_FOUND
