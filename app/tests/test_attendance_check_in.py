"""
Tests for attendance check-in feeding the tardiness pipeline
"""
from datetime import datetime

import pytest
from fastapi import HTTPException, status

from app import constants
from app.core.errors import MalformedScheduleTimeError
from app.models.attendance import AttendanceLog, AttendanceStatus
from app.models.tardiness import TardinessEvent, TardinessRule
from app.services.attendance_service import record_check_in


def test_late_check_in_runs_pipeline(client, db, rules, employee):
    response = client.post(
        "/api/v1/attendance/check-in",
        json={"employee_id": employee.id, "check_in_time": "2026-03-10T08:31:00"}
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()

    attendance = data["attendance"]
    assert attendance["status"] == "LATE"
    assert attendance["minutes_late"] == 31
    assert attendance["punch_date"] == "2026-03-10"
    # 08:31 in Mexico City is 14:31 UTC
    assert attendance["in_time"] == "2026-03-10T14:31:00Z"

    tardiness = data["tardiness"]
    assert tardiness["rule_applied"] == constants.TARDINESS_RULE_DIRECT_TARDINESS
    assert tardiness["current_month_stats"]["direct_tardiness_count"] == 1
    assert tardiness["current_month_stats"]["formal_tardies_count"] == 1

    event = db.query(TardinessEvent).one()
    assert event.attendance_id == str(attendance["id"])


def test_on_time_check_in_skips_pipeline(client, db, rules, employee):
    response = client.post(
        "/api/v1/attendance/check-in",
        json={"employee_id": employee.id, "check_in_time": "2026-03-10T08:00:00"}
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["attendance"]["status"] == "PRESENT"
    assert data["attendance"]["minutes_late"] == 0
    assert data["tardiness"] is None
    assert db.query(TardinessEvent).count() == 0


def test_duplicate_check_in_same_day_rejected(client, rules, employee):
    payload = {"employee_id": employee.id, "check_in_time": "2026-03-10T08:05:00"}
    assert client.post("/api/v1/attendance/check-in", json=payload).status_code == status.HTTP_201_CREATED

    payload["check_in_time"] = "2026-03-10T13:00:00"
    response = client.post("/api/v1/attendance/check-in", json=payload)
    assert response.status_code == status.HTTP_409_CONFLICT


def test_default_schedule_applies(db, rules, make_employee):
    employee = make_employee()
    attendance, result = record_check_in(db, employee.id, datetime(2026, 3, 10, 8, 40))

    # Default start is 08:30 with no grace
    assert attendance.minutes_late == 10
    assert result.accumulation_type == "late_arrival"
    assert result.current_month_stats.late_arrivals_count == 1


def test_grace_period_applies(db, rules, make_employee):
    employee = make_employee(scheduled_start_time="09:00", grace_period_minutes=10)
    attendance, result = record_check_in(db, employee.id, datetime(2026, 3, 10, 9, 10))

    assert attendance.status == AttendanceStatus.PRESENT.value
    assert result is None


def test_malformed_schedule_blocks_check_in(db, rules, make_employee):
    employee = make_employee(scheduled_start_time="8h30")
    with pytest.raises(MalformedScheduleTimeError):
        record_check_in(db, employee.id, datetime(2026, 3, 10, 9, 0))
    assert db.query(AttendanceLog).count() == 0


def test_inactive_employee_rejected(db, rules, make_employee):
    employee = make_employee(active=False)
    with pytest.raises(HTTPException) as exc_info:
        record_check_in(db, employee.id, datetime(2026, 3, 10, 9, 0))
    assert exc_info.value.status_code == status.HTTP_400_BAD_REQUEST


def test_unknown_employee_rejected(client, rules):
    response = client.post(
        "/api/v1/attendance/check-in",
        json={"employee_id": 9999, "check_in_time": "2026-03-10T09:00:00"}
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_missing_rule_keeps_check_in_for_reprocessing(client, db, rules, employee):
    rule = db.query(TardinessRule).filter(TardinessRule.code == constants.TARDINESS_RULE_DIRECT_TARDINESS).first()
    rule.is_active = False
    db.commit()

    response = client.post(
        "/api/v1/attendance/check-in",
        json={"employee_id": employee.id, "check_in_time": "2026-03-10T08:40:00"}
    )
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["code"] == "RULE_NOT_FOUND"

    attendance = db.query(AttendanceLog).one()
    assert attendance.status == AttendanceStatus.LATE.value
    assert db.query(TardinessEvent).count() == 0

    rule = db.query(TardinessRule).filter(TardinessRule.code == constants.TARDINESS_RULE_DIRECT_TARDINESS).first()
    rule.is_active = True
    db.commit()

    response = client.post(
        "/api/v1/tardiness/process",
        json={
            "employee_id": employee.id,
            "minutes_late": attendance.minutes_late,
            "check_in_time": "2026-03-10T08:40:00",
            "attendance_id": str(attendance.id),
        }
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["current_month_stats"]["direct_tardiness_count"] == 1
