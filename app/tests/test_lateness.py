"""
Tests for the lateness calculator
"""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import status

from app.core.errors import MalformedScheduleTimeError, TardinessError
from app.services.tardiness_service import calculate_minutes_late, parse_schedule_time


def test_thirty_one_minutes_late():
    """08:31 against an 08:00 start with no grace is 31 minutes late"""
    assert calculate_minutes_late(datetime(2026, 3, 10, 8, 31), "08:00", 0) == 31


def test_check_in_exactly_at_start_plus_grace_is_zero():
    assert calculate_minutes_late(datetime(2026, 3, 10, 8, 40), "08:30", 10) == 0


def test_early_check_in_is_never_negative():
    assert calculate_minutes_late(datetime(2026, 3, 10, 7, 2), "08:30", 0) == 0
    assert calculate_minutes_late(datetime(2026, 3, 10, 0, 0), "23:59", 0) == 0


def test_partial_minutes_are_truncated():
    assert calculate_minutes_late(datetime(2026, 3, 10, 8, 30, 59), "08:30", 0) == 0
    assert calculate_minutes_late(datetime(2026, 3, 10, 8, 31, 59), "08:30", 0) == 1


def test_grace_period_shifts_the_start():
    assert calculate_minutes_late(datetime(2026, 3, 10, 8, 45), "08:30", 10) == 5


def test_aware_check_in_is_compared_in_schedule_timezone():
    """14:45 UTC is 08:45 in Mexico City (UTC-6)"""
    check_in = datetime(2026, 3, 10, 14, 45, tzinfo=timezone.utc)
    assert calculate_minutes_late(check_in, "08:30", 0) == 15


def test_aware_check_in_in_other_offset():
    check_in = datetime(2026, 3, 10, 9, 50, tzinfo=timezone(timedelta(hours=-5)))
    # 09:50 at UTC-5 is 08:50 at UTC-6
    assert calculate_minutes_late(check_in, "08:00", 0) == 50


@pytest.mark.parametrize("value", ["8:3", "25:00", "08:60", "ab:cd", "08:30:00", "", "0830", "-1:30"])
def test_malformed_schedule_time_rejected(value):
    with pytest.raises(MalformedScheduleTimeError) as exc_info:
        calculate_minutes_late(datetime(2026, 3, 10, 9, 0), value, 0)
    assert exc_info.value.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert exc_info.value.code == "MALFORMED_SCHEDULE_TIME"


def test_parse_schedule_time_accepts_single_digit_hour():
    parsed = parse_schedule_time("8:05")
    assert (parsed.hour, parsed.minute) == (8, 5)


def test_negative_grace_rejected():
    with pytest.raises(TardinessError):
        calculate_minutes_late(datetime(2026, 3, 10, 9, 0), "08:00", -5)


def test_minutes_late_endpoint(client):
    response = client.post(
        "/api/v1/tardiness/minutes-late",
        json={
            "check_in_time": "2026-03-10T08:31:00",
            "scheduled_start_time": "08:00",
            "grace_period_minutes": 0
        }
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"minutes_late": 31}


def test_minutes_late_endpoint_malformed_schedule(client):
    response = client.post(
        "/api/v1/tardiness/minutes-late",
        json={"check_in_time": "2026-03-10T08:31:00", "scheduled_start_time": "8h00"}
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    data = response.json()
    assert data["error"] is True
    assert data["code"] == "MALFORMED_SCHEDULE_TIME"
