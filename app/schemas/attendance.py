"""
Attendance schemas
"""
from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from app.models.attendance import AttendanceStatus
from app.schemas.disciplinary import DisciplinaryRecordOut
from app.schemas.tardiness import TardinessResult
from app.utils.datetime_utils import iso_8601_utc


class CheckInRequest(BaseModel):
    """Schema for check-in request"""
    employee_id: int = Field(..., description="Employee ID")
    check_in_time: Optional[datetime] = Field(None, description="Check-in instant; defaults to server time")
    source: str = Field(default="web", description="Source of check-in (e.g., 'mobile', 'web')")


class AbsenceRequest(BaseModel):
    """Schema for recording an unjustified absence"""
    employee_id: int
    absence_date: date


class AttendanceOut(BaseModel):
    """Schema for attendance output. Datetimes in UTC (Z)."""
    id: int
    employee_id: int
    punch_date: date
    in_time: Optional[datetime]
    status: AttendanceStatus
    minutes_late: int
    source: str

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("in_time", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt):
        return iso_8601_utc(dt)


class CheckInResponse(BaseModel):
    attendance: AttendanceOut
    tardiness: Optional[TardinessResult] = None


class AbsenceResponse(BaseModel):
    attendance: AttendanceOut
    absence_count: int
    disciplinary_record: Optional[DisciplinaryRecordOut] = None
