"""
Tardiness schemas
"""
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

from app.models.tardiness import TardinessType

AccumulationType = Literal["late_arrival", "direct_tardiness", "formal_tardy"]


class ProcessTardinessParams(BaseModel):
    """Input of the tardiness pipeline; one per late check-in"""
    employee_id: int = Field(..., description="Employee ID")
    minutes_late: int = Field(..., ge=0, description="Whole minutes late (after grace)")
    check_in_time: datetime = Field(..., description="Check-in instant; naive values are local time")
    attendance_id: str = Field(..., min_length=1, max_length=64, description="Originating attendance event id")


class MonthlyStats(BaseModel):
    """Counters of one employee's monthly accumulation"""
    late_arrivals_count: int = 0
    direct_tardiness_count: int = 0
    formal_tardies_count: int = 0
    administrative_acts: int = 0

    model_config = ConfigDict(from_attributes=True)


class TardinessResult(BaseModel):
    """Outcome of processing one late check-in"""
    rule_applied: str
    rule_name: str
    accumulation_type: AccumulationType
    formal_tardies_added: int
    current_month_stats: MonthlyStats
    disciplinary_action_triggered: bool = False
    disciplinary_action_id: Optional[int] = None
    termination_proposal_id: Optional[int] = None


class MonthlyStatsOut(MonthlyStats):
    """Monthly stats response"""
    employee_id: int
    month: int
    year: int


class MinutesLateRequest(BaseModel):
    """Schema for a lateness calculation request"""
    check_in_time: datetime
    scheduled_start_time: str = Field(..., description="Scheduled start, HH:MM local time")
    grace_period_minutes: int = Field(0, ge=0, description="Grace period in minutes")


class MinutesLateResponse(BaseModel):
    minutes_late: int


class ReevaluateRequest(BaseModel):
    """Schema for re-running the disciplinary check from stored counters"""
    employee_id: int
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000, le=9999)


class TardinessRuleOut(BaseModel):
    id: int
    code: str
    name: str
    description: Optional[str]
    type: TardinessType
    start_minutes_late: int
    end_minutes_late: Optional[int]
    accumulation_count: int
    equivalent_formal_tardies: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)

