"""
Disciplinary schemas
"""
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from app.models.disciplinary import (
    DisciplinaryActionType,
    DisciplinaryTriggerType,
    SanctionStatus,
)
from app.utils.datetime_utils import iso_8601_utc


class DisciplinaryRuleOut(BaseModel):
    id: int
    code: str
    name: str
    description: Optional[str]
    trigger_type: DisciplinaryTriggerType
    trigger_count: int
    period_days: int
    action_type: DisciplinaryActionType
    suspension_days: Optional[int]
    requires_approval: bool
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class DisciplinaryRecordOut(BaseModel):
    """Schema for disciplinary record output. Datetimes in UTC (Z)."""
    id: int
    employee_id: int
    rule_id: Optional[int]
    action_type: DisciplinaryActionType
    trigger_type: DisciplinaryTriggerType
    trigger_count: int
    description: str
    applied_date: datetime
    suspension_days: Optional[int]
    effective_date: Optional[datetime] = None
    expiration_date: Optional[datetime] = None
    status: SanctionStatus
    approved_by_id: Optional[int]
    approved_at: Optional[datetime]
    notes: Optional[str]
    rule: Optional[DisciplinaryRuleOut] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("applied_date", "effective_date", "expiration_date", "approved_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt):
        return iso_8601_utc(dt)


class DisciplinaryRecordListResponse(BaseModel):
    items: list[DisciplinaryRecordOut]
    total: int


class RecordDecisionRequest(BaseModel):
    """Schema for approving, rejecting or completing a disciplinary record"""
    approved_by_id: Optional[int] = Field(None, description="Employee ID of the approver")
    notes: Optional[str] = Field(None, description="Optional notes")


class EmployeeAtRiskOut(BaseModel):
    employee_id: int
    emp_code: str
    name: str
    acts_count: int
    remaining_acts: int
    risk_level: Literal["HIGH", "MEDIUM"]


class EmployeeDisciplinaryStatsOut(BaseModel):
    employee_id: int
    total_records: int
    active_records: int
    pending_records: int
    last_30_days: int
    last_90_days: int
    administrative_acts: int
    suspensions: int
    recent_acts: int = Field(..., description="Served administrative acts inside the termination window")
    at_risk_of_termination: bool


class CompleteExpiredResponse(BaseModel):
    completed: int
    record_ids: list[int]
