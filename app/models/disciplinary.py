"""
Disciplinary models - action rules and the per-employee record log
"""
from sqlalchemy import Column, Integer, DateTime, ForeignKey, String, Text, Boolean, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.db.base import Base


class DisciplinaryTriggerType(str, enum.Enum):
    FORMAL_TARDIES = "FORMAL_TARDIES"
    ADMINISTRATIVE_ACTS = "ADMINISTRATIVE_ACTS"
    UNJUSTIFIED_ABSENCES = "UNJUSTIFIED_ABSENCES"


class DisciplinaryActionType(str, enum.Enum):
    WARNING = "WARNING"
    WRITTEN_WARNING = "WRITTEN_WARNING"
    ADMINISTRATIVE_ACT = "ADMINISTRATIVE_ACT"
    SUSPENSION = "SUSPENSION"
    TERMINATION = "TERMINATION"


class SanctionStatus(str, enum.Enum):
    PENDING = "PENDING"  # Awaiting approval
    ACTIVE = "ACTIVE"  # Approved or applied directly
    COMPLETED = "COMPLETED"  # Served / expired
    CANCELLED = "CANCELLED"  # Rejected


class DisciplinaryActionRule(Base):
    """Reference data; seeded, read-only for the engine"""
    __tablename__ = "disciplinary_action_rules"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(64), unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    trigger_type = Column(SQLEnum(DisciplinaryTriggerType), nullable=False, index=True)
    trigger_count = Column(Integer, nullable=False)
    period_days = Column(Integer, default=30, nullable=False)
    action_type = Column(SQLEnum(DisciplinaryActionType), nullable=False)
    suspension_days = Column(Integer, nullable=True)
    affects_salary = Column(Boolean, default=False, nullable=False)
    requires_approval = Column(Boolean, default=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)


class EmployeeDisciplinaryRecord(Base):
    """Append-only log of triggered actions; status moves through the approval workflow"""
    __tablename__ = "employee_disciplinary_records"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    rule_id = Column(Integer, ForeignKey("disciplinary_action_rules.id"), nullable=True, index=True)
    action_type = Column(SQLEnum(DisciplinaryActionType), nullable=False, index=True)
    trigger_type = Column(SQLEnum(DisciplinaryTriggerType), nullable=False)
    trigger_count = Column(Integer, nullable=False)
    description = Column(Text, nullable=False)
    applied_date = Column(DateTime(timezone=True), nullable=False, index=True)
    suspension_days = Column(Integer, nullable=True)
    # Served period; set when a record with suspension days becomes ACTIVE
    effective_date = Column(DateTime(timezone=True), nullable=True)
    expiration_date = Column(DateTime(timezone=True), nullable=True, index=True)
    status = Column(SQLEnum(SanctionStatus), default=SanctionStatus.PENDING, nullable=False, index=True)
    # "YYYY-MM" for FORMAL_TARDIES-triggered records; null otherwise
    period_key = Column(String(7), nullable=True)
    approved_by_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    __table_args__ = (
        UniqueConstraint('employee_id', 'rule_id', 'period_key', name='uq_disciplinary_employee_rule_period'),
    )

    # Relationships
    employee = relationship("Employee", foreign_keys=[employee_id], backref="disciplinary_records")
    approved_by = relationship("Employee", foreign_keys=[approved_by_id])
    rule = relationship("DisciplinaryActionRule")
