"""
Tardiness models - rules, monthly accumulations and processed check-in events
"""
from sqlalchemy import Column, Integer, DateTime, ForeignKey, String, Text, Boolean, JSON, UniqueConstraint, CheckConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.db.base import Base


class TardinessType(str, enum.Enum):
    LATE_ARRIVAL = "LATE_ARRIVAL"  # 1-15 minutes, accumulates
    DIRECT_TARDINESS = "DIRECT_TARDINESS"  # 16+ minutes, immediately formal


class TardinessRule(Base):
    """Reference data; seeded, read-only for the engine"""
    __tablename__ = "tardiness_rules"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(64), unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    type = Column(SQLEnum(TardinessType), nullable=False)
    start_minutes_late = Column(Integer, nullable=False)
    end_minutes_late = Column(Integer, nullable=True)  # Null = open-ended
    accumulation_count = Column(Integer, default=1, nullable=False)
    equivalent_formal_tardies = Column(Integer, default=1, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)


class TardinessAccumulation(Base):
    """One row per employee x month x year, created lazily on the first late check-in"""
    __tablename__ = "tardiness_accumulations"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    late_arrivals_count = Column(Integer, default=0, nullable=False)
    direct_tardiness_count = Column(Integer, default=0, nullable=False)
    formal_tardies_count = Column(Integer, default=0, nullable=False)
    administrative_acts = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    __table_args__ = (
        UniqueConstraint('employee_id', 'year', 'month', name='uq_tardiness_employee_year_month'),
        CheckConstraint('month >= 1 AND month <= 12', name='ck_tardiness_month_range'),
        CheckConstraint('late_arrivals_count >= 0', name='ck_tardiness_late_arrivals_non_negative'),
        CheckConstraint('direct_tardiness_count >= 0', name='ck_tardiness_direct_non_negative'),
        CheckConstraint('formal_tardies_count >= 0', name='ck_tardiness_formal_non_negative'),
        CheckConstraint('administrative_acts >= 0', name='ck_tardiness_acts_non_negative'),
    )

    # Relationships
    employee = relationship("Employee", backref="tardiness_accumulations")


class TardinessEvent(Base):
    """Processed late check-in; makes processing idempotent per attendance event"""
    __tablename__ = "tardiness_events"

    id = Column(Integer, primary_key=True, index=True)
    attendance_id = Column(String(64), unique=True, nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    accumulation_id = Column(Integer, ForeignKey("tardiness_accumulations.id"), nullable=False)
    rule_id = Column(Integer, ForeignKey("tardiness_rules.id"), nullable=False)
    minutes_late = Column(Integer, nullable=False)
    check_in_time = Column(DateTime(timezone=True), nullable=False)
    accumulation_type = Column(String(32), nullable=False)  # late_arrival | direct_tardiness | formal_tardy
    result_json = Column(JSON, nullable=False)  # TardinessResult as returned to the caller
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)

    # Relationships
    rule = relationship("TardinessRule")
    accumulation = relationship("TardinessAccumulation")
