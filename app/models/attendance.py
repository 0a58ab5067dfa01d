"""
Attendance log model
"""
from sqlalchemy import Column, Integer, Date, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.db.base import Base


class AttendanceStatus(str, enum.Enum):
    PRESENT = "PRESENT"
    LATE = "LATE"
    ABSENT = "ABSENT"  # Unjustified absence


class AttendanceLog(Base):
    __tablename__ = "attendance_logs"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    punch_date = Column(Date, nullable=False, index=True)  # Local calendar date of the check-in
    in_time = Column(DateTime(timezone=True), nullable=True)  # Null for absences
    status = Column(String, default=AttendanceStatus.PRESENT.value, nullable=False)
    minutes_late = Column(Integer, default=0, nullable=False)
    source = Column(String, default="web", nullable=False)  # e.g., "mobile", "web"
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    __table_args__ = (
        UniqueConstraint('employee_id', 'punch_date', name='uq_employee_punch_date'),
    )

    # Relationships
    employee = relationship("Employee", backref="attendance_logs")
