"""
Employee model

Only the identity and the check-in schedule are needed here; everything else
about employees is managed elsewhere.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from app.db.base import Base


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    emp_code = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    scheduled_start_time = Column(String(5), nullable=True)  # "HH:MM" local; falls back to settings
    grace_period_minutes = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)
