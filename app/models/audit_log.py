"""
Audit log model
"""
from sqlalchemy import Column, Integer, String, DateTime, JSON
from app.db.base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    actor_id = Column(Integer, nullable=True)  # Null when the engine itself acted
    action = Column(String, nullable=False)  # e.g., "DISCIPLINARY_RECORD_CREATED", "DISCIPLINARY_RECORD_APPROVED"
    entity_type = Column(String, nullable=False)  # e.g., "employee_disciplinary_records"
    entity_id = Column(Integer, nullable=True)
    meta_json = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
