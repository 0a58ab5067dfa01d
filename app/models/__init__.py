"""
Database models
"""
from app.models.employee import Employee
from app.models.audit_log import AuditLog
from app.models.attendance import AttendanceLog, AttendanceStatus
from app.models.tardiness import (
    TardinessRule,
    TardinessAccumulation,
    TardinessEvent,
    TardinessType,
)
from app.models.disciplinary import (
    DisciplinaryActionRule,
    EmployeeDisciplinaryRecord,
    DisciplinaryTriggerType,
    DisciplinaryActionType,
    SanctionStatus,
)

__all__ = [
    "Employee",
    "AuditLog",
    "AttendanceLog",
    "AttendanceStatus",
    "TardinessRule",
    "TardinessAccumulation",
    "TardinessEvent",
    "TardinessType",
    "DisciplinaryActionRule",
    "EmployeeDisciplinaryRecord",
    "DisciplinaryTriggerType",
    "DisciplinaryActionType",
    "SanctionStatus",
]
