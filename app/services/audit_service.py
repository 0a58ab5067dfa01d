"""
Audit logging service
"""
from sqlalchemy.orm import Session
from app.models.audit_log import AuditLog
from app.utils.datetime_utils import now_utc
from app.utils.json_serializer import sanitize_for_json
from typing import Optional, Dict, Any


def log_audit(
    db: Session,
    action: str,
    entity_type: str,
    entity_id: Optional[int] = None,
    actor_id: Optional[int] = None,
    meta: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Add an audit log entry to the caller's unit of work.

    The entry is flushed, not committed: it becomes durable together with the
    change it describes, or not at all.

    Args:
        db: Database session
        action: Action type (e.g., "DISCIPLINARY_RECORD_CREATED")
        entity_type: Type of entity (e.g., "employee_disciplinary_records")
        entity_id: ID of the affected entity (optional)
        actor_id: ID of the acting user; None when the engine acted on its own
        meta: Additional metadata as dictionary (optional)

    Returns:
        Created AuditLog instance
    """
    safe_meta = sanitize_for_json(meta) if meta is not None else None

    # Explicitly set created_at to avoid SQLite issues with server_default
    audit_log = AuditLog(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        meta_json=safe_meta,
        created_at=now_utc()
    )
    db.add(audit_log)
    db.flush()
    return audit_log
