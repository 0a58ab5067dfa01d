"""
Complete ACTIVE disciplinary records whose suspension period has ended.
Meant to run daily (cron); safe to run repeatedly.

Usage:
  python scripts/complete_expired_records.py
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy.orm import Session
from app.core.logging import setup_logging
from app.db import session as db_session
from app.services import disciplinary_service


def main():
    setup_logging()
    db: Session = db_session.SessionLocal()
    try:
        completed = disciplinary_service.complete_expired_records(db)
        for record in completed:
            print(f"  record {record.id} (employee {record.employee_id}): {record.action_type.value} completed")
        print(f"Done. Records completed: {len(completed)}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
