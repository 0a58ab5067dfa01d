"""
Re-run the formal tardies disciplinary check for every accumulation of a month.
Recovers evaluations lost after counters were updated; safe to run repeatedly.

Usage:
  python scripts/reevaluate_month.py --year 2026 --month 10
  python scripts/reevaluate_month.py --year 2026 --month 10 --employee-id 42
"""
import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy.orm import Session
from app.core.logging import setup_logging
from app.db import session as db_session
from app.models.tardiness import TardinessAccumulation
from app.services import disciplinary_service


def main():
    parser = argparse.ArgumentParser(description="Re-evaluate disciplinary triggers for a month")
    parser.add_argument("--year", type=int, required=True, help="Calendar year (e.g. 2026)")
    parser.add_argument("--month", type=int, required=True, choices=range(1, 13), help="Month (1-12)")
    parser.add_argument("--employee-id", type=int, help="Limit to one employee")
    args = parser.parse_args()

    setup_logging()
    db: Session = db_session.SessionLocal()
    try:
        query = db.query(TardinessAccumulation.employee_id).filter(
            TardinessAccumulation.year == args.year,
            TardinessAccumulation.month == args.month,
        )
        if args.employee_id is not None:
            query = query.filter(TardinessAccumulation.employee_id == args.employee_id)
        employee_ids = [employee_id for (employee_id,) in query.all()]
        print(f"{args.year}-{args.month:02d}: re-evaluating {len(employee_ids)} employees...")

        created = 0
        for employee_id in employee_ids:
            outcome = disciplinary_service.reevaluate_disciplinary_triggers(
                db, employee_id, args.month, args.year
            )
            if outcome.record is not None:
                created += 1
                print(f"  employee {employee_id}: record {outcome.record.id} created")
        print(f"Done. Records created: {created}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
