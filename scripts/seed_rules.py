"""
Seed the tardiness and disciplinary reference rules.
Existing rules (matched by code) are left unchanged. Run from the project root with .env loaded.

Usage:
  python scripts/seed_rules.py
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.core.logging import setup_logging
from app.db.init_db import seed_reference_data
from app.db.session import SessionLocal


def main():
    setup_logging()
    db = SessionLocal()
    try:
        created = seed_reference_data(db)
        print(f"Tardiness rules created: {created['tardiness_rules']}")
        print(f"Disciplinary rules created: {created['disciplinary_rules']}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
