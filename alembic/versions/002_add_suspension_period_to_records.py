"""Add effective_date and expiration_date to employee_disciplinary_records.

Revision ID: 002_suspension_period
Revises: 001_tardiness_engine
Create Date: 2026-10-19

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "002_suspension_period"
down_revision: Union[str, None] = "001_tardiness_engine"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Columns already exist when the table came from create_all()
    bind = op.get_bind()
    columns = {c["name"] for c in sa.inspect(bind).get_columns("employee_disciplinary_records")}
    if "expiration_date" in columns:
        return

    with op.batch_alter_table("employee_disciplinary_records") as batch_op:
        batch_op.add_column(sa.Column("effective_date", sa.DateTime(timezone=True), nullable=True))
        batch_op.add_column(sa.Column("expiration_date", sa.DateTime(timezone=True), nullable=True))
    op.create_index(
        op.f("ix_employee_disciplinary_records_expiration_date"),
        "employee_disciplinary_records",
        ["expiration_date"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_employee_disciplinary_records_expiration_date"), table_name="employee_disciplinary_records")
    with op.batch_alter_table("employee_disciplinary_records") as batch_op:
        batch_op.drop_column("expiration_date")
        batch_op.drop_column("effective_date")
