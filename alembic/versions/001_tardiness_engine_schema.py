"""Tardiness engine schema

Revision ID: 001_tardiness_engine
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_tardiness_engine'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    # Use SQL-standard CURRENT_TIMESTAMP so it works on SQLite and Postgres
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    ]


tardiness_type = sa.Enum('LATE_ARRIVAL', 'DIRECT_TARDINESS', name='tardinesstype')
trigger_type = sa.Enum('FORMAL_TARDIES', 'ADMINISTRATIVE_ACTS', 'UNJUSTIFIED_ABSENCES', name='disciplinarytriggertype')
action_type = sa.Enum(
    'WARNING', 'WRITTEN_WARNING', 'ADMINISTRATIVE_ACT', 'SUSPENSION', 'TERMINATION',
    name='disciplinaryactiontype'
)
sanction_status = sa.Enum('PENDING', 'ACTIVE', 'COMPLETED', 'CANCELLED', name='sanctionstatus')


def upgrade() -> None:
    # Skip if tables already exist (e.g. DB created by app create_all())
    bind = op.get_bind()
    if 'tardiness_accumulations' in sa.inspect(bind).get_table_names():
        return

    op.create_table(
        'employees',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('emp_code', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('scheduled_start_time', sa.String(length=5), nullable=True),
        sa.Column('grace_period_minutes', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_employees_id'), 'employees', ['id'], unique=False)
    op.create_index(op.f('ix_employees_emp_code'), 'employees', ['emp_code'], unique=True)

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('actor_id', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('entity_type', sa.String(), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=True),
        sa.Column('meta_json', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_audit_logs_id'), 'audit_logs', ['id'], unique=False)

    op.create_table(
        'attendance_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('punch_date', sa.Date(), nullable=False),
        sa.Column('in_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='PRESENT'),
        sa.Column('minutes_late', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('source', sa.String(), nullable=False, server_default='web'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('employee_id', 'punch_date', name='uq_employee_punch_date')
    )
    op.create_index(op.f('ix_attendance_logs_id'), 'attendance_logs', ['id'], unique=False)
    op.create_index(op.f('ix_attendance_logs_employee_id'), 'attendance_logs', ['employee_id'], unique=False)
    op.create_index(op.f('ix_attendance_logs_punch_date'), 'attendance_logs', ['punch_date'], unique=False)

    op.create_table(
        'tardiness_rules',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', tardiness_type, nullable=False),
        sa.Column('start_minutes_late', sa.Integer(), nullable=False),
        sa.Column('end_minutes_late', sa.Integer(), nullable=True),
        sa.Column('accumulation_count', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('equivalent_formal_tardies', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_tardiness_rules_id'), 'tardiness_rules', ['id'], unique=False)
    op.create_index(op.f('ix_tardiness_rules_code'), 'tardiness_rules', ['code'], unique=True)

    op.create_table(
        'tardiness_accumulations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('late_arrivals_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('direct_tardiness_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('formal_tardies_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('administrative_acts', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('employee_id', 'year', 'month', name='uq_tardiness_employee_year_month'),
        sa.CheckConstraint('month >= 1 AND month <= 12', name='ck_tardiness_month_range'),
        sa.CheckConstraint('late_arrivals_count >= 0', name='ck_tardiness_late_arrivals_non_negative'),
        sa.CheckConstraint('direct_tardiness_count >= 0', name='ck_tardiness_direct_non_negative'),
        sa.CheckConstraint('formal_tardies_count >= 0', name='ck_tardiness_formal_non_negative'),
        sa.CheckConstraint('administrative_acts >= 0', name='ck_tardiness_acts_non_negative')
    )
    op.create_index(op.f('ix_tardiness_accumulations_id'), 'tardiness_accumulations', ['id'], unique=False)
    op.create_index(op.f('ix_tardiness_accumulations_employee_id'), 'tardiness_accumulations', ['employee_id'], unique=False)

    op.create_table(
        'tardiness_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('attendance_id', sa.String(length=64), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('accumulation_id', sa.Integer(), nullable=False),
        sa.Column('rule_id', sa.Integer(), nullable=False),
        sa.Column('minutes_late', sa.Integer(), nullable=False),
        sa.Column('check_in_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('accumulation_type', sa.String(length=32), nullable=False),
        sa.Column('result_json', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], ),
        sa.ForeignKeyConstraint(['accumulation_id'], ['tardiness_accumulations.id'], ),
        sa.ForeignKeyConstraint(['rule_id'], ['tardiness_rules.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_tardiness_events_id'), 'tardiness_events', ['id'], unique=False)
    op.create_index(op.f('ix_tardiness_events_attendance_id'), 'tardiness_events', ['attendance_id'], unique=True)
    op.create_index(op.f('ix_tardiness_events_employee_id'), 'tardiness_events', ['employee_id'], unique=False)

    op.create_table(
        'disciplinary_action_rules',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('trigger_type', trigger_type, nullable=False),
        sa.Column('trigger_count', sa.Integer(), nullable=False),
        sa.Column('period_days', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('action_type', action_type, nullable=False),
        sa.Column('suspension_days', sa.Integer(), nullable=True),
        sa.Column('affects_salary', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('requires_approval', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_disciplinary_action_rules_id'), 'disciplinary_action_rules', ['id'], unique=False)
    op.create_index(op.f('ix_disciplinary_action_rules_code'), 'disciplinary_action_rules', ['code'], unique=True)
    op.create_index(op.f('ix_disciplinary_action_rules_trigger_type'), 'disciplinary_action_rules', ['trigger_type'], unique=False)

    op.create_table(
        'employee_disciplinary_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('rule_id', sa.Integer(), nullable=True),
        sa.Column('action_type', action_type, nullable=False),
        sa.Column('trigger_type', trigger_type, nullable=False),
        sa.Column('trigger_count', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('applied_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('suspension_days', sa.Integer(), nullable=True),
        sa.Column('status', sanction_status, nullable=False),
        sa.Column('period_key', sa.String(length=7), nullable=True),
        sa.Column('approved_by_id', sa.Integer(), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], ),
        sa.ForeignKeyConstraint(['rule_id'], ['disciplinary_action_rules.id'], ),
        sa.ForeignKeyConstraint(['approved_by_id'], ['employees.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('employee_id', 'rule_id', 'period_key', name='uq_disciplinary_employee_rule_period')
    )
    op.create_index(op.f('ix_employee_disciplinary_records_id'), 'employee_disciplinary_records', ['id'], unique=False)
    op.create_index(op.f('ix_employee_disciplinary_records_employee_id'), 'employee_disciplinary_records', ['employee_id'], unique=False)
    op.create_index(op.f('ix_employee_disciplinary_records_rule_id'), 'employee_disciplinary_records', ['rule_id'], unique=False)
    op.create_index(op.f('ix_employee_disciplinary_records_action_type'), 'employee_disciplinary_records', ['action_type'], unique=False)
    op.create_index(op.f('ix_employee_disciplinary_records_applied_date'), 'employee_disciplinary_records', ['applied_date'], unique=False)
    op.create_index(op.f('ix_employee_disciplinary_records_status'), 'employee_disciplinary_records', ['status'], unique=False)


def downgrade() -> None:
    op.drop_table('employee_disciplinary_records')
    op.drop_table('disciplinary_action_rules')
    op.drop_table('tardiness_events')
    op.drop_table('tardiness_accumulations')
    op.drop_table('tardiness_rules')
    op.drop_table('attendance_logs')
    op.drop_table('audit_logs')
    op.drop_table('employees')

    bind = op.get_bind()
    if bind.dialect.name == 'postgresql':
        for enum_type in (sanction_status, action_type, trigger_type, tardiness_type):
            enum_type.drop(bind, checkfirst=True)
