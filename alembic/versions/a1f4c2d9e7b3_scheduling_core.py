"""scheduling core: availability, subscriptions and sessions

Revision ID: a1f4c2d9e7b3
Revises:
Create Date: 2026-10-12 10:14:33.401922

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'a1f4c2d9e7b3'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    is_postgres = op.get_bind().dialect.name == "postgresql"

    # 1. Weekly availability rules
    op.create_table(
        'availability_rules',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('teacher_id', sa.Uuid(), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('day_of_week BETWEEN 0 AND 6', name='ck_availability_rules_day_of_week'),
        sa.CheckConstraint('start_time < end_time', name='ck_availability_rules_time_range'),
    )
    op.create_index('idx_availability_rules_teacher_day', 'availability_rules', ['teacher_id', 'day_of_week'])

    # 2. Teacher timezone
    op.create_table(
        'teacher_schedule_settings',
        sa.Column('teacher_id', sa.Uuid(), primary_key=True),
        sa.Column('timezone', sa.String(64), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # 3. Subscriptions (written by the billing side of the portal)
    op.create_table(
        'subscriptions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('student_id', sa.Uuid(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('sessions_total', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('sessions_used', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('ends_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('idx_subscriptions_student_status', 'subscriptions', ['student_id', 'status'])

    # 4. Sessions
    op.create_table(
        'sessions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('teacher_id', sa.Uuid(), nullable=False),
        sa.Column('student_id', sa.Uuid(), nullable=False),
        sa.Column('subscription_id', sa.Uuid(), sa.ForeignKey('subscriptions.id'), nullable=True),
        sa.Column('scheduled_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('ends_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='scheduled'),
        sa.Column('meet_link', sa.String(), nullable=True),
        sa.Column('document_url', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        sa.Column('cancelled_by', sa.Uuid(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reminder_sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('duration_minutes > 0', name='ck_sessions_duration_positive'),
        sa.CheckConstraint('ends_at > scheduled_at', name='ck_sessions_interval'),
    )
    op.create_index('idx_sessions_teacher_window', 'sessions', ['teacher_id', 'scheduled_at', 'ends_at'])
    op.create_index('idx_sessions_student_scheduled', 'sessions', ['student_id', 'scheduled_at'])
    op.create_index('idx_sessions_status_scheduled', 'sessions', ['status', 'scheduled_at'])

    # A teacher never has two scheduled sessions whose [start, end) ranges intersect
    if is_postgres:
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            """
            ALTER TABLE sessions
              ADD CONSTRAINT sessions_no_overlap_per_teacher
              EXCLUDE USING gist (
                teacher_id WITH =,
                tstzrange(scheduled_at, ends_at, '[)') WITH &&
              )
              WHERE (status = 'scheduled')
            """
        )


def downgrade() -> None:
    """Downgrade schema."""
    if op.get_bind().dialect.name == "postgresql":
        op.execute("ALTER TABLE sessions DROP CONSTRAINT IF EXISTS sessions_no_overlap_per_teacher")

    op.drop_index('idx_sessions_status_scheduled', table_name='sessions')
    op.drop_index('idx_sessions_student_scheduled', table_name='sessions')
    op.drop_index('idx_sessions_teacher_window', table_name='sessions')
    op.drop_table('sessions')

    op.drop_index('idx_subscriptions_student_status', table_name='subscriptions')
    op.drop_table('subscriptions')

    op.drop_table('teacher_schedule_settings')

    op.drop_index('idx_availability_rules_teacher_day', table_name='availability_rules')
    op.drop_table('availability_rules')
