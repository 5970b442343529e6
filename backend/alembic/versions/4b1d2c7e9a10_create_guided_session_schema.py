"""create users, sessions, session exercises and sets

Revision ID: 4b1d2c7e9a10
Revises:
Create Date: 2026-10-18 10:12:31.402117

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# define the enum types once so create/drop stay symmetric
user_role = sa.Enum('user', 'coach', 'admin', name='user_role')
exercise_status = sa.Enum('pending', 'in_progress', 'completed', name='exercise_status')


# revision identifiers, used by Alembic.
revision: str = '4b1d2c7e9a10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # 1) users
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('role', user_role, nullable=False, server_default='user'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # 2) sessions
    op.create_table(
        'sessions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('routine_id', sa.Integer(), nullable=True),
        sa.Column('routine_name', sa.String(length=120), nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('ended_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
    )

    # 3) session_exercises: routine prescription snapshot + progress
    op.create_table(
        'session_exercises',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('session_id', sa.Integer(), sa.ForeignKey('sessions.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('exercise_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('equipment', sa.String(length=60), nullable=True),
        sa.Column('target_sets', sa.Integer(), nullable=True),
        sa.Column('target_reps', sa.Integer(), nullable=True),
        sa.Column('target_reps_range', sa.String(length=20), nullable=True),
        sa.Column('target_rest_seconds', sa.Integer(), nullable=True),
        sa.Column('target_weight', sa.Numeric(10, 2), nullable=True),
        sa.Column('target_band_label', sa.String(length=40), nullable=True),
        sa.Column('superset_group', sa.String(length=40), nullable=True),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', exercise_status, nullable=False, server_default='pending'),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('session_id', 'exercise_id', name='uq_session_exercise'),
    )

    # 4) session_sets
    op.create_table(
        'session_sets',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('session_exercise_id', sa.Integer(), sa.ForeignKey('session_exercises.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('set_index', sa.Integer(), nullable=False),
        sa.Column('reps', sa.Integer(), nullable=False),
        sa.Column('weight', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('band_label', sa.String(length=40), nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.UniqueConstraint('session_exercise_id', 'set_index', name='uq_session_set_index'),
    )


def downgrade() -> None:
    # drop child tables in reverse order
    op.drop_table('session_sets')
    op.drop_table('session_exercises')
    op.drop_table('sessions')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_id', table_name='users')
    op.drop_table('users')

    # finally drop enum types
    exercise_status.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
