"""initial planner schema: catalog, schedule, execution logs

Revision ID: 4b1d7e93a2c0
Revises:
Create Date: 2026-10-19 09:12:40.118204

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4b1d7e93a2c0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

training_type = sa.Enum('hang', 'weight_training', 'climbing', 'others', name='training_type')
difficulty = sa.Enum('beginner', 'intermediate', 'advanced', name='difficulty')
item_status = sa.Enum('draft', 'published', name='item_status')
frequency = sa.Enum('daily', 'weekly', 'monthly', name='frequency')
log_status = sa.Enum('active', 'completed', 'stopped_early', name='log_status')
step_kind = sa.Enum('rep', 'rest', 'set_skipped', name='step_kind')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    ]


def upgrade() -> None:
    # 1) users
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # 2) catalog
    op.create_table(
        'training_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('owner_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('title', sa.String(length=160), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('categories', sa.JSON(), nullable=False),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('training_type', training_type, nullable=True),
        sa.Column('difficulty', difficulty, nullable=False),
        sa.Column('equipment', sa.JSON(), nullable=False),
        sa.Column('variables', sa.JSON(), nullable=False),
        sa.Column('status', item_status, nullable=False),
        *_timestamps(),
    )
    op.create_table(
        'saved_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('item_id', sa.Integer(), sa.ForeignKey('training_items.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.UniqueConstraint('user_id', 'item_id', name='uq_saved_items_user_item'),
    )

    # 3) schedule
    op.create_table(
        'recurrence_rules',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('owner_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('item_id', sa.Integer(), sa.ForeignKey('training_items.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('frequency', frequency, nullable=False),
        sa.Column('interval', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('by_weekdays', sa.JSON(), nullable=True),
        sa.Column('until', sa.Date(), nullable=True),
        sa.Column('snapshot', sa.JSON(), nullable=False),
        sa.Column('default_overrides', sa.JSON(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_recurrence_rules_owner_active_start', 'recurrence_rules', ['owner_id', 'active', 'start_date'])

    op.create_table(
        'scheduled_sessions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('owner_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('item_id', sa.Integer(), sa.ForeignKey('training_items.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('is_impromptu', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('recurrence_rule_id', sa.Integer(), sa.ForeignKey('recurrence_rules.id', ondelete='CASCADE'), nullable=True, index=True),
        sa.Column('scheduled_for', sa.Date(), nullable=False),
        sa.Column('snapshot', sa.JSON(), nullable=False),
        sa.Column('overrides', sa.JSON(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('canceled_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('recurrence_rule_id', 'scheduled_for', name='uq_scheduled_sessions_rule_date'),
    )
    op.create_index('ix_scheduled_sessions_owner_date', 'scheduled_sessions', ['owner_id', 'scheduled_for'])

    # 4) execution logs + append-only steps
    op.create_table(
        'execution_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('owner_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('session_id', sa.Integer(), sa.ForeignKey('scheduled_sessions.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('item_id', sa.Integer(), sa.ForeignKey('training_items.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', log_status, nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('ended_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('planned', sa.JSON(), nullable=False),
        sa.Column('completed_sets', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('completed_reps', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('skipped_sets', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_rep_duration_ms', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_rest_duration_ms', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        'execution_steps',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('log_id', sa.Integer(), sa.ForeignKey('execution_logs.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('kind', step_kind, nullable=False),
        sa.Column('set_number', sa.Integer(), nullable=False),
        sa.Column('rep_number', sa.Integer(), nullable=True),
        sa.Column('completed_reps', sa.Integer(), nullable=True),
        sa.Column('planned_duration_seconds', sa.Integer(), nullable=True),
        sa.Column('actual_duration_ms', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('note', sa.String(length=200), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.UniqueConstraint('log_id', 'position', name='uq_execution_steps_log_position'),
    )


def downgrade() -> None:
    op.drop_table('execution_steps')
    op.drop_table('execution_logs')
    op.drop_index('ix_scheduled_sessions_owner_date', table_name='scheduled_sessions')
    op.drop_table('scheduled_sessions')
    op.drop_index('ix_recurrence_rules_owner_active_start', table_name='recurrence_rules')
    op.drop_table('recurrence_rules')
    op.drop_table('saved_items')
    op.drop_table('training_items')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_id', table_name='users')
    op.drop_table('users')

    bind = op.get_bind()
    for enum in (step_kind, log_status, frequency, item_status, difficulty, training_type):
        enum.drop(bind, checkfirst=True)
