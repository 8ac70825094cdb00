"""create users, tasks and engine_runs tables

Revision ID: c3d4e5f6a7b8
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'c3d4e5f6a7b8'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True),
                  server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )

    op.create_table(
        'tasks',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='inbox'),
        sa.Column('category', sa.String(length=64), nullable=True),
        sa.Column('priority', sa.String(length=16), nullable=False, server_default='normal'),
        sa.Column('client_id', sa.Integer(), nullable=True),
        sa.Column('is_recurring', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('recurrence_rule', sa.String(length=32), nullable=True),
        sa.Column('parent_task_id', sa.Integer(), nullable=True),
        sa.Column('is_paused', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('time_block_start', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('time_block_end', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('calendar_sync_status', sa.String(length=16), nullable=False, server_default='none'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True),
                  server_default=sa.text('now()'), nullable=False),
        sa.Column('completed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_tasks_user_id', 'tasks', ['user_id'])
    op.create_index('ix_tasks_parent_due', 'tasks', ['parent_task_id', 'due_date'])

    op.create_table(
        'engine_runs',
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('last_run_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('user_id'),
    )


def downgrade() -> None:
    op.drop_table('engine_runs')
    op.drop_index('ix_tasks_parent_due', table_name='tasks')
    op.drop_index('ix_tasks_user_id', table_name='tasks')
    op.drop_table('tasks')
    op.drop_table('users')
