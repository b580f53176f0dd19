"""Initial schema with users, tasks and task_events tables.

Revision ID: 001
Revises:
Create Date: 2025-01-11

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('username', sa.String(50), nullable=False, unique=True),
        sa.Column('role', sa.Enum('PM', 'Dev', 'QA', name='userrole'), nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'tasks',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('owner_id', sa.Integer, sa.ForeignKey('users.id'), nullable=False),
        sa.Column(
            'status',
            sa.Enum('created', 'assigned_to_dev', 'assigned_to_qa', 'completed', name='taskstatus'),
            nullable=False,
            server_default='created',
        ),
        sa.Column('due_date', sa.Date),
        sa.Column('notes', sa.Text),
        sa.Column('created_by', sa.Integer, sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
    )

    op.create_index('ix_tasks_owner_id', 'tasks', ['owner_id'])
    op.create_index('ix_tasks_status', 'tasks', ['status'])
    op.create_index('ix_tasks_created_by', 'tasks', ['created_by'])
    op.create_index('ix_tasks_created_at', 'tasks', ['created_at'])

    # Append-only audit log; no cascades since tasks are never deleted
    op.create_table(
        'task_events',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('task_id', sa.Integer, sa.ForeignKey('tasks.id'), nullable=False),
        sa.Column(
            'event_type',
            sa.Enum(
                'created', 'assigned_to_dev', 'assigned_to_qa',
                'status_changed', 'notes_updated', 'due_date_updated',
                name='taskeventtype',
            ),
            nullable=False,
        ),
        sa.Column('old_value', sa.Text),
        sa.Column('new_value', sa.Text),
        sa.Column('changed_by', sa.Integer, sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
    )

    op.create_index('ix_task_events_task_id', 'task_events', ['task_id'])
    op.create_index('ix_task_events_created_at', 'task_events', ['created_at'])


def downgrade() -> None:
    op.drop_table('task_events')
    op.drop_table('tasks')
    op.drop_table('users')

    # Drop enums (PostgreSQL only; other backends inline them)
    if op.get_bind().dialect.name == 'postgresql':
        op.execute('DROP TYPE IF EXISTS taskeventtype')
        op.execute('DROP TYPE IF EXISTS taskstatus')
        op.execute('DROP TYPE IF EXISTS userrole')
