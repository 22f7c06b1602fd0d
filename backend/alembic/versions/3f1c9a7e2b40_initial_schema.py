"""Initial schema: projects, labels, cycles, issues, comments, AI logs

Revision ID: 3f1c9a7e2b40
Revises:
Create Date: 2026-10-12 09:30:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
import sqlmodel
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '3f1c9a7e2b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all eight tables and their indexes."""
    op.create_table(
        'project',
        sa.Column('id', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('name', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('description', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('icon', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('color', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'issue_label',
        sa.Column('id', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('name', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('color', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('icon', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('project_id', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.ForeignKeyConstraint(['project_id'], ['project.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_issue_label_project_id'), 'issue_label', ['project_id'], unique=False)

    op.create_table(
        'cycle',
        sa.Column('id', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('name', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('description', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('start_date', sa.DateTime(), nullable=False),
        sa.Column('end_date', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('is_archived', sa.Boolean(), nullable=False),
        sa.Column('total_capacity', sa.Float(), nullable=False),
        sa.Column('planned_points', sa.Float(), nullable=False),
        sa.Column('project_id', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.ForeignKeyConstraint(['project_id'], ['project.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_cycle_is_archived'), 'cycle', ['is_archived'], unique=False)
    op.create_index(op.f('ix_cycle_project_id'), 'cycle', ['project_id'], unique=False)

    op.create_table(
        'issue',
        sa.Column('id', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('title', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('description', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column(
            'status',
            sa.Enum('BACKLOG', 'TODO', 'IN_PROGRESS', 'IN_REVIEW', 'DONE', name='issuestatus'),
            nullable=False,
        ),
        sa.Column('priority', sa.Enum('URGENT', 'HIGH', 'MEDIUM', 'LOW', name='issuepriority'), nullable=False),
        sa.Column('type', sa.Enum('EPIC', 'STORY', 'TASK', 'BUG', 'SUBTASK', name='issuetype'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('estimated_hours', sa.Float(), nullable=True),
        sa.Column('actual_hours', sa.Float(), nullable=True),
        sa.Column('is_ai_generated', sa.Boolean(), nullable=False),
        sa.Column('ai_tool_used', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('ai_generation_count', sa.Integer(), nullable=False),
        sa.Column('ai_context_tokens', sa.Integer(), nullable=True),
        sa.Column('issue_number', sa.Integer(), nullable=False),
        sa.Column('project_id', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('cycle_id', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('parent_issue_id', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.ForeignKeyConstraint(['project_id'], ['project.id']),
        sa.ForeignKeyConstraint(['cycle_id'], ['cycle.id']),
        sa.ForeignKeyConstraint(['parent_issue_id'], ['issue.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    for column in (
        'status', 'priority', 'created_at', 'updated_at', 'is_ai_generated',
        'issue_number', 'project_id', 'cycle_id', 'parent_issue_id',
    ):
        op.create_index(op.f(f'ix_issue_{column}'), 'issue', [column], unique=False)
    op.create_index('ux_issue_project_number', 'issue', ['project_id', 'issue_number'], unique=True)

    op.create_table(
        'issue_label_link',
        sa.Column('issue_id', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('label_id', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.ForeignKeyConstraint(['issue_id'], ['issue.id']),
        sa.ForeignKeyConstraint(['label_id'], ['issue_label.id']),
        sa.PrimaryKeyConstraint('issue_id', 'label_id'),
    )

    op.create_table(
        'comment',
        sa.Column('id', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('content', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('is_ai_generated', sa.Boolean(), nullable=False),
        sa.Column('issue_id', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.ForeignKeyConstraint(['issue_id'], ['issue.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_comment_issue_id'), 'comment', ['issue_id'], unique=False)

    op.create_table(
        'ai_tracking_event',
        sa.Column('id', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('event_type', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('ai_tool', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('prompt_summary', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('code_files_changed', sa.JSON(), nullable=True),
        sa.Column('tokens_used', sa.Integer(), nullable=False),
        sa.Column('issue_id', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.ForeignKeyConstraint(['issue_id'], ['issue.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_ai_tracking_event_timestamp'), 'ai_tracking_event', ['timestamp'], unique=False)
    op.create_index(op.f('ix_ai_tracking_event_issue_id'), 'ai_tracking_event', ['issue_id'], unique=False)

    op.create_table(
        'context_snapshot',
        sa.Column('id', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('completion_percentage', sa.Float(), nullable=False),
        sa.Column('key_files', sa.JSON(), nullable=True),
        sa.Column('pending_items', sa.JSON(), nullable=True),
        sa.Column('notes', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('issue_id', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.ForeignKeyConstraint(['issue_id'], ['issue.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_context_snapshot_timestamp'), 'context_snapshot', ['timestamp'], unique=False)
    op.create_index(op.f('ix_context_snapshot_issue_id'), 'context_snapshot', ['issue_id'], unique=False)


def downgrade() -> None:
    """Drop every table, dependents first."""
    op.drop_index(op.f('ix_context_snapshot_issue_id'), table_name='context_snapshot')
    op.drop_index(op.f('ix_context_snapshot_timestamp'), table_name='context_snapshot')
    op.drop_table('context_snapshot')
    op.drop_index(op.f('ix_ai_tracking_event_issue_id'), table_name='ai_tracking_event')
    op.drop_index(op.f('ix_ai_tracking_event_timestamp'), table_name='ai_tracking_event')
    op.drop_table('ai_tracking_event')
    op.drop_index(op.f('ix_comment_issue_id'), table_name='comment')
    op.drop_table('comment')
    op.drop_table('issue_label_link')
    op.drop_index('ux_issue_project_number', table_name='issue')
    for column in (
        'parent_issue_id', 'cycle_id', 'project_id', 'issue_number', 'is_ai_generated',
        'updated_at', 'created_at', 'priority', 'status',
    ):
        op.drop_index(op.f(f'ix_issue_{column}'), table_name='issue')
    op.drop_table('issue')
    op.drop_index(op.f('ix_cycle_project_id'), table_name='cycle')
    op.drop_index(op.f('ix_cycle_is_archived'), table_name='cycle')
    op.drop_table('cycle')
    op.drop_index(op.f('ix_issue_label_project_id'), table_name='issue_label')
    op.drop_table('issue_label')
    op.drop_table('project')
