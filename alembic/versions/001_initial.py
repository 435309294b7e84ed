"""Initial migration

Revision ID: 001
Revises:
Create Date: 2024-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('company', sa.String(255)),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('refresh_token', sa.String(500)),
        sa.Column('last_login', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create experts table
    op.create_table(
        'experts',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('phone_number', sa.String(30), nullable=False),
        sa.Column('expert_type', sa.String(32), nullable=False, server_default='other'),
        sa.Column('company', sa.String(255)),
        sa.Column('notes', sa.Text()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create calls table
    op.create_table(
        'calls',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('expert_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('experts.id', ondelete='SET NULL')),
        sa.Column('goal', sa.Text(), nullable=False),
        sa.Column('context_links', postgresql.JSON(), default=[]),
        sa.Column('context_text', sa.Text()),
        sa.Column('status', sa.String(32), nullable=False, server_default='pending'),
        sa.Column('failure_reason', sa.Text()),
        sa.Column('recording_url', sa.String(500)),
        sa.Column('transcript', sa.Text()),
        sa.Column('summary', sa.Text()),
        sa.Column('duration_seconds', sa.Integer()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
        sa.Column('completed_at', sa.DateTime()),
    )

    # Create indexes
    op.create_index('ix_experts_user_id_expert_type', 'experts', ['user_id', 'expert_type'])
    op.create_index('ix_calls_user_id_created_at', 'calls', ['user_id', 'created_at'])
    op.create_index('ix_calls_expert_id', 'calls', ['expert_id'])
    op.create_index('ix_calls_status', 'calls', ['status'])


def downgrade() -> None:
    op.drop_table('calls')
    op.drop_table('experts')
    op.drop_table('users')
