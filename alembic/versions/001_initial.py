"""Initial migration - create users and runs tables

Revision ID: 001_initial
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('email', sa.String(255), unique=True, index=True, nullable=True),
        sa.Column('name', sa.String(100), nullable=True),
        sa.Column('weight_kg', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    # Create runs table (append-only; timestamps in epoch ms)
    op.create_table(
        'runs',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(64), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('time_s', sa.Integer(), nullable=False),
        sa.Column('distance_km', sa.Float(), nullable=False),
        sa.Column('pace', sa.String(16), nullable=False),
        sa.Column('average_speed_kmh', sa.Float(), nullable=False),
        sa.Column('elevation_gain_m', sa.Float(), nullable=False, server_default='0'),
        sa.Column('calories', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('steps', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('step_source', sa.String(16), nullable=False),
        sa.Column('route', sa.JSON(), nullable=False),
        sa.Column('map_image', sa.String(1024), nullable=True),
        sa.Column('created_at', sa.BigInteger(), nullable=False),
        sa.Column('started_at', sa.BigInteger(), nullable=False),
        sa.Column('ended_at', sa.BigInteger(), nullable=False),
    )
    op.create_index('ix_runs_user_id', 'runs', ['user_id'])
    op.create_index('ix_runs_created_at', 'runs', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_runs_created_at', table_name='runs')
    op.drop_index('ix_runs_user_id', table_name='runs')
    op.drop_table('runs')
    op.drop_table('users')
