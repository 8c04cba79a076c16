"""Initial schema: visit tracking and saved locations.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def upgrade() -> None:
    # ### User visits table ###
    op.create_table(
        'user_visits',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('session_id', sa.String(255), nullable=False),
        sa.Column('ip_address', sa.String(64), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=False, server_default='Unknown'),
        sa.Column('first_visit', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_activity', sa.DateTime(timezone=True), nullable=False),
        sa.Column('total_duration', sa.Integer(), server_default='0'),
        sa.Column('locations', JSON_TYPE, nullable=True),
        sa.Column('current_location', JSON_TYPE, nullable=True),
        sa.Column('location_permission_granted', sa.Boolean(), nullable=True),
        sa.Column('location_permission_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('device_info', JSON_TYPE, nullable=True),
        sa.Column('network_info', JSON_TYPE, nullable=True),
        sa.Column('device_type', sa.String(50), nullable=True),
        sa.Column('browser', sa.String(100), nullable=True),
        sa.Column('os', sa.String(100), nullable=True),
        sa.Column('page_views', sa.Integer(), server_default='1'),
        sa.Column('interaction_count', sa.Integer(), server_default='0'),
        sa.Column('search_queries', JSON_TYPE, nullable=True),
        sa.Column('saved_locations_count', sa.Integer(), server_default='0'),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('country', sa.String(100), nullable=True),
        sa.Column('region', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_user_visits_session_id', 'user_visits', ['session_id'], unique=True)
    op.create_index(
        'ix_user_visits_location_permission_granted',
        'user_visits',
        ['location_permission_granted'],
    )
    op.create_index('ix_user_visits_created_at', 'user_visits', ['created_at'])

    # ### Saved locations table ###
    op.create_table(
        'saved_locations',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('address', sa.Text(), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_saved_locations_created_at', 'saved_locations', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_saved_locations_created_at', 'saved_locations')
    op.drop_table('saved_locations')
    op.drop_index('ix_user_visits_created_at', 'user_visits')
    op.drop_index('ix_user_visits_location_permission_granted', 'user_visits')
    op.drop_index('ix_user_visits_session_id', 'user_visits')
    op.drop_table('user_visits')
