"""Spaces, canvas versions and junction schema

Revision ID: 001_spaces_canvases
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_spaces_canvases'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create spaces table
    op.create_table('spaces',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('owner_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('visibility', sa.String(length=20), nullable=False, server_default='private'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_spaces_owner', 'spaces', ['owner_id'])

    # Create canvases table (one row per version)
    op.create_table('canvases',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False, server_default='Canvas 1'),
        sa.Column('flow_data', sa.Text(), nullable=False, server_default='{}'),
        sa.Column('deployed', sa.Boolean(), nullable=True),
        sa.Column('is_public', sa.Boolean(), nullable=True),
        sa.Column('apikeyid', sa.String(length=255), nullable=True),
        sa.Column('chatbot_config', sa.Text(), nullable=True),
        sa.Column('api_config', sa.Text(), nullable=True),
        sa.Column('analytic', sa.Text(), nullable=True),
        sa.Column('speech_to_text', sa.Text(), nullable=True),
        sa.Column('follow_up_prompts', sa.Text(), nullable=True),
        sa.Column('category', sa.Text(), nullable=True),
        sa.Column('type', sa.String(length=20), nullable=True, server_default='CHATFLOW'),
        sa.Column('version_group_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('version_uuid', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('version_label', sa.String(length=200), nullable=False, server_default='v1'),
        sa.Column('version_description', sa.Text(), nullable=True),
        sa.Column('version_index', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('version_uuid'),
        sa.UniqueConstraint('version_group_id', 'version_index', name='uq_canvases_group_index')
    )
    op.create_index('idx_canvases_group_active', 'canvases', ['version_group_id', 'is_active'])
    op.create_index(
        'uq_canvases_active_version',
        'canvases',
        ['version_group_id'],
        unique=True,
        postgresql_where=sa.text('is_active')
    )
    op.create_index('idx_canvases_updated', 'canvases', ['updated_at'])

    # Create spaces_canvases junction table
    op.create_table('spaces_canvases',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('space_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('canvas_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('version_group_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['space_id'], ['spaces.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['canvas_id'], ['canvases.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('space_id', 'version_group_id', name='uq_space_canvas_group'),
        sa.UniqueConstraint('space_id', 'sort_order', name='uq_space_sort')
    )
    op.create_index('idx_sc_canvas', 'spaces_canvases', ['canvas_id'])
    op.create_index('idx_sc_version_group', 'spaces_canvases', ['version_group_id'])

    # Create canvas dependent record tables
    op.create_table('chat_messages',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('canvas_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('chat_id', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=50), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_chat_messages_canvas', 'chat_messages', ['canvas_id'])

    op.create_table('chat_message_feedback',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('canvas_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('message_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('rating', sa.String(length=20), nullable=True),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_chat_message_feedback_canvas', 'chat_message_feedback', ['canvas_id'])

    op.create_table('upsert_history',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('canvas_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('result', sa.JSON(), nullable=True),
        sa.Column('flow_data', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_upsert_history_canvas', 'upsert_history', ['canvas_id'])

    op.create_table('leads',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('canvas_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('chat_id', sa.String(length=255), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('points', sa.Float(), nullable=True),
        sa.Column('consent', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_leads_canvas', 'leads', ['canvas_id'])

    # Create document stores and publish links
    op.create_table('document_stores',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('owner_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('where_used', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('publish_links',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('base_slug', sa.String(length=100), nullable=False),
        sa.Column('technology', sa.String(length=50), nullable=False, server_default='arjs'),
        sa.Column('version_group_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('target_canvas_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('target_version_uuid', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('base_slug')
    )
    op.create_index('idx_publish_links_group', 'publish_links', ['version_group_id'])


def downgrade() -> None:
    op.drop_index('idx_publish_links_group', table_name='publish_links')
    op.drop_table('publish_links')
    op.drop_table('document_stores')
    op.drop_index('idx_leads_canvas', table_name='leads')
    op.drop_table('leads')
    op.drop_index('idx_upsert_history_canvas', table_name='upsert_history')
    op.drop_table('upsert_history')
    op.drop_index('idx_chat_message_feedback_canvas', table_name='chat_message_feedback')
    op.drop_table('chat_message_feedback')
    op.drop_index('idx_chat_messages_canvas', table_name='chat_messages')
    op.drop_table('chat_messages')
    op.drop_index('idx_sc_version_group', table_name='spaces_canvases')
    op.drop_index('idx_sc_canvas', table_name='spaces_canvases')
    op.drop_table('spaces_canvases')
    op.drop_index('idx_canvases_updated', table_name='canvases')
    op.drop_index('uq_canvases_active_version', table_name='canvases')
    op.drop_index('idx_canvases_group_active', table_name='canvases')
    op.drop_table('canvases')
    op.drop_index('idx_spaces_owner', table_name='spaces')
    op.drop_table('spaces')
