"""Initial schema - accounts, knowledge content, governance, activity log

Revision ID: 0001
Revises: 
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Accounts table (id is the identity provider's subject id)
    op.create_table(
        'accounts',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('username', sa.String(255), nullable=True),
        sa.Column('role_code', sa.String(50), nullable=False, server_default='Consultant'),
        sa.Column('region_code', sa.String(50), nullable=False, server_default='GLOBAL'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_accounts_email', 'accounts', ['email'], unique=True)
    
    # Lookups
    op.create_table(
        'knowledge_categories',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_table(
        'tag_values',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('label', sa.String(255), nullable=False),
        sa.Column('tag_type', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    
    # Duplicate clusters (before knowledge_items, which points at them)
    op.create_table(
        'duplicate_clusters',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('detection_method', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    
    # Knowledge items
    op.create_table(
        'knowledge_items',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('item_type', sa.String(100), nullable=True),
        sa.Column('content_uri', sa.String(2048), nullable=True),
        sa.Column('status', sa.String(50), nullable=False, server_default='draft'),
        sa.Column('region_code', sa.String(50), nullable=False),
        sa.Column('owner_id', sa.Uuid(), sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column(
            'duplicate_cluster_id',
            sa.Uuid(),
            sa.ForeignKey('duplicate_clusters.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_knowledge_items_status', 'knowledge_items', ['status'])
    op.create_index('ix_knowledge_items_region_code', 'knowledge_items', ['region_code'])
    op.create_index('ix_knowledge_items_owner_id', 'knowledge_items', ['owner_id'])
    
    # Item links
    op.create_table(
        'item_categories',
        sa.Column('item_id', sa.Uuid(), sa.ForeignKey('knowledge_items.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('category_id', sa.Uuid(), sa.ForeignKey('knowledge_categories.id', ondelete='CASCADE'), primary_key=True),
    )
    op.create_table(
        'item_tags',
        sa.Column('item_id', sa.Uuid(), sa.ForeignKey('knowledge_items.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('tag_id', sa.Uuid(), sa.ForeignKey('tag_values.id', ondelete='CASCADE'), primary_key=True),
    )
    op.create_table(
        'duplicate_cluster_items',
        sa.Column('cluster_id', sa.Uuid(), sa.ForeignKey('duplicate_clusters.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('item_id', sa.Uuid(), sa.ForeignKey('knowledge_items.id', ondelete='CASCADE'), primary_key=True),
    )
    
    # Flags
    op.create_table(
        'flags',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('item_id', sa.Uuid(), sa.ForeignKey('knowledge_items.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('note', sa.Text(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='open'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_flags_item_id', 'flags', ['item_id'])
    op.create_index('ix_flags_status_created', 'flags', ['status', 'created_at'])
    
    # Governance audits (no FK on item_id: audits outlive the item)
    op.create_table(
        'governance_audits',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('item_id', sa.Uuid(), nullable=False),
        sa.Column('reviewer_id', sa.Uuid(), sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('decision', sa.String(100), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('audit_date', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_governance_audits_item_id', 'governance_audits', ['item_id'])
    
    # Event logs table (append-only)
    op.create_table(
        'event_logs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('event_type', sa.String(100), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=True),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('request_id', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_event_logs_event_type', 'event_logs', ['event_type'])
    op.create_index('ix_event_logs_entity_id', 'event_logs', ['entity_id'])
    op.create_index('ix_event_logs_user_id', 'event_logs', ['user_id'])
    op.create_index('ix_event_logs_created_at', 'event_logs', ['created_at'])
    op.create_index('ix_event_logs_entity', 'event_logs', ['entity_type', 'entity_id'])
    op.create_index('ix_event_logs_user_time', 'event_logs', ['user_id', 'created_at'])


def downgrade() -> None:
    op.drop_table('event_logs')
    op.drop_table('governance_audits')
    op.drop_table('flags')
    op.drop_table('duplicate_cluster_items')
    op.drop_table('item_tags')
    op.drop_table('item_categories')
    op.drop_table('knowledge_items')
    op.drop_table('duplicate_clusters')
    op.drop_table('tag_values')
    op.drop_table('knowledge_categories')
    op.drop_table('accounts')
