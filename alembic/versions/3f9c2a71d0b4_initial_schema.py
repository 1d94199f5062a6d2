"""initial schema: memory store and job tables

Revision ID: 3f9c2a71d0b4
Revises:
Create Date: 2026-09-28 10:12:44.318201

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3f9c2a71d0b4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'suppliers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('platform', sa.String(), nullable=True),
        sa.Column('url', sa.String(), nullable=True),
        sa.Column('country', sa.String(), nullable=True),
        sa.Column('rating', sa.Float(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'supplier_capabilities',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('supplier_id', sa.Uuid(), nullable=False),
        sa.Column('capability', sa.String(), nullable=False),
        sa.Column('details', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('valid_until', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_supplier_capabilities_capability', 'supplier_capabilities', ['capability'], unique=False)

    op.create_table(
        'quotes',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('item_type', sa.String(), nullable=False),
        sa.Column('item_name', sa.String(), nullable=False),
        sa.Column('price', sa.Numeric(precision=14, scale=4), nullable=False),
        sa.Column('currency', sa.String(length=8), nullable=False),
        sa.Column('unit', sa.String(), nullable=True),
        sa.Column('route', sa.String(), nullable=True),
        sa.Column('terms', sa.String(), nullable=True),
        sa.Column('supplier_id', sa.String(), nullable=True),
        sa.Column('valid_until', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('source', sa.String(), nullable=False),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('is_deprecated', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_quotes_item_type', 'quotes', ['item_type'], unique=False)
    op.create_index('idx_quotes_valid_until', 'quotes', ['valid_until'], unique=False)
    op.create_index(
        'uq_quotes_live_natural_key',
        'quotes',
        [sa.text("coalesce(supplier_id, '')"), 'item_name', 'item_type'],
        unique=True,
        postgresql_where=sa.text('NOT is_deprecated'),
    )

    op.create_table(
        'knowledge_chunks',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('country', sa.String(), nullable=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('source', sa.String(), nullable=True),
        sa.Column('version', sa.String(), nullable=True),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('is_deprecated', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('superseded_by', sa.String(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        'idx_knowledge_chunks_natural_key', 'knowledge_chunks', ['title', 'category', 'country'], unique=False
    )

    op.create_table(
        'conversation_memories',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('session_id', sa.String(), nullable=True),
        sa.Column('summary', sa.Text(), nullable=False),
        sa.Column('key_entities', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('user_preferences', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('action_items', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('sentiment', sa.String(), nullable=True),
        sa.Column('importance', sa.Integer(), nullable=False),
        sa.Column('last_interaction', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_conversation_memories_user', 'conversation_memories', ['user_id'], unique=False)

    op.create_table(
        'entity_relations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('from_type', sa.String(), nullable=False),
        sa.Column('from_id', sa.String(), nullable=False),
        sa.Column('from_name', sa.String(), nullable=False),
        sa.Column('relation_type', sa.String(), nullable=False),
        sa.Column('to_type', sa.String(), nullable=False),
        sa.Column('to_id', sa.String(), nullable=False),
        sa.Column('to_name', sa.String(), nullable=False),
        sa.Column('properties', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('confidence', sa.Float(), nullable=True),
        sa.Column('source', sa.String(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'from_type', 'from_id', 'relation_type', 'to_type', 'to_id', name='uq_entity_relations_edge'
        )
    )
    op.create_index('idx_entity_relations_from', 'entity_relations', ['from_type', 'from_id'], unique=False)

    op.create_table(
        'jobs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('progress', sa.Integer(), nullable=False),
        sa.Column('input_data', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('output_data', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('queue_job_id', sa.String(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('started_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('completed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_jobs_user_status', 'jobs', ['user_id', 'status'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_jobs_user_status', table_name='jobs')
    op.drop_table('jobs')
    op.drop_index('idx_entity_relations_from', table_name='entity_relations')
    op.drop_table('entity_relations')
    op.drop_index('idx_conversation_memories_user', table_name='conversation_memories')
    op.drop_table('conversation_memories')
    op.drop_index('idx_knowledge_chunks_natural_key', table_name='knowledge_chunks')
    op.drop_table('knowledge_chunks')
    op.drop_index('uq_quotes_live_natural_key', table_name='quotes')
    op.drop_index('idx_quotes_valid_until', table_name='quotes')
    op.drop_index('idx_quotes_item_type', table_name='quotes')
    op.drop_table('quotes')
    op.drop_index('idx_supplier_capabilities_capability', table_name='supplier_capabilities')
    op.drop_table('supplier_capabilities')
    op.drop_table('suppliers')
