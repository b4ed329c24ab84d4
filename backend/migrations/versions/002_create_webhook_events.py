"""Create webhook_events table

Revision ID: 002
Revises: 001
Create Date: 2025-10-20 02:19:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '002'
down_revision: Union[str, None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    inspector = inspect(op.get_bind())
    if 'webhook_events' in inspector.get_table_names():
        return

    op.create_table(
        'webhook_events',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('type', sa.String(length=100), nullable=False),
        sa.Column('payment_intent_id', sa.String(length=255), nullable=True),
        sa.Column('data', sa.JSON(), nullable=False),
        sa.Column('processed', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('processing_error', sa.Text(), nullable=True),
        sa.Column('received_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_webhook_events_type', 'webhook_events', ['type'])
    op.create_index('ix_webhook_events_payment_intent_id', 'webhook_events', ['payment_intent_id'])
    op.create_index('ix_webhook_events_processed', 'webhook_events', ['processed'])
    op.create_index('ix_webhook_events_received_at', 'webhook_events', ['received_at'])


def downgrade() -> None:
    op.drop_index('ix_webhook_events_received_at', table_name='webhook_events')
    op.drop_index('ix_webhook_events_processed', table_name='webhook_events')
    op.drop_index('ix_webhook_events_payment_intent_id', table_name='webhook_events')
    op.drop_index('ix_webhook_events_type', table_name='webhook_events')
    op.drop_table('webhook_events')
