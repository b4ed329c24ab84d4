"""Create processed_billing_events table (idempotency ledger)

Revision ID: 005
Revises: 004
Create Date: 2025-10-28 22:53:02.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '005'
down_revision: Union[str, None] = '004'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    inspector = inspect(op.get_bind())
    if 'processed_billing_events' in inspector.get_table_names():
        return

    op.create_table(
        'processed_billing_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('event_id', sa.String(length=255), nullable=False),
        sa.Column('event_type', sa.String(length=100), nullable=False),
        sa.Column('payment_intent_id', sa.String(length=255), nullable=True),
        # NULL while the claiming request is still dispatching
        sa.Column('success', sa.Boolean(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_processed_billing_events_id', 'processed_billing_events', ['id'])
    # The unique index is what makes claims exclusive
    op.create_index('ix_processed_billing_events_event_id', 'processed_billing_events', ['event_id'], unique=True)
    op.create_index('ix_processed_billing_events_event_type', 'processed_billing_events', ['event_type'])
    op.create_index('ix_processed_billing_events_payment_intent_id', 'processed_billing_events', ['payment_intent_id'])
    op.create_index('ix_processed_billing_events_processed_at', 'processed_billing_events', ['processed_at'])


def downgrade() -> None:
    op.drop_index('ix_processed_billing_events_processed_at', table_name='processed_billing_events')
    op.drop_index('ix_processed_billing_events_payment_intent_id', table_name='processed_billing_events')
    op.drop_index('ix_processed_billing_events_event_type', table_name='processed_billing_events')
    op.drop_index('ix_processed_billing_events_event_id', table_name='processed_billing_events')
    op.drop_index('ix_processed_billing_events_id', table_name='processed_billing_events')
    op.drop_table('processed_billing_events')
