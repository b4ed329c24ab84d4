"""Create payment_intents table

Revision ID: 001
Revises: 
Create Date: 2025-10-20 02:18:55.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Skip if Base.metadata.create_all already created it
    inspector = inspect(op.get_bind())
    if 'payment_intents' in inspector.get_table_names():
        return

    op.create_table(
        'payment_intents',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False),
        sa.Column('customer_id', sa.String(length=255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('client_secret', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_payment_intents_currency', 'payment_intents', ['currency'])
    op.create_index('ix_payment_intents_status', 'payment_intents', ['status'])
    op.create_index('ix_payment_intents_customer_id', 'payment_intents', ['customer_id'])
    op.create_index('ix_payment_intents_created_at', 'payment_intents', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_payment_intents_created_at', table_name='payment_intents')
    op.drop_index('ix_payment_intents_customer_id', table_name='payment_intents')
    op.drop_index('ix_payment_intents_status', table_name='payment_intents')
    op.drop_index('ix_payment_intents_currency', table_name='payment_intents')
    op.drop_table('payment_intents')
