"""Add created and payment_method to payment_intents

Revision ID: 003
Revises: 002
Create Date: 2025-10-21 23:25:55.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '003'
down_revision: Union[str, None] = '002'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    inspector = inspect(op.get_bind())
    columns = [col['name'] for col in inspector.get_columns('payment_intents')]

    # Stripe epoch seconds, not our created_at
    if 'created' not in columns:
        op.add_column('payment_intents', sa.Column('created', sa.BigInteger(), nullable=True))
    if 'payment_method' not in columns:
        op.add_column('payment_intents', sa.Column('payment_method', sa.String(length=255), nullable=True))


def downgrade() -> None:
    op.drop_column('payment_intents', 'payment_method')
    op.drop_column('payment_intents', 'created')
