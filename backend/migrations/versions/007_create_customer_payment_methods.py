"""Create customer_payment_methods table

Revision ID: 007
Revises: 006
Create Date: 2025-10-29 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '007'
down_revision: Union[str, None] = '006'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    inspector = inspect(op.get_bind())
    if 'customer_payment_methods' in inspector.get_table_names():
        return

    op.create_table(
        'customer_payment_methods',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.String(length=255), nullable=False),
        sa.Column('payment_method_id', sa.String(length=255), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('card_brand', sa.String(length=50), nullable=True),
        sa.Column('card_last4', sa.String(length=4), nullable=True),
        sa.Column('card_exp_month', sa.Integer(), nullable=True),
        sa.Column('card_exp_year', sa.Integer(), nullable=True),
        sa.Column('card_funding', sa.String(length=50), nullable=True),
        sa.Column('bank_name', sa.String(length=255), nullable=True),
        sa.Column('bank_last4', sa.String(length=4), nullable=True),
        sa.Column('mandate_id', sa.String(length=255), nullable=True),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_customer_payment_methods_id', 'customer_payment_methods', ['id'])
    op.create_index('ix_customer_payment_methods_customer_id', 'customer_payment_methods', ['customer_id'])
    op.create_index(
        'ix_customer_payment_methods_payment_method_id', 'customer_payment_methods',
        ['payment_method_id'], unique=True
    )
    op.create_index('ix_customer_payment_methods_type', 'customer_payment_methods', ['type'])
    op.create_index('ix_customer_payment_methods_is_default', 'customer_payment_methods', ['is_default'])


def downgrade() -> None:
    op.drop_index('ix_customer_payment_methods_is_default', table_name='customer_payment_methods')
    op.drop_index('ix_customer_payment_methods_type', table_name='customer_payment_methods')
    op.drop_index('ix_customer_payment_methods_payment_method_id', table_name='customer_payment_methods')
    op.drop_index('ix_customer_payment_methods_customer_id', table_name='customer_payment_methods')
    op.drop_index('ix_customer_payment_methods_id', table_name='customer_payment_methods')
    op.drop_table('customer_payment_methods')
