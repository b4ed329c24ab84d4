"""Create customer_billing_info table

Revision ID: 006
Revises: 005
Create Date: 2025-10-29 06:18:49.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '006'
down_revision: Union[str, None] = '005'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    inspector = inspect(op.get_bind())
    if 'customer_billing_info' in inspector.get_table_names():
        return

    op.create_table(
        'customer_billing_info',
        sa.Column('customer_id', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('address_line_1', sa.String(length=255), nullable=True),
        sa.Column('address_line_2', sa.String(length=255), nullable=True),
        sa.Column('city', sa.String(length=255), nullable=True),
        sa.Column('state', sa.String(length=255), nullable=True),
        sa.Column('postal_code', sa.String(length=50), nullable=True),
        sa.Column('country', sa.String(length=2), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('customer_id')
    )
    op.create_index('ix_customer_billing_info_email', 'customer_billing_info', ['email'])
    op.create_index('ix_customer_billing_info_name', 'customer_billing_info', ['name'])


def downgrade() -> None:
    op.drop_index('ix_customer_billing_info_name', table_name='customer_billing_info')
    op.drop_index('ix_customer_billing_info_email', table_name='customer_billing_info')
    op.drop_table('customer_billing_info')
