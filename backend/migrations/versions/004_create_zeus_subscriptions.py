"""Create zeus_subscriptions table

Revision ID: 004
Revises: 003
Create Date: 2025-10-23 03:09:44.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '004'
down_revision: Union[str, None] = '003'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    inspector = inspect(op.get_bind())
    if 'zeus_subscriptions' in inspector.get_table_names():
        return

    op.create_table(
        'zeus_subscriptions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('subscription_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('payment_intent_id', sa.String(length=255), nullable=False),
        sa.Column('sport_id', sa.Integer(), nullable=True),
        sa.Column('team_id', sa.Integer(), nullable=True),
        sa.Column('subscription_type', sa.String(length=100), nullable=True),
        sa.Column('customer_email', sa.String(length=255), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=True),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='usd'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('zeus_notified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('zeus_notification_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_zeus_subscriptions_id', 'zeus_subscriptions', ['id'])
    op.create_index('ix_zeus_subscriptions_subscription_id', 'zeus_subscriptions', ['subscription_id'], unique=True)
    op.create_index('ix_zeus_subscriptions_user_id', 'zeus_subscriptions', ['user_id'])
    op.create_index('ix_zeus_subscriptions_payment_intent_id', 'zeus_subscriptions', ['payment_intent_id'])
    op.create_index('ix_zeus_subscriptions_status', 'zeus_subscriptions', ['status'])


def downgrade() -> None:
    op.drop_index('ix_zeus_subscriptions_status', table_name='zeus_subscriptions')
    op.drop_index('ix_zeus_subscriptions_payment_intent_id', table_name='zeus_subscriptions')
    op.drop_index('ix_zeus_subscriptions_user_id', table_name='zeus_subscriptions')
    op.drop_index('ix_zeus_subscriptions_subscription_id', table_name='zeus_subscriptions')
    op.drop_index('ix_zeus_subscriptions_id', table_name='zeus_subscriptions')
    op.drop_table('zeus_subscriptions')
