"""ZeusSubscription model"""
from sqlalchemy import Column, Integer, String, DateTime
from datetime import datetime, timezone
from billing.models.base import Base

SUBSCRIPTION_STATUSES = ("pending", "succeeded", "failed", "canceled")


class ZeusSubscription(Base):
    """Subscription purchased through Zeus, settled by payment intent webhooks"""
    __tablename__ = "zeus_subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    subscription_id = Column(Integer, unique=True, nullable=False, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    payment_intent_id = Column(String(255), nullable=False, index=True)  # correlation only, no FK

    # Zeus business data
    sport_id = Column(Integer, nullable=True)
    team_id = Column(Integer, nullable=True)
    subscription_type = Column(String(100), nullable=True)

    # Customer info
    customer_email = Column(String(255), nullable=False)
    customer_name = Column(String(255), nullable=True)

    # Payment tracking
    amount = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="usd")
    status = Column(String(20), nullable=False, default="pending", index=True)  # one of SUBSCRIPTION_STATUSES
    paid_at = Column(DateTime(timezone=True), nullable=True)

    # Zeus notification tracking
    zeus_notified_at = Column(DateTime(timezone=True), nullable=True)
    zeus_notification_attempts = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)
