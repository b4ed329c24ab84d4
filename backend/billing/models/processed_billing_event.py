"""ProcessedBillingEvent model"""
from sqlalchemy import Column, Integer, String, Boolean, Text, DateTime
from datetime import datetime, timezone
from billing.models.base import Base


class ProcessedBillingEvent(Base):
    """Idempotency ledger: one row per Stripe event id that has been claimed.

    success is NULL while the claiming request is still dispatching.
    """
    __tablename__ = "processed_billing_events"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(String(255), unique=True, nullable=False, index=True)
    event_type = Column(String(100), nullable=False, index=True)
    payment_intent_id = Column(String(255), nullable=True, index=True)
    success = Column(Boolean, nullable=True)
    error_message = Column(Text, nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)
