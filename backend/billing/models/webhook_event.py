"""WebhookEvent model"""
from sqlalchemy import Column, String, Boolean, Text, JSON, DateTime
from datetime import datetime, timezone
from billing.models.base import Base


class WebhookEvent(Base):
    """Audit trail of raw Stripe webhook envelopes, kept for replay and debugging"""
    __tablename__ = "webhook_events"

    id = Column(String(255), primary_key=True)  # Stripe event ID (evt_...)
    type = Column(String(100), nullable=False, index=True)
    payment_intent_id = Column(String(255), nullable=True, index=True)
    data = Column(JSON, nullable=False)
    processed = Column(Boolean, default=False, nullable=False, index=True)
    processing_error = Column(Text, nullable=True)
    received_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False, index=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)
