"""PaymentIntent model"""
from sqlalchemy import Column, Integer, BigInteger, String, Text, JSON, DateTime
from datetime import datetime, timezone
from billing.models.base import Base


class PaymentIntent(Base):
    """Local mirror of a Stripe PaymentIntent (never authoritative)"""
    __tablename__ = "payment_intents"

    id = Column(String(255), primary_key=True)  # pi_...
    amount = Column(Integer, nullable=False)  # minor units
    currency = Column(String(3), nullable=False, index=True)
    status = Column(String(50), nullable=False, index=True)
    customer_id = Column(String(255), nullable=True, index=True)
    description = Column(Text, nullable=True)
    metadata_ = Column("metadata", JSON, key="metadata_", nullable=True)
    client_secret = Column(String(255), nullable=True)
    created = Column(BigInteger, nullable=True)  # Stripe epoch seconds
    payment_method = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)
