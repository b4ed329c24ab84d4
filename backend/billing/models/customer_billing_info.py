"""CustomerBillingInfo model"""
from sqlalchemy import Column, String, DateTime
from datetime import datetime, timezone
from billing.models.base import Base


class CustomerBillingInfo(Base):
    """Contact and address details of a Stripe customer"""
    __tablename__ = "customer_billing_info"

    customer_id = Column(String(255), primary_key=True)  # cus_...
    email = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=True, index=True)
    address_line_1 = Column(String(255), nullable=True)
    address_line_2 = Column(String(255), nullable=True)
    city = Column(String(255), nullable=True)
    state = Column(String(255), nullable=True)
    postal_code = Column(String(50), nullable=True)
    country = Column(String(2), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)
