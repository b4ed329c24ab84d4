"""CustomerPaymentMethod model"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from datetime import datetime, timezone
from billing.models.base import Base


class CustomerPaymentMethod(Base):
    """Saved payment method (safe display metadata only, never card numbers)"""
    __tablename__ = "customer_payment_methods"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(String(255), nullable=False, index=True)  # cus_...
    payment_method_id = Column(String(255), unique=True, nullable=False, index=True)  # pm_...
    type = Column(String(50), nullable=False, index=True)  # card, us_bank_account, sepa_debit, ...

    # Card fields
    card_brand = Column(String(50), nullable=True)
    card_last4 = Column(String(4), nullable=True)
    card_exp_month = Column(Integer, nullable=True)
    card_exp_year = Column(Integer, nullable=True)
    card_funding = Column(String(50), nullable=True)

    # Bank fields
    bank_name = Column(String(255), nullable=True)
    bank_last4 = Column(String(4), nullable=True)
    mandate_id = Column(String(255), nullable=True)

    is_default = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)
