"""SQLAlchemy models package - imports all models so they register with Base.metadata"""
from billing.models.base import Base
from billing.models.webhook_event import WebhookEvent
from billing.models.processed_billing_event import ProcessedBillingEvent
from billing.models.payment_intent import PaymentIntent
from billing.models.zeus_subscription import ZeusSubscription
from billing.models.customer_billing_info import CustomerBillingInfo
from billing.models.customer_payment_method import CustomerPaymentMethod

# Export all for convenience
__all__ = [
    "Base", "WebhookEvent", "ProcessedBillingEvent", "PaymentIntent",
    "ZeusSubscription", "CustomerBillingInfo", "CustomerPaymentMethod"
]
