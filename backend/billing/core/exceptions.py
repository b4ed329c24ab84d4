"""Domain errors raised by the billing services.

Routes translate these into HTTP responses; services never import FastAPI.
"""
from typing import Optional


class BillingError(Exception):
    """Base error for the billing service"""


class WebhookConfigurationError(BillingError):
    """The webhook signing secret is not configured"""

    def __init__(self, message: str = "Webhook secret not configured"):
        super().__init__(message)


class WebhookVerificationError(BillingError):
    """Missing signature header, bad signature or malformed body"""

    def __init__(self, message: str = "Invalid signature"):
        super().__init__(message)


class WebhookHandlerError(BillingError):
    """A per-type handler failed while applying side effects for one event.

    Carries the event identity and the original exception so the dispatcher
    can finalize the ledger without inspecting error strings.
    """

    def __init__(self, event_id: str, event_type: str, cause: BaseException):
        self.event_id = event_id
        self.event_type = event_type
        self.cause = cause
        super().__init__(f"{event_type} handler failed for {event_id}: {cause}")

    @property
    def message(self) -> str:
        return str(self.cause) or type(self.cause).__name__


class NotificationDeliveryError(BillingError):
    """Zeus notification could not be delivered"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class PaymentMethodMappingError(BillingError, ValueError):
    """A payment method could not be mapped to a local record"""
