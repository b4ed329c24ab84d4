"""Thin wrapper around the Stripe SDK.

Every Stripe call the service makes goes through here so tests can patch
one module.
"""
import logging
import stripe
from typing import Any, Dict, Optional

from billing.core.config import settings
from billing.core.exceptions import WebhookConfigurationError, WebhookVerificationError
from billing.utils.stripe_objects import get_stripe_value

logger = logging.getLogger(__name__)

# Configure Stripe
stripe.api_key = settings.STRIPE_SECRET_KEY
stripe.api_version = settings.STRIPE_API_VERSION


def construct_event(payload: bytes, sig_header: Optional[str]):
    """Verify a webhook delivery and return the Stripe event.

    Raises:
        WebhookVerificationError: missing header, bad signature or malformed body
        WebhookConfigurationError: STRIPE_WEBHOOK_SECRET is not set
    """
    if not sig_header:
        logger.error("Missing stripe-signature header")
        raise WebhookVerificationError("Missing stripe-signature header")

    if not settings.STRIPE_WEBHOOK_SECRET:
        logger.error("Webhook secret not configured")
        raise WebhookConfigurationError()

    try:
        return stripe.Webhook.construct_event(
            payload, sig_header, settings.STRIPE_WEBHOOK_SECRET
        )
    except ValueError as e:
        logger.error(f"Invalid webhook payload: {e}")
        raise WebhookVerificationError("Invalid signature") from e
    except stripe.SignatureVerificationError as e:
        logger.error(f"Invalid webhook signature: {e}")
        raise WebhookVerificationError("Invalid signature") from e


def retrieve_payment_method(payment_method_id: str):
    return stripe.PaymentMethod.retrieve(payment_method_id)


def create_payment_intent(
    amount: int,
    currency: str = "usd",
    customer: Optional[str] = None,
    description: Optional[str] = None,
    metadata: Optional[Dict[str, str]] = None
):
    """Create a PaymentIntent with automatic payment methods (no redirects)"""
    params: Dict[str, Any] = {
        "amount": amount,
        "currency": currency,
        "automatic_payment_methods": {
            "enabled": True,
            "allow_redirects": "never",
        },
    }
    # Only pass optional params Stripe should see
    if customer:
        params["customer"] = customer
    if description:
        params["description"] = description
    if metadata:
        params["metadata"] = metadata

    payment_intent = stripe.PaymentIntent.create(**params)
    logger.info(f"Created Stripe payment intent {get_stripe_value(payment_intent, 'id')} ({amount} {currency})")
    return payment_intent


def confirm_payment_intent(payment_intent_id: str, payment_method: str = "pm_card_visa"):
    payment_intent = stripe.PaymentIntent.confirm(payment_intent_id, payment_method=payment_method)
    logger.info(f"Confirmed Stripe payment intent {payment_intent_id}: {get_stripe_value(payment_intent, 'status')}")
    return payment_intent


def create_or_get_customer(email: str, name: Optional[str] = None):
    """Find a Stripe customer by email, creating one if none exists"""
    existing = stripe.Customer.list(email=email, limit=1)
    if existing.data:
        logger.info(f"Found existing Stripe customer: {get_stripe_value(existing.data[0], 'id')}")
        return existing.data[0]

    customer = stripe.Customer.create(email=email, name=name or "")
    logger.info(f"Created new Stripe customer: {get_stripe_value(customer, 'id')}")
    return customer
