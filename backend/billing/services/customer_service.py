"""Customer and payment method webhook handlers"""
import logging
from typing import Any

from sqlalchemy.orm import Session

from billing.core.exceptions import PaymentMethodMappingError
from billing.repositories import customer_billing_info, customer_payment_methods
from billing.services import stripe_service
from billing.services.notification_service import ZeusNotificationClient
from billing.utils.stripe_objects import extract_id, get_stripe_value

logger = logging.getLogger(__name__)


def handle_customer_updated(customer: Any, db: Session, notifier: ZeusNotificationClient) -> None:
    """customer.created / customer.updated: Stripe is authoritative, overwrite local info"""
    logger.info(f"Syncing billing info for customer {get_stripe_value(customer, 'id')}")
    customer_billing_info.update_from_stripe(customer, db)


def handle_setup_intent_succeeded(setup_intent: Any, db: Session, notifier: ZeusNotificationClient) -> None:
    """Save the payment method confirmed by a SetupIntent.

    Raises:
        PaymentMethodMappingError: neither the setup intent nor the payment method names a customer
    """
    setup_intent_id = get_stripe_value(setup_intent, "id")
    payment_method_id = extract_id(get_stripe_value(setup_intent, "payment_method"))
    if not payment_method_id:
        logger.info(f"Setup intent {setup_intent_id} has no payment method, nothing to save")
        return

    payment_method = stripe_service.retrieve_payment_method(payment_method_id)
    customer_id = (
        extract_id(get_stripe_value(setup_intent, "customer"))
        or extract_id(get_stripe_value(payment_method, "customer"))
    )
    if not customer_id:
        raise PaymentMethodMappingError(
            f"Cannot resolve customer for payment method {payment_method_id} "
            f"(setup intent {setup_intent_id})"
        )

    customer_payment_methods.upsert_from_stripe_payment_method(payment_method, db, customer_id=customer_id)


def handle_payment_method_detached(payment_method: Any, db: Session, notifier: ZeusNotificationClient) -> None:
    payment_method_id = get_stripe_value(payment_method, "id")
    deleted = customer_payment_methods.remove(payment_method_id, db)
    logger.info(f"Payment method {payment_method_id} detached ({deleted} local record(s) removed)")
