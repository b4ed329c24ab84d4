"""Payment intent webhook handlers and Zeus subscription settlement"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from billing.db.helpers import utc_now
from billing.repositories import customer_billing_info, customer_payment_methods, payment_intents, zeus_subscriptions
from billing.services import stripe_service
from billing.services.notification_service import ZeusNotificationClient
from billing.utils.stripe_objects import extract_id, get_stripe_value

logger = logging.getLogger(__name__)

UNKNOWN_FAILURE_REASON = "Unknown failure reason"
UNKNOWN_CANCELLATION_REASON = "Unknown cancellation reason"


# ============================================================================
# PAYMENT INTENT HANDLERS
# ============================================================================

def handle_payment_intent_created(payment_intent: Any, db: Session, notifier: ZeusNotificationClient) -> None:
    logger.info(
        f"Payment intent created: {get_stripe_value(payment_intent, 'id')} "
        f"({get_stripe_value(payment_intent, 'amount')} {get_stripe_value(payment_intent, 'currency')})"
    )
    payment_intents.upsert_from_stripe(payment_intent, db)


def handle_payment_intent_succeeded(payment_intent: Any, db: Session, notifier: ZeusNotificationClient) -> None:
    """Mirror the intent, save the payment method if requested, then settle the subscription"""
    logger.info(f"Payment intent succeeded: {get_stripe_value(payment_intent, 'id')}")
    payment_intents.upsert_from_stripe(payment_intent, db)

    try:
        save_payment_method_if_requested(payment_intent, db)
    except Exception as e:
        # Payment method persistence must not fail the webhook. A failed
        # statement aborts the transaction, so roll back before settling.
        db.rollback()
        logger.error(
            f"Failed to persist payment method for payment intent "
            f"{get_stripe_value(payment_intent, 'id')}: {e}",
            exc_info=True
        )

    settle_subscription(payment_intent, "succeeded", db, notifier, paid_at=utc_now())


def handle_payment_intent_failed(payment_intent: Any, db: Session, notifier: ZeusNotificationClient) -> None:
    last_error = get_stripe_value(payment_intent, "last_payment_error")
    logger.warning(
        f"Payment intent failed: {get_stripe_value(payment_intent, 'id')} "
        f"(error={get_stripe_value(last_error, 'message')}, code={get_stripe_value(last_error, 'code')})"
    )
    payment_intents.upsert_from_stripe(payment_intent, db)
    settle_subscription(payment_intent, "failed", db, notifier)


def handle_payment_intent_canceled(payment_intent: Any, db: Session, notifier: ZeusNotificationClient) -> None:
    logger.info(
        f"Payment intent canceled: {get_stripe_value(payment_intent, 'id')} "
        f"(reason={get_stripe_value(payment_intent, 'cancellation_reason')})"
    )
    payment_intents.upsert_from_stripe(payment_intent, db)
    settle_subscription(payment_intent, "canceled", db, notifier)


def save_payment_method_if_requested(payment_intent: Any, db: Session) -> bool:
    """Persist the intent's payment method when metadata save_payment_method is "true".

    Returns True if a payment method was saved.
    """
    metadata = get_stripe_value(payment_intent, "metadata", {})
    should_save = str(get_stripe_value(metadata, "save_payment_method", "")).lower() == "true"
    payment_method_id = extract_id(get_stripe_value(payment_intent, "payment_method"))
    customer_id = extract_id(get_stripe_value(payment_intent, "customer"))

    if not (should_save and payment_method_id and customer_id):
        return False

    payment_method = stripe_service.retrieve_payment_method(payment_method_id)
    customer_payment_methods.upsert_from_stripe_payment_method(payment_method, db, customer_id=customer_id)
    return True


# ============================================================================
# SUBSCRIPTION SETTLEMENT
# ============================================================================

def build_subscription_metadata(subscription) -> Dict[str, Any]:
    metadata = {}
    if subscription.sport_id:
        metadata["sport_id"] = subscription.sport_id
    if subscription.team_id:
        metadata["team_id"] = subscription.team_id
    if subscription.subscription_type:
        metadata["subscription_type"] = subscription.subscription_type
    return metadata


def settle_subscription(
    payment_intent: Any,
    outcome: str,
    db: Session,
    notifier: ZeusNotificationClient,
    paid_at: Optional[datetime] = None
) -> None:
    """Apply a payment outcome to the Zeus subscription tied to the intent and notify Zeus.

    Intents without a subscription are ignored. Notification failures are
    logged only; the status update stays committed.
    """
    payment_intent_id = get_stripe_value(payment_intent, "id")
    subscription = zeus_subscriptions.get_by_payment_intent(payment_intent_id, db)
    if not subscription:
        logger.warning(f"No Zeus subscription found for payment intent {payment_intent_id}")
        return

    subscription_id = subscription.subscription_id
    zeus_subscriptions.update_status(subscription_id, outcome, db, paid_at=paid_at)

    notification = {
        "subscription_id": subscription_id,
        "user_id": subscription.user_id,
        "payment_intent_id": payment_intent_id,
        "amount": get_stripe_value(payment_intent, "amount"),
        "currency": get_stripe_value(payment_intent, "currency"),
        "metadata": build_subscription_metadata(subscription),
    }

    try:
        if outcome == "succeeded":
            notifier.notify_payment_succeeded(paid_at=paid_at or utc_now(), **notification)
            zeus_subscriptions.mark_notified(subscription_id, db)
        elif outcome == "failed":
            last_error = get_stripe_value(payment_intent, "last_payment_error")
            notifier.notify_payment_failed(
                error_message=get_stripe_value(last_error, "message", UNKNOWN_FAILURE_REASON),
                **notification
            )
        elif outcome == "canceled":
            notifier.notify_payment_canceled(
                error_message=get_stripe_value(payment_intent, "cancellation_reason", UNKNOWN_CANCELLATION_REASON),
                **notification
            )
    except Exception as e:
        logger.error(f"Failed to notify Zeus of {outcome} payment for subscription {subscription_id}: {e}")


# ============================================================================
# OUTBOUND PAYMENT FLOW
# ============================================================================

def create_payment_intent(
    amount: int,
    db: Session,
    currency: str = "usd",
    description: Optional[str] = None,
    metadata: Optional[Dict[str, str]] = None,
    customer_email: Optional[str] = None,
    customer_name: Optional[str] = None,
    save_payment_method: bool = False
) -> Dict[str, Any]:
    """Create a Stripe PaymentIntent and mirror it locally.

    With a customer email, the Stripe customer is found or created and the
    local billing info is inserted if missing (never overwritten here).
    """
    customer_id = None
    if customer_email:
        customer = stripe_service.create_or_get_customer(customer_email, customer_name)
        customer_billing_info.ensure_exists_from_stripe(customer, db)
        customer_id = get_stripe_value(customer, "id")

    metadata = dict(metadata or {})
    if save_payment_method:
        metadata["save_payment_method"] = "true"

    payment_intent = stripe_service.create_payment_intent(
        amount,
        currency,
        customer=customer_id,
        description=description,
        metadata=metadata or None
    )
    record = payment_intents.upsert_from_stripe(payment_intent, db)
    return payment_intents.payment_intent_to_dict(payment_intents.get_payment_intent(record["id"], db))


def confirm_payment_intent(payment_intent_id: str, db: Session, payment_method: str = "pm_card_visa") -> Dict[str, Any]:
    payment_intent = stripe_service.confirm_payment_intent(payment_intent_id, payment_method)
    record = payment_intents.upsert_from_stripe(payment_intent, db)
    return payment_intents.payment_intent_to_dict(payment_intents.get_payment_intent(record["id"], db))
