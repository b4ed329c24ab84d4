"""Zeus subscription records, settled by payment intent webhooks"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from billing.db.helpers import utc_now
from billing.models.zeus_subscription import SUBSCRIPTION_STATUSES, ZeusSubscription

logger = logging.getLogger(__name__)


def create_subscription(
    subscription_id: int,
    user_id: int,
    payment_intent_id: str,
    amount: int,
    customer_email: str,
    db: Session,
    currency: str = "usd",
    customer_name: Optional[str] = None,
    sport_id: Optional[int] = None,
    team_id: Optional[int] = None,
    subscription_type: Optional[str] = None
) -> ZeusSubscription:
    """Create a pending subscription awaiting payment"""
    subscription = ZeusSubscription(
        subscription_id=subscription_id,
        user_id=user_id,
        payment_intent_id=payment_intent_id,
        amount=amount,
        currency=currency,
        customer_email=customer_email,
        customer_name=customer_name,
        sport_id=sport_id,
        team_id=team_id,
        subscription_type=subscription_type,
        status="pending"
    )
    db.add(subscription)
    db.commit()
    db.refresh(subscription)
    logger.info(f"Zeus subscription created: {subscription_id}")
    return subscription


def get_by_payment_intent(payment_intent_id: str, db: Session) -> Optional[ZeusSubscription]:
    return db.query(ZeusSubscription).filter(
        ZeusSubscription.payment_intent_id == payment_intent_id
    ).first()


def get_by_subscription_id(subscription_id: int, db: Session) -> Optional[ZeusSubscription]:
    return db.query(ZeusSubscription).filter(
        ZeusSubscription.subscription_id == subscription_id
    ).first()


def update_status(
    subscription_id: int,
    status: str,
    db: Session,
    paid_at: Optional[datetime] = None
) -> int:
    """Set the subscription status (and paid_at when given). Returns rows updated."""
    if status not in SUBSCRIPTION_STATUSES:
        raise ValueError(f"Invalid subscription status: {status}")

    values = {"status": status, "updated_at": utc_now()}
    if paid_at:
        values["paid_at"] = paid_at

    updated = db.query(ZeusSubscription).filter(
        ZeusSubscription.subscription_id == subscription_id
    ).update(values, synchronize_session=False)
    db.commit()
    logger.info(f"Zeus subscription {subscription_id} status updated to {status}")
    return updated


def mark_notified(subscription_id: int, db: Session) -> int:
    """Record a successful Zeus notification and count the attempt"""
    now = utc_now()
    updated = db.query(ZeusSubscription).filter(
        ZeusSubscription.subscription_id == subscription_id
    ).update({
        "zeus_notified_at": now,
        "zeus_notification_attempts": ZeusSubscription.zeus_notification_attempts + 1,
        "updated_at": now,
    }, synchronize_session=False)
    db.commit()
    logger.info(f"Zeus subscription {subscription_id} marked as notified")
    return updated
