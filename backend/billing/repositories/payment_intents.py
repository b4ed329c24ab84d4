"""Local mirror of Stripe PaymentIntents"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from billing.db.helpers import dialect_insert, utc_now
from billing.models.payment_intent import PaymentIntent
from billing.utils.stripe_objects import extract_id, get_stripe_value, to_plain_dict

logger = logging.getLogger(__name__)

# Optional Stripe fields copied only when Stripe actually sent them, so a
# sparse payload never blanks out a previously mirrored value
OPTIONAL_FIELDS = ("description", "client_secret", "created")


def map_stripe_payment_intent(payment_intent: Any) -> Dict[str, Any]:
    """Map a Stripe PaymentIntent (object or dict) to payment_intents column values"""
    record = {
        "id": get_stripe_value(payment_intent, "id"),
        "amount": get_stripe_value(payment_intent, "amount"),
        "currency": get_stripe_value(payment_intent, "currency"),
        "status": get_stripe_value(payment_intent, "status"),
    }

    customer_id = extract_id(get_stripe_value(payment_intent, "customer"))
    if customer_id:
        record["customer_id"] = customer_id

    for field in OPTIONAL_FIELDS:
        value = get_stripe_value(payment_intent, field)
        if value is not None:
            record[field] = value

    metadata = get_stripe_value(payment_intent, "metadata")
    if metadata is not None:
        record["metadata_"] = to_plain_dict(metadata)

    payment_method_id = extract_id(get_stripe_value(payment_intent, "payment_method"))
    if payment_method_id:
        record["payment_method"] = payment_method_id

    return record


def payment_intent_to_dict(payment_intent: PaymentIntent) -> Dict[str, Any]:
    """Serialize a mirrored payment intent for API responses"""
    return {
        "id": payment_intent.id,
        "amount": payment_intent.amount,
        "currency": payment_intent.currency,
        "status": payment_intent.status,
        "customer_id": payment_intent.customer_id,
        "description": payment_intent.description,
        "metadata": payment_intent.metadata_ or {},
        "client_secret": payment_intent.client_secret,
        "created": payment_intent.created,
        "payment_method": payment_intent.payment_method,
    }


def upsert_payment_intent(record: Dict[str, Any], db: Session) -> None:
    """Insert or update a mirrored payment intent by id.

    Only the keys present in record are overwritten on conflict.
    """
    now = utc_now()
    stmt = dialect_insert(db, PaymentIntent).values(**record, created_at=now, updated_at=now)
    update_fields = {key: stmt.excluded[key] for key in record if key != "id"}
    update_fields["updated_at"] = stmt.excluded.updated_at
    stmt = stmt.on_conflict_do_update(index_elements=["id"], set_=update_fields)

    db.execute(stmt)
    db.commit()
    logger.info(f"Payment intent upserted: {record['id']} ({record.get('status')})")


def upsert_from_stripe(payment_intent: Any, db: Session) -> Dict[str, Any]:
    """Map and upsert in one step. Returns the mapped record."""
    record = map_stripe_payment_intent(payment_intent)
    upsert_payment_intent(record, db)
    return record


def get_payment_intent(payment_intent_id: str, db: Session) -> Optional[PaymentIntent]:
    return db.query(PaymentIntent).filter(PaymentIntent.id == payment_intent_id).first()


def list_by_customer(customer_id: str, db: Session, limit: int = 50, offset: int = 0) -> List[PaymentIntent]:
    return db.query(PaymentIntent).filter(
        PaymentIntent.customer_id == customer_id
    ).order_by(PaymentIntent.created_at.desc()).limit(limit).offset(offset).all()


def list_by_status(status: str, db: Session, limit: int = 50, offset: int = 0) -> List[PaymentIntent]:
    return db.query(PaymentIntent).filter(
        PaymentIntent.status == status
    ).order_by(PaymentIntent.created_at.desc()).limit(limit).offset(offset).all()


def list_all(db: Session, limit: int = 50, offset: int = 0) -> List[PaymentIntent]:
    return db.query(PaymentIntent).order_by(
        PaymentIntent.created_at.desc()
    ).limit(limit).offset(offset).all()
