"""Saved customer payment methods (display metadata only)"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from billing.core.exceptions import PaymentMethodMappingError
from billing.db.helpers import dialect_insert, utc_now
from billing.models.customer_payment_method import CustomerPaymentMethod
from billing.utils.stripe_objects import extract_id, get_stripe_value

logger = logging.getLogger(__name__)


def map_stripe_payment_method(payment_method: Any, customer_id: Optional[str] = None) -> Dict[str, Any]:
    """Map a Stripe PaymentMethod to customer_payment_methods column values.

    The customer comes from customer_id if given, otherwise from the payment
    method itself. Raises PaymentMethodMappingError if neither resolves.
    """
    payment_method_id = get_stripe_value(payment_method, "id")
    resolved_customer_id = customer_id or extract_id(get_stripe_value(payment_method, "customer"))
    if not resolved_customer_id:
        logger.error(f"Could not determine customer ID for payment method {payment_method_id}")
        raise PaymentMethodMappingError(
            f"Customer ID is required to save payment method {payment_method_id}"
        )

    pm_type = get_stripe_value(payment_method, "type")
    record = {
        "customer_id": resolved_customer_id,
        "payment_method_id": payment_method_id,
        "type": pm_type,
        "is_default": False,
    }

    card = get_stripe_value(payment_method, "card")
    if pm_type == "card" and card:
        record["card_brand"] = get_stripe_value(card, "brand")
        record["card_last4"] = get_stripe_value(card, "last4")
        record["card_exp_month"] = get_stripe_value(card, "exp_month")
        record["card_exp_year"] = get_stripe_value(card, "exp_year")
        record["card_funding"] = get_stripe_value(card, "funding")

    bank_account = get_stripe_value(payment_method, "us_bank_account")
    if pm_type == "us_bank_account" and bank_account:
        record["bank_name"] = get_stripe_value(bank_account, "bank_name")
        record["bank_last4"] = get_stripe_value(bank_account, "last4")

    sepa_debit = get_stripe_value(payment_method, "sepa_debit")
    if pm_type == "sepa_debit" and sepa_debit:
        record["bank_last4"] = get_stripe_value(sepa_debit, "last4")
        record["mandate_id"] = extract_id(get_stripe_value(sepa_debit, "mandate"))

    return record


def upsert_from_stripe_payment_method(
    payment_method: Any,
    db: Session,
    customer_id: Optional[str] = None
) -> Dict[str, Any]:
    """Insert or refresh a saved payment method by payment_method_id"""
    record = map_stripe_payment_method(payment_method, customer_id)
    now = utc_now()
    stmt = dialect_insert(db, CustomerPaymentMethod).values(**record, created_at=now, updated_at=now)
    update_fields = {key: stmt.excluded[key] for key in record if key != "payment_method_id"}
    update_fields["updated_at"] = stmt.excluded.updated_at
    stmt = stmt.on_conflict_do_update(index_elements=["payment_method_id"], set_=update_fields)

    db.execute(stmt)
    db.commit()
    logger.info(
        f"Upserted payment method {record['payment_method_id']} "
        f"for customer {record['customer_id']} ({record['type']})"
    )
    return record


def list_by_customer(customer_id: str, db: Session) -> List[CustomerPaymentMethod]:
    """Default method first, then newest first"""
    return db.query(CustomerPaymentMethod).filter(
        CustomerPaymentMethod.customer_id == customer_id
    ).order_by(
        CustomerPaymentMethod.is_default.desc(),
        CustomerPaymentMethod.created_at.desc()
    ).all()


def remove(payment_method_id: str, db: Session) -> int:
    deleted = db.query(CustomerPaymentMethod).filter(
        CustomerPaymentMethod.payment_method_id == payment_method_id
    ).delete(synchronize_session=False)
    db.commit()
    return deleted
