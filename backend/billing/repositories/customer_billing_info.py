"""Customer billing info (contact and address) mirrored from Stripe customers.

Two write paths with different authority:
- ensure_exists_from_stripe: insert if absent, never overwrite (payment flows)
- update_from_stripe: Stripe is authoritative, overwrite every field (customer webhooks)
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from billing.db.helpers import dialect_insert, utc_now
from billing.models.customer_billing_info import CustomerBillingInfo
from billing.utils.stripe_objects import get_stripe_value

logger = logging.getLogger(__name__)

MERGED_FIELDS = (
    "email", "name", "address_line_1", "address_line_2",
    "city", "state", "postal_code", "country",
)


def map_stripe_customer(customer: Any) -> Dict[str, Any]:
    """Map a Stripe Customer to customer_billing_info column values"""
    address = get_stripe_value(customer, "address")
    return {
        "customer_id": get_stripe_value(customer, "id"),
        "email": get_stripe_value(customer, "email", ""),
        "name": get_stripe_value(customer, "name", ""),
        "address_line_1": get_stripe_value(address, "line1") or None,
        "address_line_2": get_stripe_value(address, "line2") or None,
        "city": get_stripe_value(address, "city") or None,
        "state": get_stripe_value(address, "state") or None,
        "postal_code": get_stripe_value(address, "postal_code") or None,
        "country": get_stripe_value(address, "country") or None,
    }


def ensure_exists_from_stripe(customer: Any, db: Session) -> bool:
    """Insert billing info if the customer is unknown. Returns True if a row was inserted."""
    record = map_stripe_customer(customer)
    now = utc_now()
    stmt = dialect_insert(db, CustomerBillingInfo).values(
        **record, created_at=now, updated_at=now
    ).on_conflict_do_nothing(index_elements=["customer_id"])

    result = db.execute(stmt)
    db.commit()
    return result.rowcount == 1


def update_from_stripe(customer: Any, db: Session) -> None:
    """Authoritative merge: every mapped field is overwritten with Stripe's value"""
    record = map_stripe_customer(customer)
    now = utc_now()
    stmt = dialect_insert(db, CustomerBillingInfo).values(**record, created_at=now, updated_at=now)
    update_fields = {field: stmt.excluded[field] for field in MERGED_FIELDS}
    update_fields["updated_at"] = stmt.excluded.updated_at
    stmt = stmt.on_conflict_do_update(index_elements=["customer_id"], set_=update_fields)

    db.execute(stmt)
    db.commit()
    logger.info(f"Customer billing info updated from Stripe: {record['customer_id']}")


def get_billing_info(customer_id: str, db: Session) -> Optional[CustomerBillingInfo]:
    return db.query(CustomerBillingInfo).filter(
        CustomerBillingInfo.customer_id == customer_id
    ).first()
