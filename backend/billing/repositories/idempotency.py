"""Idempotency ledger for Stripe webhook events

One row per event id in processed_billing_events. The unique constraint on
event_id is what makes processing exclusive: whoever inserts the row first
owns the event, everyone else sees "already processed".
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from billing.db.helpers import dialect_insert, utc_now
from billing.models.processed_billing_event import ProcessedBillingEvent

logger = logging.getLogger(__name__)


class IdempotencyLedger:
    """Durable record of which webhook events have been handled"""

    def __init__(self, db: Session, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock

    def has_processed(self, event_id: str) -> bool:
        """True if any ledger row exists for the event, whatever its outcome"""
        return self.get(event_id) is not None

    def get(self, event_id: str) -> Optional[ProcessedBillingEvent]:
        return self.db.query(ProcessedBillingEvent).filter(
            ProcessedBillingEvent.event_id == event_id
        ).first()

    def claim(self, event_id: str, event_type: str, payment_intent_id: Optional[str] = None) -> bool:
        """Atomically reserve an event id before any side effect runs.

        Returns False when another delivery already holds the row. The claim
        row keeps success=NULL until mark_processed() records the outcome.
        """
        now = self.clock()
        stmt = dialect_insert(self.db, ProcessedBillingEvent).values(
            event_id=event_id,
            event_type=event_type,
            payment_intent_id=payment_intent_id,
            success=None,
            processed_at=now,
            created_at=now,
            updated_at=now,
        ).on_conflict_do_nothing(index_elements=["event_id"])

        result = self.db.execute(stmt)
        self.db.commit()

        claimed = result.rowcount == 1
        if not claimed:
            logger.info(f"Event {event_id} already claimed, skipping")
        return claimed

    def mark_processed(
        self,
        event_id: str,
        event_type: str,
        success: bool = True,
        payment_intent_id: Optional[str] = None,
        error: Optional[str] = None
    ) -> None:
        """Record the outcome for an event (insert or overwrite by event id)"""
        now = self.clock()
        stmt = dialect_insert(self.db, ProcessedBillingEvent).values(
            event_id=event_id,
            event_type=event_type,
            payment_intent_id=payment_intent_id,
            success=success,
            error_message=error,
            processed_at=now,
            created_at=now,
            updated_at=now,
        )
        # ON CONFLICT bypasses onupdate, so updated_at is set explicitly
        stmt = stmt.on_conflict_do_update(
            index_elements=["event_id"],
            set_={
                "event_type": stmt.excluded.event_type,
                "payment_intent_id": func.coalesce(
                    stmt.excluded.payment_intent_id, ProcessedBillingEvent.payment_intent_id
                ),
                "success": stmt.excluded.success,
                "error_message": stmt.excluded.error_message,
                "processed_at": stmt.excluded.processed_at,
                "updated_at": stmt.excluded.updated_at,
            }
        )
        self.db.execute(stmt)
        self.db.commit()

    def release(self, event_id: str) -> bool:
        """Delete the ledger row so an operator can deliberately reprocess the event"""
        deleted = self.db.query(ProcessedBillingEvent).filter(
            ProcessedBillingEvent.event_id == event_id
        ).delete(synchronize_session=False)
        self.db.commit()
        if deleted:
            logger.info(f"Released ledger entry for event {event_id}")
        return deleted > 0

    def cleanup(self, max_age_hours: int = 24, now: Optional[datetime] = None) -> int:
        """Delete ledger rows older than max_age_hours. Returns the number deleted."""
        cutoff = (now or self.clock()) - timedelta(hours=max_age_hours)
        deleted = self.db.query(ProcessedBillingEvent).filter(
            ProcessedBillingEvent.processed_at < cutoff
        ).delete(synchronize_session=False)
        self.db.commit()
        logger.info(f"Cleaned up {deleted} processed events older than {max_age_hours}h")
        return deleted

    def get_stats(self) -> Dict[str, int]:
        """Counts of finalized events. Claims still in flight (success NULL) are excluded."""
        total = self.db.query(func.count(ProcessedBillingEvent.id)).filter(
            ProcessedBillingEvent.success.isnot(None)
        ).scalar() or 0
        failed = self.db.query(func.count(ProcessedBillingEvent.id)).filter(
            ProcessedBillingEvent.success.is_(False)
        ).scalar() or 0
        return {"total_processed": total, "failed_count": failed}
