"""Audit trail of received Stripe webhook events"""
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from billing.db.helpers import utc_now
from billing.models.webhook_event import WebhookEvent

logger = logging.getLogger(__name__)


class WebhookAuditStore:
    """Stores raw event envelopes independently of the idempotency ledger.

    Writes on the receive path are best-effort: a failure here is logged and
    never blocks processing of the event.
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock

    def record_received(
        self,
        event_id: str,
        event_type: str,
        data: Dict[str, Any],
        payment_intent_id: Optional[str] = None
    ) -> bool:
        """Insert the audit row with processed=False. Returns False if it was not written."""
        try:
            self.db.add(WebhookEvent(
                id=event_id,
                type=event_type,
                payment_intent_id=payment_intent_id,
                data=data,
                processed=False,
                received_at=self.clock()
            ))
            self.db.commit()
            return True
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"Webhook event {event_id} already recorded in audit trail")
            return False
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to record webhook event {event_id}: {e}", exc_info=True)
            return False

    def mark_processed(self, event_id: str, processing_error: Optional[str] = None) -> bool:
        """Flag the audit row as processed, with the error message if processing failed"""
        webhook_event = self.get(event_id)
        if not webhook_event:
            logger.warning(f"No audit record for webhook event {event_id}, nothing to mark")
            return False
        webhook_event.processed = True
        webhook_event.processed_at = self.clock()
        webhook_event.processing_error = processing_error
        self.db.commit()
        return True

    def get(self, event_id: str) -> Optional[WebhookEvent]:
        return self.db.query(WebhookEvent).filter(WebhookEvent.id == event_id).first()

    def list_unprocessed(self, limit: int = 100, received_before: Optional[datetime] = None) -> List[WebhookEvent]:
        """Events received but never finalized, oldest first.

        received_before excludes recent events that may still be in flight.
        """
        query = self.db.query(WebhookEvent).filter(WebhookEvent.processed == False)  # noqa: E712
        if received_before is not None:
            query = query.filter(WebhookEvent.received_at < received_before)
        return query.order_by(WebhookEvent.received_at.asc()).limit(limit).all()
