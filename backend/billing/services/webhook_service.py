"""Stripe webhook ingestion: verification, idempotency, dispatch and finalization"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from billing.core.exceptions import WebhookConfigurationError, WebhookHandlerError, WebhookVerificationError
from billing.core.logging import webhook_logger
from billing.core.metrics import webhook_events_counter
from billing.db.helpers import utc_now
from billing.repositories.idempotency import IdempotencyLedger
from billing.repositories.webhook_events import WebhookAuditStore
from billing.services import customer_service, payment_service, stripe_service
from billing.services.notification_service import ZeusNotificationClient, get_zeus_notifier
from billing.utils.stripe_objects import extract_id, get_stripe_value, to_plain_dict

logger = logging.getLogger(__name__)


class StripeEventType(str, Enum):
    """Stripe event types this service knows about"""
    PAYMENT_INTENT_CREATED = "payment_intent.created"
    PAYMENT_INTENT_SUCCEEDED = "payment_intent.succeeded"
    PAYMENT_INTENT_PAYMENT_FAILED = "payment_intent.payment_failed"
    PAYMENT_INTENT_CANCELED = "payment_intent.canceled"
    CUSTOMER_CREATED = "customer.created"
    CUSTOMER_UPDATED = "customer.updated"
    SETUP_INTENT_SUCCEEDED = "setup_intent.succeeded"
    PAYMENT_METHOD_ATTACHED = "payment_method.attached"
    PAYMENT_METHOD_DETACHED = "payment_method.detached"


Handler = Callable[[Any, Session, ZeusNotificationClient], None]

HANDLERS: Dict[StripeEventType, Handler] = {
    StripeEventType.PAYMENT_INTENT_CREATED: payment_service.handle_payment_intent_created,
    StripeEventType.PAYMENT_INTENT_SUCCEEDED: payment_service.handle_payment_intent_succeeded,
    StripeEventType.PAYMENT_INTENT_PAYMENT_FAILED: payment_service.handle_payment_intent_failed,
    StripeEventType.PAYMENT_INTENT_CANCELED: payment_service.handle_payment_intent_canceled,
    StripeEventType.CUSTOMER_CREATED: customer_service.handle_customer_updated,
    StripeEventType.CUSTOMER_UPDATED: customer_service.handle_customer_updated,
    StripeEventType.SETUP_INTENT_SUCCEEDED: customer_service.handle_setup_intent_succeeded,
    StripeEventType.PAYMENT_METHOD_DETACHED: customer_service.handle_payment_method_detached,
}

# Logged but otherwise untouched
OBSERVED_EVENT_TYPES = frozenset({StripeEventType.PAYMENT_METHOD_ATTACHED})
OBSERVED_PREFIXES = ("charge.", "invoice.", "customer.subscription.")


@dataclass
class WebhookOutcome:
    """Result of running one event through the pipeline.

    status is one of "processed", "duplicate" or "failed".
    """
    status: str
    event_id: str
    event_type: str
    error: Optional[WebhookHandlerError] = None

    @property
    def failed(self) -> bool:
        return self.status == "failed"


def _payment_intent_id_for(event_type: str, obj: Any) -> Optional[str]:
    if event_type.startswith("payment_intent."):
        return extract_id(obj)
    return extract_id(get_stripe_value(obj, "payment_intent"))


class WebhookDispatcher:
    """Routes verified Stripe events to their handlers exactly once per event id"""

    def __init__(
        self,
        db: Session,
        ledger: Optional[IdempotencyLedger] = None,
        audit: Optional[WebhookAuditStore] = None,
        notifier: Optional[ZeusNotificationClient] = None,
        handlers: Optional[Dict[StripeEventType, Handler]] = None
    ):
        self.db = db
        self.ledger = ledger or IdempotencyLedger(db)
        self.audit = audit or WebhookAuditStore(db)
        self.notifier = notifier or get_zeus_notifier()
        self.handlers = HANDLERS if handlers is None else handlers
        self._validate_handlers()

    def _validate_handlers(self) -> None:
        unknown = [key for key in self.handlers if not isinstance(key, StripeEventType)]
        if unknown:
            raise ValueError(f"Handlers registered for unknown event types: {unknown}")
        unhandled = [
            event_type.value for event_type in StripeEventType
            if event_type not in self.handlers and event_type not in OBSERVED_EVENT_TYPES
        ]
        if unhandled:
            raise ValueError(f"Event types with no handler and not marked observed: {unhandled}")

    def resolve(self, event_type: str) -> Optional[Handler]:
        try:
            return self.handlers.get(StripeEventType(event_type))
        except ValueError:
            return None

    def is_observed(self, event_type: str) -> bool:
        if event_type in {observed.value for observed in OBSERVED_EVENT_TYPES}:
            return True
        return event_type.startswith(OBSERVED_PREFIXES)

    def dispatch(self, event_id: str, event_type: str, obj: Any) -> None:
        """Run the handler for one event.

        Raises:
            WebhookHandlerError: the handler raised
        """
        handler = self.resolve(event_type)
        if handler is None:
            if self.is_observed(event_type):
                webhook_logger.info(f"Observed event {event_id} ({event_type}), no action taken")
            else:
                webhook_logger.info(f"Ignoring unhandled event type {event_type} ({event_id})")
            return

        try:
            handler(obj, self.db, self.notifier)
        except Exception as e:
            raise WebhookHandlerError(event_id, event_type, e) from e

    def process(self, event: Any, record_audit: bool = True) -> WebhookOutcome:
        """Claim, audit, dispatch and finalize a verified event"""
        event_id = get_stripe_value(event, "id")
        event_type = get_stripe_value(event, "type")
        obj = get_stripe_value(get_stripe_value(event, "data"), "object", {})
        payment_intent_id = _payment_intent_id_for(event_type, obj)

        if self.ledger.has_processed(event_id) or not self.ledger.claim(event_id, event_type, payment_intent_id):
            webhook_logger.info(f"Event already processed: {event_id}")
            webhook_events_counter.labels(event_type=event_type, outcome="duplicate").inc()
            return WebhookOutcome("duplicate", event_id, event_type)

        if record_audit:
            self.audit.record_received(event_id, event_type, to_plain_dict(event), payment_intent_id)

        try:
            self.dispatch(event_id, event_type, obj)
        except WebhookHandlerError as error:
            webhook_logger.error(f"Error processing webhook {event_id}: {error}", exc_info=True)
            # A failed flush leaves the session unusable until rolled back
            self.db.rollback()
            self._finalize(event_id, event_type, payment_intent_id, error=error.message)
            webhook_events_counter.labels(event_type=event_type, outcome="failed").inc()
            return WebhookOutcome("failed", event_id, event_type, error=error)

        self._finalize(event_id, event_type, payment_intent_id)
        webhook_events_counter.labels(event_type=event_type, outcome="received").inc()
        webhook_logger.info(f"Successfully processed webhook event {event_id} of type {event_type}")
        return WebhookOutcome("processed", event_id, event_type)

    def _finalize(
        self,
        event_id: str,
        event_type: str,
        payment_intent_id: Optional[str],
        error: Optional[str] = None
    ) -> None:
        try:
            self.audit.mark_processed(event_id, processing_error=error)
            self.ledger.mark_processed(
                event_id,
                event_type,
                success=error is None,
                payment_intent_id=payment_intent_id,
                error=error
            )
        except Exception as e:
            self.db.rollback()
            webhook_logger.error(f"Failed to finalize webhook event {event_id}: {e}", exc_info=True)


def process_stripe_webhook(
    payload: bytes,
    sig_header: Optional[str],
    db: Session,
    notifier: Optional[ZeusNotificationClient] = None
) -> WebhookOutcome:
    """Verify and process one Stripe webhook delivery.

    Raises:
        WebhookVerificationError: missing header, bad signature or malformed body
        WebhookConfigurationError: webhook secret not configured
    """
    try:
        event = stripe_service.construct_event(payload, sig_header)
    except (WebhookVerificationError, WebhookConfigurationError):
        webhook_events_counter.labels(event_type="unknown", outcome="rejected").inc()
        raise

    webhook_logger.info(f"Event constructed: {get_stripe_value(event, 'id')} ({get_stripe_value(event, 'type')})")
    return WebhookDispatcher(db, notifier=notifier).process(event)


def replay_webhook_event(
    event_id: str,
    db: Session,
    notifier: Optional[ZeusNotificationClient] = None
) -> WebhookOutcome:
    """Re-run a previously received event from its audited payload.

    The payload was verified when first received, so no signature check.
    Raises LookupError if the event was never recorded.
    """
    dispatcher = WebhookDispatcher(db, notifier=notifier)
    webhook_event = dispatcher.audit.get(event_id)
    if not webhook_event:
        raise LookupError(f"Webhook event {event_id} not found in audit trail")

    dispatcher.ledger.release(event_id)
    logger.info(f"Replaying webhook event {event_id} ({webhook_event.type})")
    return dispatcher.process(webhook_event.data, record_audit=False)


def get_webhook_stats(db: Session) -> Dict[str, Any]:
    return {
        "idempotency": IdempotencyLedger(db).get_stats(),
        "timestamp": utc_now().isoformat(),
    }
