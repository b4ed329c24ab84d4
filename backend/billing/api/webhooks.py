"""Stripe webhook API routes"""
import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from billing.core.exceptions import WebhookConfigurationError, WebhookVerificationError
from billing.db.session import get_db
from billing.services.webhook_service import get_webhook_stats, process_stripe_webhook

router = APIRouter(prefix="/api/v1/webhooks", tags=["webhooks"])
logger = logging.getLogger(__name__)


@router.post("/stripe")
async def stripe_webhook(request: Request, db: Session = Depends(get_db)):
    """Handle Stripe webhook events

    Note: the body must reach this route as raw bytes for signature verification.
    Processing runs in the threadpool and finishes even if Stripe disconnects.
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")

    try:
        outcome = await run_in_threadpool(process_stripe_webhook, payload, sig_header, db)
    except WebhookConfigurationError:
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
    except WebhookVerificationError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})

    if outcome.status == "duplicate":
        return {"message": "Event already processed"}
    if outcome.failed:
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
    return {"message": "Webhook received"}


@router.get("/stats")
def webhook_stats(db: Session = Depends(get_db)):
    """Idempotency ledger counters"""
    return get_webhook_stats(db)
