"""Payments API routes"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from billing.db.session import get_db
from billing.schemas.payments import ConfirmPaymentIntentRequest, CreatePaymentIntentRequest
from billing.services import payment_service

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])
logger = logging.getLogger(__name__)


@router.post("/intent")
def create_payment_intent(request: CreatePaymentIntentRequest, db: Session = Depends(get_db)):
    """Create a payment intent, optionally for a (found or created) Stripe customer"""
    try:
        return payment_service.create_payment_intent(
            request.amount,
            db,
            currency=request.currency,
            description=request.description,
            metadata=request.metadata,
            customer_email=request.customer_email,
            customer_name=request.customer_name,
            save_payment_method=request.save_payment_method
        )
    except Exception as e:
        logger.error(f"Failed to create payment intent: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Failed to create payment intent"})


@router.post("/intent/{payment_intent_id}/confirm")
def confirm_payment_intent(
    payment_intent_id: str,
    request: Optional[ConfirmPaymentIntentRequest] = None,
    db: Session = Depends(get_db)
):
    """Confirm a payment intent (test card by default)"""
    try:
        payment_method = request.payment_method if request else "pm_card_visa"
        return payment_service.confirm_payment_intent(payment_intent_id, db, payment_method)
    except Exception as e:
        logger.error(f"Failed to confirm payment intent {payment_intent_id}: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Failed to confirm payment intent"})
