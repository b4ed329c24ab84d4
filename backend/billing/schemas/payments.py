"""Pydantic schemas for payments"""
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Dict, Optional


class CreatePaymentIntentRequest(BaseModel):
    amount: int = Field(ge=1, strict=True)  # minor units
    currency: str = "usd"
    description: Optional[str] = Field(default=None, max_length=255)
    metadata: Optional[Dict[str, str]] = None
    customer_email: Optional[EmailStr] = None
    customer_name: Optional[str] = None
    save_payment_method: bool = False

    @field_validator("currency")
    @classmethod
    def lowercase_currency(cls, v):
        return v.lower()


class ConfirmPaymentIntentRequest(BaseModel):
    payment_method: str = "pm_card_visa"
