"""Stripe Connect payout schemas"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email


class StripeAccountCreate(BaseModel):
    email: str
    country: str = Field(..., min_length=2, max_length=2)

    @field_validator("email")
    @classmethod
    def validate_account_email(cls, v):
        if not v or not v.strip():
            raise ValueError("L'email et le pays sont requis.")
        return validate_email(v)

    @field_validator("country")
    @classmethod
    def upper_country(cls, v):
        return v.upper()


class AccountLinkCreate(BaseModel):
    account_id: str = Field(..., min_length=1)
    refresh_url: Optional[str] = None
    return_url: Optional[str] = None


class PayoutRequest(BaseModel):
    destination_account_id: str = Field(..., min_length=1)
    amount: int = Field(..., gt=0)  # smallest currency unit
    currency: str = Field(..., min_length=3, max_length=3)
    invoice_ids: list[str] = Field(..., min_length=1)
    description: Optional[str] = None

    @field_validator("currency")
    @classmethod
    def lower_currency(cls, v):
        return v.lower()


class PayoutResponse(BaseModel):
    success: bool
    transfer: dict
    payout: dict


class ReconcileResponse(BaseModel):
    updatedCount: int
    message: Optional[str] = None
