"""Stripe router - admin-only Stripe Connect operations"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin
from ...database import get_db
from ...models import Profile
from ...services.stripe_service import StripeService
from .schemas import (
    AccountLinkCreate,
    PayoutRequest,
    PayoutResponse,
    ReconcileResponse,
    StripeAccountCreate,
)
from .service import PayoutService

router = APIRouter(prefix="/stripe", tags=["Stripe"])


def get_stripe_service() -> StripeService:
    return StripeService()


def get_payout_service(
    db: Session = Depends(get_db),
    stripe: StripeService = Depends(get_stripe_service),
) -> PayoutService:
    return PayoutService(db, stripe)


@router.get("/payment-intents")
async def list_payment_intents(
    id: Optional[str] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    _admin: Profile = Depends(get_current_admin),
    stripe: StripeService = Depends(get_stripe_service),
):
    return await stripe.list_payment_intents(payment_intent_id=id, limit=limit)


@router.get("/accounts")
async def list_accounts(
    _admin: Profile = Depends(get_current_admin),
    stripe: StripeService = Depends(get_stripe_service),
):
    return await stripe.list_accounts()


@router.get("/accounts/{account_id}")
async def get_account(
    account_id: str,
    _admin: Profile = Depends(get_current_admin),
    stripe: StripeService = Depends(get_stripe_service),
):
    return await stripe.get_account(account_id)


@router.post("/accounts")
async def create_account(
    data: StripeAccountCreate,
    _admin: Profile = Depends(get_current_admin),
    stripe: StripeService = Depends(get_stripe_service),
):
    return await stripe.create_express_account(data.email, data.country)


@router.post("/account-links")
async def create_account_link(
    data: AccountLinkCreate,
    _admin: Profile = Depends(get_current_admin),
    stripe: StripeService = Depends(get_stripe_service),
):
    return await stripe.create_account_link(data.account_id, data.refresh_url, data.return_url)


@router.post("/payouts", response_model=PayoutResponse)
async def initiate_payout(
    data: PayoutRequest,
    _admin: Profile = Depends(get_current_admin),
    service: PayoutService = Depends(get_payout_service),
):
    return await service.initiate_payout(data)


@router.post("/reconcile", response_model=ReconcileResponse, response_model_exclude_none=True)
async def reconcile_transfers(
    _admin: Profile = Depends(get_current_admin),
    service: PayoutService = Depends(get_payout_service),
):
    return await service.reconcile_transfers()
