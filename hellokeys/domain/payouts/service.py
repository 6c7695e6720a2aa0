"""Payout service - Stripe Connect payouts and their reconciliation with statements"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...services.stripe_service import StripeService, collect_reconcilable_invoice_ids
from .repository import PayoutRepository
from .schemas import PayoutRequest

logger = logging.getLogger(__name__)


class PayoutService:
    def __init__(self, db: Session, stripe: StripeService):
        self.db = db
        self.stripe = stripe
        self.repo = PayoutRepository()

    async def initiate_payout(self, data: PayoutRequest) -> dict:
        """
        Transfer then pay out, and mark the statements as paid.
        Money has already moved when the database update runs, so a database
        failure there is logged for manual correction instead of raised.
        """
        transfer, payout = await self.stripe.transfer_and_payout(
            destination_account_id=data.destination_account_id,
            amount=data.amount,
            currency=data.currency,
            invoice_ids=data.invoice_ids,
            description=data.description,
        )

        try:
            self.repo.mark_transfer_completed(self.db, data.invoice_ids)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.critical(
                f"CRITICAL: Stripe payout succeeded but DB update failed for invoices "
                f"{', '.join(data.invoice_ids)}. Error: {e}"
            )

        return {"success": True, "transfer": transfer, "payout": payout}

    async def reconcile_transfers(self) -> dict:
        """Mark statements paid for every non-reversed recent transfer that references them"""
        transfers = await self.stripe.list_recent_transfers(limit=100)
        invoice_ids = collect_reconcilable_invoice_ids(transfers)
        if not invoice_ids:
            return {"updatedCount": 0, "message": "No transfers found with reconciliation metadata."}

        pending = self.repo.find_uncompleted(self.db, sorted(invoice_ids))
        if not pending:
            return {
                "updatedCount": 0,
                "message": "All relevant invoices are already marked as completed.",
            }

        pending_ids = [invoice.id for invoice in pending]
        self.repo.mark_transfer_completed(self.db, pending_ids)
        logger.info(f"🔁 Reconciled {len(pending_ids)} statements with Stripe transfers")
        return {"updatedCount": len(pending_ids)}
