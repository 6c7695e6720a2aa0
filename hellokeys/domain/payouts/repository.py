"""Payout repository - transfer tracking on owner statements"""

from sqlalchemy.orm import Session

from ...models_invoice import Invoice


class PayoutRepository:
    @staticmethod
    def find_uncompleted(db: Session, invoice_ids: list[str]) -> list[Invoice]:
        if not invoice_ids:
            return []
        return (
            db.query(Invoice)
            .filter(Invoice.id.in_(invoice_ids), Invoice.transfer_completed.is_(False))
            .all()
        )

    @staticmethod
    def mark_transfer_completed(db: Session, invoice_ids: list[str]) -> int:
        updated = (
            db.query(Invoice)
            .filter(Invoice.id.in_(invoice_ids))
            .update({Invoice.transfer_completed: True}, synchronize_session=False)
        )
        db.commit()
        return updated
