"""Statement repository - Database operations for owner statements (invoices table)"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import AppSetting
from ...models_invoice import Invoice


class StatementRepository:
    @staticmethod
    def list_for_user(db: Session, user_id: str) -> list[Invoice]:
        return (
            db.query(Invoice)
            .filter(Invoice.user_id == user_id)
            .order_by(Invoice.created_at.desc())
            .all()
        )

    @staticmethod
    def list_all(db: Session, user_id: Optional[str] = None) -> list[Invoice]:
        query = db.query(Invoice)
        if user_id:
            query = query.filter(Invoice.user_id == user_id)
        return query.order_by(Invoice.created_at.desc()).all()

    @staticmethod
    def get(db: Session, invoice_id: str) -> Optional[Invoice]:
        return db.query(Invoice).filter(Invoice.id == invoice_id).first()

    @staticmethod
    def create(db: Session, **data) -> Invoice:
        invoice = Invoice(**data)
        db.add(invoice)
        db.commit()
        db.refresh(invoice)
        return invoice

    @staticmethod
    def delete(db: Session, invoice: Invoice) -> None:
        db.delete(invoice)
        db.commit()

    @staticmethod
    def get_setting(db: Session, key: str) -> Optional[AppSetting]:
        return db.query(AppSetting).filter(AppSetting.key == key).first()
