"""Statement service - Owner statements and their email delivery"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ... import email_service
from ...auth import ADMIN_ROLE
from ...config import STATEMENTS_BUCKET
from ...models import Profile
from ...models_invoice import Invoice
from ...services.notification_service import create_notification
from ...utils import storage
from .repository import StatementRepository
from .schemas import StatementCreate

logger = logging.getLogger(__name__)


class StatementService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = StatementRepository()

    def list_own(self, user: Profile) -> list[Invoice]:
        return self.repo.list_for_user(self.db, user.id)

    def list_all(self, user_id: Optional[str] = None) -> list[Invoice]:
        return self.repo.list_all(self.db, user_id)

    def get(self, invoice_id: str) -> Invoice:
        invoice = self.repo.get(self.db, invoice_id)
        if not invoice:
            raise HTTPException(status_code=404, detail="Facture non trouvée")
        return invoice

    def create(self, data: StatementCreate) -> Invoice:
        owner = self.db.query(Profile).filter(Profile.id == data.user_id).first()
        if not owner:
            raise HTTPException(status_code=404, detail="Utilisateur introuvable.")
        invoice = self.repo.create(self.db, **data.model_dump())
        logger.info(f"🧾 Statement {invoice.id} created for user {data.user_id} ({data.period})")
        return invoice

    def delete(self, invoice_id: str) -> None:
        invoice = self.get(invoice_id)
        self.repo.delete(self.db, invoice)
        logger.info(f"🗑️ Statement {invoice_id} deleted")

    def download_url(self, invoice_id: str, user: Profile) -> str:
        invoice = self.get(invoice_id)
        if invoice.user_id != user.id and user.role != ADMIN_ROLE:
            raise HTTPException(status_code=403, detail="Accès non autorisé.")
        if not invoice.pdf_path:
            raise HTTPException(status_code=404, detail="Aucun PDF pour ce relevé.")
        url = storage.generate_presigned_url(STATEMENTS_BUCKET, invoice.pdf_path)
        if not url:
            raise HTTPException(status_code=500, detail="Impossible de générer l'URL signée pour le PDF")
        return url

    async def send_statement_email(self, invoice_id: str, pdf_path: Optional[str] = None) -> None:
        """
        Email the owner a signed link to their statement PDF and leave an
        in-app notification pointing to the finances page.
        """
        invoice = self.get(invoice_id)
        pdf_path = pdf_path or invoice.pdf_path
        if not pdf_path:
            raise HTTPException(status_code=400, detail="invoiceId et pdfPath sont requis")

        owner = invoice.profile
        if not owner or not owner.email:
            raise HTTPException(
                status_code=400,
                detail=f"E-mail de l'utilisateur non trouvé pour user_id: {invoice.user_id}",
            )

        pdf_link = storage.generate_presigned_url(STATEMENTS_BUCKET, pdf_path)
        if not pdf_link:
            raise HTTPException(status_code=500, detail="Impossible de générer l'URL signée pour le PDF")

        setting = self.repo.get_setting(self.db, email_service.STATEMENT_TEMPLATE_KEY)
        template = setting.value if setting and isinstance(setting.value, dict) else None
        subject, html_body = email_service.render_statement_email(
            template,
            user_name=owner.first_name or "Client",
            period=invoice.period,
            pdf_link=pdf_link,
        )

        await email_service.send_email(owner.email, subject, html_body)
        logger.info(f"📧 Statement {invoice.id} emailed to user {invoice.user_id}")

        create_notification(
            self.db,
            invoice.user_id,
            f'Votre relevé pour la période "{invoice.period}" vous a été envoyé par email.',
            link="/finances",
        )
