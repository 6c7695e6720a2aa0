"""
Document service
Files live in the private documents bucket; the database only keeps metadata.
Storage and database are kept consistent by compensating on failure.
"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...auth import ADMIN_ROLE
from ...config import DOCUMENTS_BUCKET
from ...models import Document, Profile
from ...utils import storage
from .repository import DocumentRepository

logger = logging.getLogger(__name__)


class DocumentService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = DocumentRepository()

    def list_documents(self, user_id: str) -> list[Document]:
        return self.repo.list_for_user(self.db, user_id)

    def get_document(self, document_id: str) -> Document:
        document = self.repo.get(self.db, document_id)
        if not document:
            raise HTTPException(status_code=404, detail="Document introuvable.")
        return document

    def upload_document(
        self,
        user_id: str,
        filename: str,
        content: bytes,
        content_type: Optional[str],
        name: Optional[str] = None,
        description: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Document:
        """Upload to storage first, then insert the row; remove the object if the insert fails"""
        if not content:
            raise HTTPException(status_code=400, detail="Le fichier est vide.")
        if len(content) > storage.MAX_DOCUMENT_SIZE_BYTES:
            raise HTTPException(status_code=413, detail="Le fichier est trop volumineux (20 Mo maximum).")
        if not self.db.query(Profile).filter(Profile.id == user_id).first():
            raise HTTPException(status_code=404, detail="Utilisateur introuvable.")

        key = storage.build_document_key(user_id, filename)
        if not storage.upload_object(DOCUMENTS_BUCKET, key, content, content_type):
            raise HTTPException(status_code=502, detail="Échec du téléversement du fichier.")

        try:
            document = self.repo.create(
                self.db,
                user_id=user_id,
                name=name or filename,
                description=description,
                file_path=key,
                file_size=len(content),
                file_type=content_type,
                category=category,
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Document insert failed for {key}, removing stored object: {e}")
            storage.delete_object(DOCUMENTS_BUCKET, key)
            raise HTTPException(status_code=500, detail="Impossible d'enregistrer le document.") from e

        logger.info(f"📄 Document {document.id} uploaded for user {user_id}")
        return document

    def delete_document(self, document_id: str) -> None:
        """Delete the row, then the stored object; a storage failure is only logged"""
        document = self.get_document(document_id)
        file_path = document.file_path
        self.repo.delete(self.db, document)

        if not storage.delete_object(DOCUMENTS_BUCKET, file_path):
            logger.warning(f"⚠️ Document {document_id} deleted but storage object {file_path} remains")

    def download_url(self, document_id: str, user: Profile) -> str:
        document = self.get_document(document_id)
        if document.user_id != user.id and user.role != ADMIN_ROLE:
            raise HTTPException(status_code=403, detail="Accès non autorisé.")
        url = storage.generate_presigned_url(DOCUMENTS_BUCKET, document.file_path)
        if not url:
            raise HTTPException(status_code=500, detail="Impossible de générer le lien de téléchargement.")
        return url
