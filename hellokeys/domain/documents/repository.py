"""Document repository - metadata rows for files kept in object storage"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Document


class DocumentRepository:
    @staticmethod
    def list_for_user(db: Session, user_id: str) -> list[Document]:
        return (
            db.query(Document)
            .filter(Document.user_id == user_id)
            .order_by(Document.created_at.desc())
            .all()
        )

    @staticmethod
    def get(db: Session, document_id: str) -> Optional[Document]:
        return db.query(Document).filter(Document.id == document_id).first()

    @staticmethod
    def create(db: Session, **data) -> Document:
        document = Document(**data)
        db.add(document)
        db.commit()
        db.refresh(document)
        return document

    @staticmethod
    def delete(db: Session, document: Document) -> None:
        db.delete(document)
        db.commit()
