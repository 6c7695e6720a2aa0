"""Document router - owner documents in private object storage"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from ...auth import get_current_admin, get_current_user
from ...database import get_db
from ...models import Profile
from ...utils import storage
from .schemas import DocumentDownloadResponse, DocumentResponse
from .service import DocumentService

router = APIRouter(prefix="/documents", tags=["Documents"])


def get_document_service(db: Session = Depends(get_db)) -> DocumentService:
    return DocumentService(db)


@router.get("", response_model=list[DocumentResponse])
async def list_my_documents(
    current_user: Profile = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service),
):
    return service.list_documents(current_user.id)


@router.get("/user/{user_id}", response_model=list[DocumentResponse])
async def list_user_documents(
    user_id: str,
    _admin: Profile = Depends(get_current_admin),
    service: DocumentService = Depends(get_document_service),
):
    return service.list_documents(user_id)


@router.post("/upload", response_model=DocumentResponse, status_code=201)
async def upload_document(
    user_id: str = Form(...),
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    file: UploadFile = File(...),
    _admin: Profile = Depends(get_current_admin),
    service: DocumentService = Depends(get_document_service),
):
    """Admin: upload a document into an owner's space"""
    # One byte past the limit is enough to reject an oversized file
    content = await file.read(storage.MAX_DOCUMENT_SIZE_BYTES + 1)
    return service.upload_document(
        user_id=user_id,
        filename=file.filename or "document",
        content=content,
        content_type=file.content_type,
        name=name,
        description=description,
        category=category,
    )


@router.delete("/{document_id}")
async def delete_document(
    document_id: str,
    _admin: Profile = Depends(get_current_admin),
    service: DocumentService = Depends(get_document_service),
):
    service.delete_document(document_id)
    return {"message": "Document supprimé."}


@router.get("/{document_id}/download", response_model=DocumentDownloadResponse)
async def download_document(
    document_id: str,
    current_user: Profile = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service),
):
    """Presigned link, available to the document owner and admins"""
    url = service.download_url(document_id, current_user)
    return DocumentDownloadResponse(url=url, expires_in=storage.PRESIGNED_URL_EXPIRATION)
