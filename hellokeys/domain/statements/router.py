"""Statement router - owner statements and admin management"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ...auth import get_current_admin, get_current_user
from ...database import get_db
from ...models import Profile
from ...utils.storage import PRESIGNED_URL_EXPIRATION
from .schemas import DownloadUrlResponse, StatementCreate, StatementResponse
from .service import StatementService

router = APIRouter(prefix="/statements", tags=["Statements"])


class SendStatementRequest(BaseModel):
    pdf_path: Optional[str] = None


def get_statement_service(db: Session = Depends(get_db)) -> StatementService:
    return StatementService(db)


@router.get("", response_model=list[StatementResponse])
async def list_my_statements(
    current_user: Profile = Depends(get_current_user),
    service: StatementService = Depends(get_statement_service),
):
    """Owner statements, newest first"""
    return service.list_own(current_user)


@router.get("/{invoice_id}/download", response_model=DownloadUrlResponse)
async def download_statement(
    invoice_id: str,
    current_user: Profile = Depends(get_current_user),
    service: StatementService = Depends(get_statement_service),
):
    url = service.download_url(invoice_id, current_user)
    return DownloadUrlResponse(url=url, expires_in=PRESIGNED_URL_EXPIRATION)


@router.get("/admin/all", response_model=list[StatementResponse])
async def list_all_statements(
    user_id: Optional[str] = Query(None),
    _admin: Profile = Depends(get_current_admin),
    service: StatementService = Depends(get_statement_service),
):
    return service.list_all(user_id)


@router.post("/admin", response_model=StatementResponse, status_code=201)
async def create_statement(
    data: StatementCreate,
    _admin: Profile = Depends(get_current_admin),
    service: StatementService = Depends(get_statement_service),
):
    return service.create(data)


@router.delete("/admin/{invoice_id}")
async def delete_statement(
    invoice_id: str,
    _admin: Profile = Depends(get_current_admin),
    service: StatementService = Depends(get_statement_service),
):
    service.delete(invoice_id)
    return {"message": "Relevé supprimé."}


@router.post("/admin/{invoice_id}/send-email")
async def send_statement_email(
    invoice_id: str,
    data: Optional[SendStatementRequest] = None,
    _admin: Profile = Depends(get_current_admin),
    service: StatementService = Depends(get_statement_service),
):
    await service.send_statement_email(invoice_id, data.pdf_path if data else None)
    return {"message": "E-mail envoyé avec succès avec le lien PDF"}
