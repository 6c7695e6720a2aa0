"""
Support Routes - Freshdesk tickets for the signed-in owner
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..auth import get_current_user
from ..models import Profile
from ..services.freshdesk_service import FreshdeskService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/support", tags=["Support"])


class TicketCreate(BaseModel):
    subject: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    priority: Optional[int] = Field(None, ge=1, le=4)


class TicketReply(BaseModel):
    body: str = Field(..., min_length=1)


def get_freshdesk_service() -> FreshdeskService:
    return FreshdeskService()


def _require_email(user: Profile) -> str:
    if not user.email:
        raise HTTPException(status_code=400, detail="Adresse e-mail introuvable pour cet utilisateur.")
    return user.email


@router.get("/tickets")
async def list_tickets(
    current_user: Profile = Depends(get_current_user),
    freshdesk: FreshdeskService = Depends(get_freshdesk_service),
):
    return await freshdesk.list_tickets(_require_email(current_user))


@router.get("/tickets/{ticket_id}")
async def get_ticket(
    ticket_id: int,
    current_user: Profile = Depends(get_current_user),
    freshdesk: FreshdeskService = Depends(get_freshdesk_service),
):
    return await freshdesk.get_ticket(ticket_id)


@router.post("/tickets", status_code=201)
async def create_ticket(
    data: TicketCreate,
    current_user: Profile = Depends(get_current_user),
    freshdesk: FreshdeskService = Depends(get_freshdesk_service),
):
    return await freshdesk.create_ticket(
        email=_require_email(current_user),
        subject=data.subject,
        description=data.description,
        priority=data.priority,
    )


@router.post("/tickets/{ticket_id}/reply")
async def reply_to_ticket(
    ticket_id: int,
    data: TicketReply,
    current_user: Profile = Depends(get_current_user),
    freshdesk: FreshdeskService = Depends(get_freshdesk_service),
):
    return await freshdesk.reply_to_ticket(ticket_id, data.body)
