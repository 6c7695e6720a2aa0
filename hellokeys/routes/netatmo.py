"""
Netatmo Routes - OAuth connection and thermostat/weather station proxy
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..auth import get_current_user, resolve_user_or_cron, security
from ..database import get_db
from ..models import Profile
from ..services.netatmo_service import NetatmoService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/netatmo", tags=["Netatmo"])


class NetatmoAuthRequest(BaseModel):
    code: str = Field(..., min_length=1)
    redirect_uri: str = Field(..., min_length=1)


def get_netatmo_service(db: Session = Depends(get_db)) -> NetatmoService:
    return NetatmoService(db)


@router.post("/auth")
async def connect_netatmo(
    data: NetatmoAuthRequest,
    current_user: Profile = Depends(get_current_user),
    netatmo: NetatmoService = Depends(get_netatmo_service),
):
    """Exchange an OAuth authorization code for the caller's Netatmo tokens"""
    return await netatmo.exchange_code(current_user.id, data.code, data.redirect_uri)


@router.post("/proxy")
async def proxy_netatmo(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
    netatmo: NetatmoService = Depends(get_netatmo_service),
):
    """
    Forward one Netatmo action with the owner's tokens.
    Scheduled jobs may call this with CRON_SECRET and an explicit user_id.
    """
    try:
        payload = await request.json()
    except ValueError as e:
        raise HTTPException(status_code=400, detail="Invalid JSON body") from e
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON body")

    user_id = await resolve_user_or_cron(request, payload, credentials, db)
    text, content_type = await netatmo.proxy(user_id, payload)
    return Response(content=text, status_code=200, media_type=content_type)
