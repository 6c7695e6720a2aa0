from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..models import Profile
from ..services.ecowatt_service import EcowattService

router = APIRouter(prefix="/ecowatt", tags=["Ecowatt"])


def get_ecowatt_service(db: Session = Depends(get_db)) -> EcowattService:
    return EcowattService(db)


@router.get("/signals")
async def get_ecowatt_signals(
    _user: Profile = Depends(get_current_user),
    ecowatt: EcowattService = Depends(get_ecowatt_service),
):
    """RTE Ecowatt grid signals, cached in memory and backed by the last good payload"""
    result = await ecowatt.get_signals()
    headers = {"X-Cache": result.cache}
    if result.original_status is not None:
        headers["X-Original-Status"] = str(result.original_status)
    return Response(
        content=result.text,
        status_code=result.status_code,
        media_type="application/json",
        headers=headers,
    )
