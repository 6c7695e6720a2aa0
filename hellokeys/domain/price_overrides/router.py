"""Price override router - owner pricing changes and the admin history"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin, get_current_user
from ...database import get_db
from ...models import Profile
from .schemas import (
    PriceOverrideCreate,
    PriceOverrideFilters,
    PriceOverridePage,
    PriceOverrideResponse,
)
from .service import PriceOverrideService

router = APIRouter(prefix="/price-overrides", tags=["Price overrides"])


def get_price_override_service(db: Session = Depends(get_db)) -> PriceOverrideService:
    return PriceOverrideService(db)


@router.post("", response_model=PriceOverrideResponse, status_code=201)
async def create_price_override(
    data: PriceOverrideCreate,
    current_user: Profile = Depends(get_current_user),
    service: PriceOverrideService = Depends(get_price_override_service),
):
    return service.create_override(data, current_user)


@router.get("", response_model=list[PriceOverrideResponse])
async def list_my_price_overrides(
    current_user: Profile = Depends(get_current_user),
    service: PriceOverrideService = Depends(get_price_override_service),
):
    return service.list_own(current_user)


@router.get("/admin", response_model=PriceOverridePage)
async def search_price_overrides(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    client: Optional[str] = Query(None),
    room: Optional[str] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    price: Optional[float] = Query(None),
    min_stay: Optional[int] = Query(None),
    _admin: Profile = Depends(get_current_admin),
    service: PriceOverrideService = Depends(get_price_override_service),
):
    """Admin: paginated price change history with combinable filters"""
    filters = PriceOverrideFilters(
        client=client,
        room=room,
        date_from=date_from,
        date_to=date_to,
        price=price,
        min_stay=min_stay,
    )
    return service.search(filters, page, page_size)
