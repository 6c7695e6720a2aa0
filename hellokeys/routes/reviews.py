from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..auth import get_current_user
from ..models import Profile
from ..services.revyoos_service import RevyoosService

router = APIRouter(prefix="/reviews", tags=["Reviews"])


class ReviewsRequest(BaseModel):
    holdingIds: Optional[List[str]] = Field(default=None)


def get_revyoos_service() -> RevyoosService:
    return RevyoosService()


@router.post("")
async def get_reviews(
    data: ReviewsRequest,
    current_user: Profile = Depends(get_current_user),
    revyoos: RevyoosService = Depends(get_revyoos_service),
):
    """Guest reviews for the given holdings, or the caller's own holdings"""
    holding_ids = data.holdingIds if data.holdingIds is not None else current_user.revyoos_holding_ids
    return await revyoos.get_reviews(holding_ids)
