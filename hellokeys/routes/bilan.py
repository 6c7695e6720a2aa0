from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..auth import get_current_user
from ..models import Profile
from ..services.openai_service import OpenAIService

router = APIRouter(prefix="/bilan", tags=["Bilan"])


class BilanTotals(BaseModel):
    totalCA: float
    totalMontantVerse: float
    totalFrais: float
    totalDepenses: float
    resultatNet: float
    totalReservations: Optional[int] = None


class BilanMonth(BaseModel):
    name: str
    ca: float
    montantVerse: float
    frais: float
    benef: float
    nuits: int
    reservations: int
    prixParNuit: float


class BilanAnalysisRequest(BaseModel):
    year: int = Field(..., ge=2000, le=2100)
    totals: BilanTotals
    monthly: List[BilanMonth]


def get_openai_service() -> OpenAIService:
    return OpenAIService()


@router.post("/analysis")
async def analyze_bilan(
    data: BilanAnalysisRequest,
    _user: Profile = Depends(get_current_user),
    openai: OpenAIService = Depends(get_openai_service),
):
    """AI written summary of an owner's yearly figures"""
    analysis = await openai.analyze_bilan(
        data.year,
        data.totals.model_dump(),
        [month.model_dump() for month in data.monthly],
    )
    return {"analysis": analysis}
