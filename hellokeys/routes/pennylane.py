import logging

from fastapi import APIRouter, Depends, Query

from ..auth import get_current_user
from ..models import Profile
from ..services.pennylane_service import PennylaneService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pennylane", tags=["Pennylane"])


def get_pennylane_service() -> PennylaneService:
    return PennylaneService()


@router.get("/invoices")
async def list_my_invoices(
    limit: int = Query(100, ge=1, le=100),
    current_user: Profile = Depends(get_current_user),
    pennylane: PennylaneService = Depends(get_pennylane_service),
):
    """Accounting invoices for the caller's Pennylane customer, newest first"""
    if not current_user.pennylane_customer_id:
        logger.info(f"ℹ️ User {current_user.id} has no Pennylane customer id")
        return {"items": []}
    return await pennylane.list_customer_invoices(current_user.pennylane_customer_id, limit=limit)
