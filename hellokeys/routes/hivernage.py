import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth import get_current_admin, get_current_user
from ..database import get_db
from ..models import HivernageRequest, Profile, UserRoom
from ..schemas import HivernageCreate, HivernageResponse, HivernageStatusUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/hivernage", tags=["Hivernage"])


@router.post("", response_model=HivernageResponse, status_code=201)
async def create_hivernage_request(
    data: HivernageCreate,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Submit winterization instructions for one of the caller's properties"""
    if data.user_room_id:
        room = (
            db.query(UserRoom)
            .filter(UserRoom.id == data.user_room_id, UserRoom.user_id == current_user.id)
            .first()
        )
        if not room:
            raise HTTPException(status_code=404, detail="Chambre introuvable.")

    request = HivernageRequest(user_id=current_user.id, **data.model_dump())
    db.add(request)
    db.commit()
    db.refresh(request)
    logger.info(f"❄️ Hivernage request {request.id} submitted by {current_user.id}")
    return request


@router.get("", response_model=list[HivernageResponse])
async def list_my_hivernage_requests(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return (
        db.query(HivernageRequest)
        .filter(HivernageRequest.user_id == current_user.id)
        .order_by(HivernageRequest.created_at.desc())
        .all()
    )


@router.get("/admin", response_model=list[HivernageResponse])
async def list_all_hivernage_requests(
    _admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    return db.query(HivernageRequest).order_by(HivernageRequest.created_at.desc()).all()


@router.patch("/{request_id}/status", response_model=HivernageResponse)
async def update_hivernage_status(
    request_id: str,
    data: HivernageStatusUpdate,
    _admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    request = db.query(HivernageRequest).filter(HivernageRequest.id == request_id).first()
    if not request:
        raise HTTPException(status_code=404, detail="Demande introuvable.")
    request.status = data.status
    db.commit()
    db.refresh(request)
    return request
