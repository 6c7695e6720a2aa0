import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth import get_current_admin, get_current_user
from ..database import get_db
from ..models import ModuleActivationRequest, Profile
from ..schemas import ModuleActivationCreate, ModuleActivationResponse, ModuleActivationStatusUpdate
from ..services.notification_service import create_notification

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/modules", tags=["Modules"])

# Profile flag switched on when the matching module request is approved
MODULE_PROFILE_FLAGS = {
    "expenses": "expenses_module_enabled",
}


@router.post("/requests", response_model=ModuleActivationResponse, status_code=201)
async def request_module_activation(
    data: ModuleActivationCreate,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    pending = (
        db.query(ModuleActivationRequest)
        .filter(
            ModuleActivationRequest.user_id == current_user.id,
            ModuleActivationRequest.module_name == data.module_name,
            ModuleActivationRequest.status == "pending",
        )
        .first()
    )
    if pending:
        raise HTTPException(
            status_code=409,
            detail="Une demande d'activation pour ce module est déjà en attente.",
        )

    request = ModuleActivationRequest(user_id=current_user.id, module_name=data.module_name)
    db.add(request)
    db.commit()
    db.refresh(request)
    logger.info(f"🧩 Module {data.module_name} requested by {current_user.id}")
    return request


@router.get("/requests", response_model=list[ModuleActivationResponse])
async def list_my_module_requests(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return (
        db.query(ModuleActivationRequest)
        .filter(ModuleActivationRequest.user_id == current_user.id)
        .order_by(ModuleActivationRequest.created_at.desc())
        .all()
    )


@router.get("/requests/admin", response_model=list[ModuleActivationResponse])
async def list_all_module_requests(
    _admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    return (
        db.query(ModuleActivationRequest)
        .order_by(ModuleActivationRequest.created_at.desc())
        .all()
    )


@router.patch("/requests/{request_id}", response_model=ModuleActivationResponse)
async def review_module_request(
    request_id: str,
    data: ModuleActivationStatusUpdate,
    _admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """Approve or reject an activation request"""
    request = (
        db.query(ModuleActivationRequest).filter(ModuleActivationRequest.id == request_id).first()
    )
    if not request:
        raise HTTPException(status_code=404, detail="Demande introuvable.")

    request.status = data.status
    flag = MODULE_PROFILE_FLAGS.get(request.module_name)
    if data.status == "approved" and flag and request.profile:
        setattr(request.profile, flag, True)
    db.commit()
    db.refresh(request)

    verdict = "activé" if data.status == "approved" else "refusé"
    create_notification(db, request.user_id, f"Le module {request.module_name} a été {verdict}.")
    return request
