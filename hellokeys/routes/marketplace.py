import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth import ADMIN_ROLE, get_current_admin, get_current_user
from ..database import get_db
from ..models import Profile, ServiceProvider
from ..schemas import (
    MessageResponse,
    ServiceProviderCreate,
    ServiceProviderResponse,
    ServiceProviderUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/marketplace", tags=["Marketplace"])


def _get_provider(db: Session, provider_id: str) -> ServiceProvider:
    provider = db.query(ServiceProvider).filter(ServiceProvider.id == provider_id).first()
    if not provider:
        raise HTTPException(status_code=404, detail="Prestataire introuvable.")
    return provider


@router.get("", response_model=list[ServiceProviderResponse])
async def list_service_providers(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Service providers by name. Owners only see approved providers."""
    query = db.query(ServiceProvider)
    if current_user.role != ADMIN_ROLE:
        query = query.filter(ServiceProvider.is_approved.is_(True))
    return query.order_by(ServiceProvider.name.asc()).all()


@router.post("", response_model=ServiceProviderResponse, status_code=201)
async def create_service_provider(
    data: ServiceProviderCreate,
    _admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    provider = ServiceProvider(**data.model_dump())
    db.add(provider)
    db.commit()
    db.refresh(provider)
    logger.info(f"🧰 Service provider {provider.name} added")
    return provider


@router.put("/{provider_id}", response_model=ServiceProviderResponse)
async def update_service_provider(
    provider_id: str,
    data: ServiceProviderUpdate,
    _admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    provider = _get_provider(db, provider_id)
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(provider, key, value)
    db.commit()
    db.refresh(provider)
    return provider


@router.delete("/{provider_id}", response_model=MessageResponse)
async def delete_service_provider(
    provider_id: str,
    _admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    provider = _get_provider(db, provider_id)
    db.delete(provider)
    db.commit()
    return {"message": "Prestataire supprimé."}
