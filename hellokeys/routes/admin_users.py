"""
Admin user management - identity service accounts and their profiles
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy.orm import Session

from ..auth import get_current_admin
from ..database import get_db
from ..models import Profile
from ..schemas import ProfileResponse
from ..services.identity_admin import IdentityAdminService
from ..shared.validators import empty_strings_to_none, validate_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/users", tags=["Admin users"])

# Fields mirrored into the identity service user_metadata
METADATA_FIELDS = ("first_name", "last_name", "role")

# NOT NULL profile columns; a cleared value leaves them unchanged
REQUIRED_PROFILE_FIELDS = ("role", "expenses_module_enabled", "is_banned", "kyc_status")


class AdminUserCreate(BaseModel):
    email: str
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    role: str = "user"

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        if not v or not v.strip():
            raise ValueError("Email requis.")
        return validate_email(v.strip())


class AdminUserUpdate(BaseModel):
    """Every field is optional; empty strings clear the value"""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[str] = None
    phone_number: Optional[str] = None
    commission_rate: Optional[float] = None
    objective_amount: Optional[float] = None
    pennylane_customer_id: Optional[str] = None
    stripe_account_id: Optional[str] = None
    revyoos_holding_ids: Optional[list[str]] = None
    property_address: Optional[str] = None
    property_city: Optional[str] = None
    property_zip_code: Optional[str] = None
    agency: Optional[str] = None
    contract_start_date: Optional[date] = None
    expenses_module_enabled: Optional[bool] = None
    is_banned: Optional[bool] = None
    kyc_status: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def blank_to_none(cls, values):
        if isinstance(values, dict):
            return empty_strings_to_none(values)
        return values


class PasswordUpdate(BaseModel):
    password: str = Field(..., min_length=6)


def get_identity_admin_service() -> IdentityAdminService:
    return IdentityAdminService()


@router.post("", status_code=201)
async def create_user(
    data: AdminUserCreate,
    _admin: Profile = Depends(get_current_admin),
    identity: IdentityAdminService = Depends(get_identity_admin_service),
):
    """Create an auto-confirmed account; the profile is created from its metadata on first login"""
    user = await identity.create_user(
        email=data.email,
        password=data.password,
        first_name=data.first_name,
        last_name=data.last_name,
        role=data.role,
    )
    return {"user": user}


@router.put("/{user_id}", response_model=ProfileResponse)
async def update_user(
    user_id: str,
    data: AdminUserUpdate,
    _admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db),
    identity: IdentityAdminService = Depends(get_identity_admin_service),
):
    profile = db.query(Profile).filter(Profile.id == user_id).first()
    if not profile:
        raise HTTPException(status_code=404, detail="Utilisateur introuvable.")

    updates = {
        key: value
        for key, value in data.model_dump(exclude_unset=True).items()
        if value is not None or key not in REQUIRED_PROFILE_FIELDS
    }
    metadata_updates = {key: updates[key] for key in METADATA_FIELDS if key in updates}
    if metadata_updates:
        await identity.merge_user_metadata(user_id, metadata_updates)

    for key, value in updates.items():
        setattr(profile, key, value)
    db.commit()
    db.refresh(profile)

    logger.info(f"✅ Admin updated user {user_id}: {list(updates.keys())}")
    return profile


@router.put("/{user_id}/password")
async def set_user_password(
    user_id: str,
    data: PasswordUpdate,
    _admin: Profile = Depends(get_current_admin),
    identity: IdentityAdminService = Depends(get_identity_admin_service),
):
    await identity.set_password(user_id, data.password)
    return {"message": "Mot de passe mis à jour."}


@router.get("")
async def list_users(
    _admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db),
    identity: IdentityAdminService = Depends(get_identity_admin_service),
):
    """Profiles enriched with the identity service email and last sign-in"""
    auth_users = {user.get("id"): user for user in await identity.list_users()}
    profiles = db.query(Profile).order_by(Profile.created_at.desc()).all()

    result = []
    for profile in profiles:
        item = ProfileResponse.model_validate(profile).model_dump(mode="json")
        auth_user = auth_users.get(profile.id) or {}
        item["email"] = auth_user.get("email") or profile.email
        item["last_sign_in_at"] = auth_user.get("last_sign_in_at")
        result.append(item)
    return result
