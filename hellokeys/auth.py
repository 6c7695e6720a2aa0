import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError
from jose import jwt as jose_jwt
from sqlalchemy.orm import Session

from .config import CRON_SECRET, SUPABASE_JWT_AUDIENCE, SUPABASE_JWT_SECRET
from .database import get_db
from .models import Profile

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

ADMIN_ROLE = "admin"


def decode_access_token(token: str) -> dict:
    """
    Verify an access token issued by the identity service.
    Tokens are HS256-signed with the project JWT secret.
    """
    if not SUPABASE_JWT_SECRET:
        logger.error("❌ SUPABASE_JWT_SECRET not configured")
        raise HTTPException(status_code=500, detail="Authentication not configured")

    try:
        payload = jose_jwt.decode(
            token,
            SUPABASE_JWT_SECRET,
            algorithms=["HS256"],
            audience=SUPABASE_JWT_AUDIENCE,
        )
    except ExpiredSignatureError as e:
        raise HTTPException(
            status_code=401,
            detail="Token has expired. Please refresh your session.",
            headers={"X-Token-Expired": "true"},
        ) from e
    except JWTError as e:
        logger.warning(f"⚠️ Token verification failed: {str(e)}")
        raise HTTPException(status_code=401, detail="Unauthorized: User not authenticated.") from e

    if not payload.get("sub"):
        logger.error(f"❌ Token missing user ID claim. Available claims: {list(payload.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    return payload


def _get_or_create_profile(db: Session, claims: dict) -> Profile:
    """Find the caller's profile, creating it from token claims on first sight"""
    user_id = claims["sub"]
    profile = db.query(Profile).filter(Profile.id == user_id).first()
    if profile:
        return profile

    metadata = claims.get("user_metadata") or {}
    logger.info(f"🆕 Creating profile for user {user_id}")
    profile = Profile(
        id=user_id,
        email=claims.get("email"),
        first_name=metadata.get("first_name"),
        last_name=metadata.get("last_name"),
        role=metadata.get("role") or "user",
    )
    db.add(profile)
    try:
        db.commit()
        db.refresh(profile)
    except Exception:
        db.rollback()
        # Another request created the profile in the meantime
        profile = db.query(Profile).filter(Profile.id == user_id).first()
        if not profile:
            raise
    return profile


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Profile:
    """Get the caller's profile from the bearer token"""
    if not credentials:
        raise HTTPException(status_code=401, detail="Unauthorized")

    claims = decode_access_token(credentials.credentials)
    profile = _get_or_create_profile(db, claims)

    if profile.is_banned:
        logger.warning(f"⚠️ Banned user {profile.id} attempted to access the API")
        raise HTTPException(status_code=403, detail="Votre compte a été suspendu.")

    # Keep email in sync with the identity service
    email = claims.get("email")
    if email and profile.email != email:
        profile.email = email
        db.commit()

    return profile


async def get_current_admin(user: Profile = Depends(get_current_user)) -> Profile:
    """Get the caller's profile and verify the admin role"""
    if user.role != ADMIN_ROLE:
        logger.warning(f"⚠️ User {user.id} attempted to access an admin route")
        raise HTTPException(status_code=403, detail="Forbidden: Admin access required.")
    return user


def is_cron_request(request: Request, payload: dict) -> bool:
    """
    Scheduled jobs authenticate with CRON_SECRET either as the bearer token
    or as a `cron_secret` field in the JSON body.
    """
    if not CRON_SECRET:
        return False
    header = request.headers.get("Authorization", "")
    header_token = header[7:].strip() if header.lower().startswith("bearer ") else ""
    if header_token and header_token == CRON_SECRET:
        return True
    body_secret = payload.get("cron_secret")
    return isinstance(body_secret, str) and body_secret.strip() == CRON_SECRET


async def resolve_user_or_cron(
    request: Request,
    payload: dict,
    credentials: Optional[HTTPAuthorizationCredentials],
    db: Session,
) -> str:
    """Resolve the target user id for endpoints that accept cron callers"""
    if is_cron_request(request, payload):
        user_id = payload.get("user_id")
        if not user_id:
            raise HTTPException(status_code=400, detail="Missing user_id for cron mode")
        return user_id

    user = await get_current_user(credentials=credentials, db=db)
    return user.id
