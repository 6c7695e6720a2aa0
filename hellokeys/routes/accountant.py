import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import get_current_admin, get_current_user
from ..database import get_db
from ..models import AccountantRequest, Profile
from ..schemas import AccountantRequestCreate, AccountantRequestResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/accountant-requests", tags=["Accountant access"])


@router.post("", response_model=AccountantRequestResponse, status_code=201)
async def request_accountant_access(
    data: AccountantRequestCreate,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Invite an accountant to the caller's financial data"""
    request = AccountantRequest(
        user_id=current_user.id,
        accountant_name=data.accountant_name.strip(),
        accountant_email=data.accountant_email,
    )
    db.add(request)
    db.commit()
    db.refresh(request)
    logger.info(f"📒 Accountant access requested by {current_user.id}")
    return request


@router.get("", response_model=list[AccountantRequestResponse])
async def list_my_accountant_requests(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return (
        db.query(AccountantRequest)
        .filter(AccountantRequest.user_id == current_user.id)
        .order_by(AccountantRequest.created_at.desc())
        .all()
    )


@router.get("/admin", response_model=list[AccountantRequestResponse])
async def list_all_accountant_requests(
    _admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    return db.query(AccountantRequest).order_by(AccountantRequest.created_at.desc()).all()
