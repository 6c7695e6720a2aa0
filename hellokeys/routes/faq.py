from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth import get_current_admin
from ..database import get_db
from ..models import Faq, Profile
from ..schemas import FaqCreate, FaqResponse, FaqUpdate, MessageResponse

router = APIRouter(prefix="/faqs", tags=["FAQ"])


def _get_faq(db: Session, faq_id: str) -> Faq:
    faq = db.query(Faq).filter(Faq.id == faq_id).first()
    if not faq:
        raise HTTPException(status_code=404, detail="FAQ introuvable.")
    return faq


@router.get("", response_model=list[FaqResponse])
async def list_published_faqs(db: Session = Depends(get_db)):
    """Published questions in the order they were written"""
    return db.query(Faq).filter(Faq.is_published.is_(True)).order_by(Faq.created_at.asc()).all()


@router.get("/admin", response_model=list[FaqResponse])
async def list_all_faqs(
    _admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    return db.query(Faq).order_by(Faq.created_at.desc()).all()


@router.post("", response_model=FaqResponse, status_code=201)
async def create_faq(
    data: FaqCreate,
    _admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    faq = Faq(**data.model_dump())
    db.add(faq)
    db.commit()
    db.refresh(faq)
    return faq


@router.put("/{faq_id}", response_model=FaqResponse)
async def update_faq(
    faq_id: str,
    data: FaqUpdate,
    _admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    faq = _get_faq(db, faq_id)
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(faq, key, value)
    db.commit()
    db.refresh(faq)
    return faq


@router.delete("/{faq_id}", response_model=MessageResponse)
async def delete_faq(
    faq_id: str,
    _admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    faq = _get_faq(db, faq_id)
    db.delete(faq)
    db.commit()
    return {"message": "FAQ supprimée."}
