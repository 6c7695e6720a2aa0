import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth import get_current_admin
from ..database import get_db
from ..models import ChangelogEntry, Profile
from ..schemas import ChangelogCreate, ChangelogResponse, ChangelogUpdate, MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/changelog", tags=["Changelog"])


def _get_entry(db: Session, entry_id: str) -> ChangelogEntry:
    entry = db.query(ChangelogEntry).filter(ChangelogEntry.id == entry_id).first()
    if not entry:
        raise HTTPException(status_code=404, detail="Entrée introuvable.")
    return entry


@router.get("", response_model=list[ChangelogResponse])
async def list_public_changelog(db: Session = Depends(get_db)):
    """Public release notes, newest first"""
    return (
        db.query(ChangelogEntry)
        .filter(ChangelogEntry.is_public.is_(True))
        .order_by(ChangelogEntry.created_at.desc())
        .all()
    )


@router.get("/admin", response_model=list[ChangelogResponse])
async def list_all_changelog(
    _admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    return db.query(ChangelogEntry).order_by(ChangelogEntry.created_at.desc()).all()


@router.post("", response_model=ChangelogResponse, status_code=201)
async def create_changelog_entry(
    data: ChangelogCreate,
    _admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    entry = ChangelogEntry(**data.model_dump())
    db.add(entry)
    db.commit()
    db.refresh(entry)
    logger.info(f"📝 Changelog entry {entry.version} created")
    return entry


@router.put("/{entry_id}", response_model=ChangelogResponse)
async def update_changelog_entry(
    entry_id: str,
    data: ChangelogUpdate,
    _admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    entry = _get_entry(db, entry_id)
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(entry, key, value)
    db.commit()
    db.refresh(entry)
    return entry


@router.delete("/{entry_id}", response_model=MessageResponse)
async def delete_changelog_entry(
    entry_id: str,
    _admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    entry = _get_entry(db, entry_id)
    db.delete(entry)
    db.commit()
    return {"message": "Entrée supprimée."}
