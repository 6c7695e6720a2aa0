from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import get_current_admin, get_current_user
from ..database import get_db
from ..models import Idea, Profile
from ..schemas import IdeaCreate, IdeaResponse

router = APIRouter(prefix="/ideas", tags=["Ideas"])


@router.post("", response_model=IdeaResponse, status_code=201)
async def submit_idea(
    data: IdeaCreate,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    idea = Idea(user_id=current_user.id, title=data.title, description=data.description)
    db.add(idea)
    db.commit()
    db.refresh(idea)
    return idea


@router.get("", response_model=list[IdeaResponse])
async def list_ideas(
    _admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    return db.query(Idea).order_by(Idea.created_at.desc()).all()
