"""Room router - FastAPI endpoints for owner properties"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_admin, get_current_user
from ...database import get_db
from ...models import Profile
from .schemas import RoomCreate, RoomResponse, RoomUpdate
from .service import RoomService

router = APIRouter(prefix="/rooms", tags=["Rooms"])


def get_room_service(db: Session = Depends(get_db)) -> RoomService:
    """Dependency injection for RoomService"""
    return RoomService(db)


@router.get("", response_model=list[RoomResponse])
async def list_rooms(
    current_user: Profile = Depends(get_current_user),
    service: RoomService = Depends(get_room_service),
):
    return service.get_rooms(current_user.id)


@router.post("", response_model=RoomResponse, status_code=201)
async def add_room(
    data: RoomCreate,
    current_user: Profile = Depends(get_current_user),
    service: RoomService = Depends(get_room_service),
):
    return service.add_room(data, current_user)


@router.put("/{room_pk}", response_model=RoomResponse)
async def update_room(
    room_pk: str,
    data: RoomUpdate,
    current_user: Profile = Depends(get_current_user),
    service: RoomService = Depends(get_room_service),
):
    return service.update_room(room_pk, data, current_user)


@router.delete("/{room_pk}")
async def delete_room(
    room_pk: str,
    current_user: Profile = Depends(get_current_user),
    service: RoomService = Depends(get_room_service),
):
    service.delete_room(room_pk, current_user)
    return {"message": "Chambre supprimée."}


@router.get("/user/{user_id}", response_model=list[RoomResponse])
async def list_user_rooms(
    user_id: str,
    _admin: Profile = Depends(get_current_admin),
    service: RoomService = Depends(get_room_service),
):
    """Admin: list the rooms of any owner"""
    return service.get_rooms(user_id)
