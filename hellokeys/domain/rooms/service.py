"""Room service - Business logic for owner properties"""

import logging

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import Profile, UserRoom
from .repository import RoomRepository
from .schemas import RoomCreate, RoomUpdate

logger = logging.getLogger(__name__)


def duplicate_room_message(room_id: str) -> str:
    return f'La chambre avec l\'ID "{room_id}" est déjà ajoutée.'


class RoomService:
    """Service layer for room business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = RoomRepository()

    def get_rooms(self, user_id: str) -> list[UserRoom]:
        return self.repo.list_rooms(self.db, user_id)

    def get_room(self, room_pk: str, user: Profile) -> UserRoom:
        room = self.repo.get_room(self.db, room_pk, user.id)
        if not room:
            raise HTTPException(status_code=404, detail="Chambre introuvable.")
        return room

    def add_room(self, data: RoomCreate, user: Profile) -> UserRoom:
        """Add a property; the same external room id cannot be added twice by one owner"""
        if self.repo.get_by_external_id(self.db, user.id, data.room_id):
            raise HTTPException(status_code=409, detail=duplicate_room_message(data.room_id))

        try:
            room = self.repo.create_room(self.db, user.id, **data.model_dump())
        except IntegrityError as e:
            self.db.rollback()
            raise HTTPException(status_code=409, detail=duplicate_room_message(data.room_id)) from e

        logger.info(f"🏠 Room {data.room_id} added for user {user.id}")
        return room

    def update_room(self, room_pk: str, data: RoomUpdate, user: Profile) -> UserRoom:
        room = self.get_room(room_pk, user)
        return self.repo.update_room(self.db, room, **data.model_dump(exclude_unset=True))

    def delete_room(self, room_pk: str, user: Profile) -> None:
        room = self.get_room(room_pk, user)
        self.repo.delete_room(self.db, room)
        logger.info(f"🗑️ Room {room.room_id} removed for user {user.id}")
