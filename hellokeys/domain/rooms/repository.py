"""Room repository - Database operations for owner properties"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import UserRoom


class RoomRepository:
    """Repository for user_rooms database operations"""

    @staticmethod
    def list_rooms(db: Session, user_id: str) -> list[UserRoom]:
        return (
            db.query(UserRoom)
            .filter(UserRoom.user_id == user_id)
            .order_by(UserRoom.room_name.asc())
            .all()
        )

    @staticmethod
    def get_room(db: Session, room_pk: str, user_id: str) -> Optional[UserRoom]:
        return db.query(UserRoom).filter(UserRoom.id == room_pk, UserRoom.user_id == user_id).first()

    @staticmethod
    def get_by_external_id(db: Session, user_id: str, room_id: str) -> Optional[UserRoom]:
        return (
            db.query(UserRoom)
            .filter(UserRoom.user_id == user_id, UserRoom.room_id == room_id)
            .first()
        )

    @staticmethod
    def create_room(db: Session, user_id: str, **room_data) -> UserRoom:
        room = UserRoom(user_id=user_id, **room_data)
        db.add(room)
        db.commit()
        db.refresh(room)
        return room

    @staticmethod
    def update_room(db: Session, room: UserRoom, **updates) -> UserRoom:
        for key, value in updates.items():
            setattr(room, key, value)
        db.commit()
        db.refresh(room)
        return room

    @staticmethod
    def delete_room(db: Session, room: UserRoom) -> None:
        db.delete(room)
        db.commit()
