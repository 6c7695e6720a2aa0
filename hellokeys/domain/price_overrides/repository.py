"""Price override repository"""

from datetime import datetime, time, timedelta

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ...models import PriceOverride, Profile
from .schemas import PriceOverrideFilters


class PriceOverrideRepository:
    @staticmethod
    def create(db: Session, user_id: str, **data) -> PriceOverride:
        override = PriceOverride(user_id=user_id, **data)
        db.add(override)
        db.commit()
        db.refresh(override)
        return override

    @staticmethod
    def list_for_user(db: Session, user_id: str) -> list[PriceOverride]:
        return (
            db.query(PriceOverride)
            .filter(PriceOverride.user_id == user_id)
            .order_by(PriceOverride.created_at.desc())
            .all()
        )

    @staticmethod
    def search(
        db: Session, filters: PriceOverrideFilters, offset: int, limit: int
    ) -> tuple[list[PriceOverride], int]:
        query = db.query(PriceOverride).join(Profile, PriceOverride.user_id == Profile.id)

        if filters.client:
            term = f"%{filters.client}%"
            query = query.filter(
                or_(
                    Profile.first_name.ilike(term),
                    Profile.last_name.ilike(term),
                    Profile.email.ilike(term),
                )
            )
        if filters.room:
            term = f"%{filters.room}%"
            query = query.filter(
                or_(PriceOverride.room_name.ilike(term), PriceOverride.room_id.ilike(term))
            )
        if filters.date_from:
            query = query.filter(
                PriceOverride.created_at >= datetime.combine(filters.date_from, time.min)
            )
        if filters.date_to:
            # end day is inclusive
            next_day = datetime.combine(filters.date_to + timedelta(days=1), time.min)
            query = query.filter(PriceOverride.created_at < next_day)
        if filters.price is not None:
            query = query.filter(PriceOverride.price == filters.price)
        if filters.min_stay is not None:
            query = query.filter(PriceOverride.min_stay == filters.min_stay)

        count = query.count()
        rows = (
            query.options(joinedload(PriceOverride.profile))
            .order_by(PriceOverride.created_at.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return rows, count
