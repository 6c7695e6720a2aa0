"""Price override service"""

import logging

from sqlalchemy.orm import Session

from ...models import PriceOverride, Profile
from .repository import PriceOverrideRepository
from .schemas import PriceOverrideCreate, PriceOverrideFilters

logger = logging.getLogger(__name__)


class PriceOverrideService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = PriceOverrideRepository()

    def create_override(self, data: PriceOverrideCreate, user: Profile) -> PriceOverride:
        override = self.repo.create(self.db, user.id, **data.model_dump())
        logger.info(
            f"💶 Price override recorded for room {data.room_id} "
            f"({data.start_date} -> {data.end_date}) by user {user.id}"
        )
        return override

    def list_own(self, user: Profile) -> list[PriceOverride]:
        return self.repo.list_for_user(self.db, user.id)

    def search(self, filters: PriceOverrideFilters, page: int, page_size: int) -> dict:
        offset = (page - 1) * page_size
        rows, count = self.repo.search(self.db, filters, offset, page_size)
        return {"data": rows, "count": count}
