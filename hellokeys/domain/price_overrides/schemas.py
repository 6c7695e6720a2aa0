"""Price override schemas"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class PriceOverrideCreate(BaseModel):
    room_id: str = Field(..., min_length=1)
    room_name: Optional[str] = None
    start_date: date
    end_date: date
    price: Optional[float] = Field(None, ge=0)
    min_stay: Optional[int] = Field(None, ge=1)
    closed: bool = False
    closed_on_arrival: bool = False
    closed_on_departure: bool = False

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("La date de fin doit être postérieure à la date de début.")
        return self


class PriceOverrideOwner(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None

    class Config:
        from_attributes = True


class PriceOverrideResponse(BaseModel):
    id: str
    user_id: str
    room_id: str
    room_name: Optional[str] = None
    start_date: date
    end_date: date
    price: Optional[float] = None
    min_stay: Optional[int] = None
    closed: bool = False
    closed_on_arrival: bool = False
    closed_on_departure: bool = False
    created_at: Optional[datetime] = None
    profile: Optional[PriceOverrideOwner] = None

    class Config:
        from_attributes = True


class PriceOverrideFilters(BaseModel):
    """Admin history filters; every field is optional and they combine with AND"""

    client: Optional[str] = None
    room: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    price: Optional[float] = None
    min_stay: Optional[int] = None


class PriceOverridePage(BaseModel):
    data: list[PriceOverrideResponse]
    count: int
