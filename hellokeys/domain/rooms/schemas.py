"""Room domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import reject_null


class RoomCreate(BaseModel):
    """Schema for adding a property to the owner's account"""

    room_id: str
    room_name: str
    room_id_2: Optional[str] = None
    property_type: Optional[str] = None

    @field_validator("room_id", "room_name")
    @classmethod
    def not_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Ce champ est requis.")
        return v


class RoomUpdate(BaseModel):
    """Schema for updating a property's access and equipment information"""

    room_name: Optional[str] = None
    room_id_2: Optional[str] = None
    property_type: Optional[str] = None
    keybox_code: Optional[str] = None
    wifi_ssid: Optional[str] = None
    wifi_code: Optional[str] = None
    arrival_instructions: Optional[str] = None
    departure_instructions: Optional[str] = None
    parking_info: Optional[str] = None
    house_rules: Optional[str] = None
    utility_locations: Optional[str] = None
    is_non_smoking: Optional[bool] = None
    are_pets_allowed: Optional[bool] = None
    has_smoke_detector: Optional[bool] = None
    has_co_detector: Optional[bool] = None
    is_electricity_cut: Optional[bool] = None
    is_water_cut: Optional[bool] = None

    @field_validator("room_name", "is_electricity_cut", "is_water_cut")
    @classmethod
    def required_not_null(cls, v):
        return reject_null(v)


class RoomResponse(BaseModel):
    id: str
    user_id: str
    room_id: str
    room_name: str
    room_id_2: Optional[str] = None
    property_type: Optional[str] = None
    keybox_code: Optional[str] = None
    wifi_ssid: Optional[str] = None
    wifi_code: Optional[str] = None
    arrival_instructions: Optional[str] = None
    departure_instructions: Optional[str] = None
    parking_info: Optional[str] = None
    house_rules: Optional[str] = None
    utility_locations: Optional[str] = None
    is_non_smoking: Optional[bool] = None
    are_pets_allowed: Optional[bool] = None
    has_smoke_detector: Optional[bool] = None
    has_co_detector: Optional[bool] = None
    is_electricity_cut: bool = False
    is_water_cut: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
