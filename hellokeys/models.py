import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_uuid():
    """Generate a string UUID primary key"""
    return str(uuid.uuid4())


class Profile(Base):
    """Owner/admin profile; id mirrors the identity service user id"""

    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, index=True)
    email = Column(String(255), index=True, nullable=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    role = Column(String(50), default="user", nullable=False)  # user, admin, accountant
    phone_number = Column(String(50), nullable=True)
    objective_amount = Column(Float, nullable=True)
    commission_rate = Column(Float, nullable=True)
    cguv_accepted_at = Column(DateTime, nullable=True)
    cguv_version = Column(String(20), nullable=True)
    # Third-party linkage
    pennylane_customer_id = Column(String(255), nullable=True)
    stripe_account_id = Column(String(255), nullable=True)
    revyoos_holding_ids = Column(JSON, default=list, nullable=True)
    # Property / banking information
    property_address = Column(String(500), nullable=True)
    property_city = Column(String(255), nullable=True)
    property_zip_code = Column(String(20), nullable=True)
    iban_airbnb_booking = Column(String(50), nullable=True)
    bic_airbnb_booking = Column(String(20), nullable=True)
    sync_with_hellokeys = Column(Boolean, default=False, nullable=False)
    iban_abritel_hellokeys = Column(String(50), nullable=True)
    bic_abritel_hellokeys = Column(String(20), nullable=True)
    linen_type = Column(String(100), nullable=True)
    agency = Column(String(100), nullable=True)
    contract_start_date = Column(Date, nullable=True)
    expenses_module_enabled = Column(Boolean, default=False, nullable=False)
    # Notification preferences
    notify_new_booking_email = Column(Boolean, default=True, nullable=False)
    notify_cancellation_email = Column(Boolean, default=True, nullable=False)
    notify_new_booking_sms = Column(Boolean, default=False, nullable=False)
    notify_cancellation_sms = Column(Boolean, default=False, nullable=False)
    # Account state
    is_banned = Column(Boolean, default=False, nullable=False)
    kyc_status = Column(String(50), default="not_verified", nullable=False)
    kyc_documents = Column(JSON, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    rooms = relationship("UserRoom", back_populates="owner", cascade="all, delete-orphan")


class UserRoom(Base):
    __tablename__ = "user_rooms"
    __table_args__ = (UniqueConstraint("user_id", "room_id", name="uq_user_rooms_user_room"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    room_id = Column(String(100), nullable=False)  # channel manager room id
    room_name = Column(String(255), nullable=False)
    room_id_2 = Column(String(100), nullable=True)  # secondary id for price/restriction systems
    property_type = Column(String(100), nullable=True)
    keybox_code = Column(String(100), nullable=True)
    wifi_ssid = Column(String(255), nullable=True)
    wifi_code = Column(String(255), nullable=True)
    arrival_instructions = Column(Text, nullable=True)
    departure_instructions = Column(Text, nullable=True)
    parking_info = Column(Text, nullable=True)
    house_rules = Column(Text, nullable=True)
    utility_locations = Column(Text, nullable=True)
    is_non_smoking = Column(Boolean, nullable=True)
    are_pets_allowed = Column(Boolean, nullable=True)
    has_smoke_detector = Column(Boolean, nullable=True)
    has_co_detector = Column(Boolean, nullable=True)
    is_electricity_cut = Column(Boolean, default=False, nullable=False)
    is_water_cut = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, server_default=func.now())

    owner = relationship("Profile", back_populates="rooms")


class Document(Base):
    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    file_path = Column(String(500), nullable=False)
    file_size = Column(Integer, nullable=True)
    file_type = Column(String(100), nullable=True)
    category = Column(String(100), nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class ChangelogEntry(Base):
    __tablename__ = "changelog"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    version = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=False, default="feature")
    is_public = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class Faq(Base):
    __tablename__ = "faqs"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)
    is_published = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class ServiceProvider(Base):
    __tablename__ = "service_providers"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    website = Column(String(500), nullable=True)
    location = Column(String(255), nullable=True)
    image_url = Column(String(500), nullable=True)
    is_approved = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class PriceOverride(Base):
    __tablename__ = "price_overrides"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    room_id = Column(String(100), nullable=False)
    room_name = Column(String(255), nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    price = Column(Float, nullable=True)
    min_stay = Column(Integer, nullable=True)
    closed = Column(Boolean, default=False, nullable=False)
    closed_on_arrival = Column(Boolean, default=False, nullable=False)
    closed_on_departure = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    profile = relationship("Profile")


class HivernageRequest(Base):
    """Winterization request for a property"""

    __tablename__ = "hivernage_requests"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    user_room_id = Column(String(36), ForeignKey("user_rooms.id"), nullable=True)
    instructions = Column(JSON, nullable=False, default=dict)
    comments = Column(Text, nullable=True)
    status = Column(String(50), default="pending", nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    profile = relationship("Profile")
    room = relationship("UserRoom")


class ModuleActivationRequest(Base):
    __tablename__ = "module_activation_requests"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    module_name = Column(String(100), nullable=False)
    status = Column(String(20), default="pending", nullable=False)  # pending, approved, rejected
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    profile = relationship("Profile")


class AccountantRequest(Base):
    __tablename__ = "accountant_requests"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    accountant_name = Column(String(255), nullable=False)
    accountant_email = Column(String(255), nullable=False)
    status = Column(String(20), default="pending", nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class Idea(Base):
    __tablename__ = "ideas"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String(50), default="new", nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    message = Column(Text, nullable=False)
    link = Column(String(500), nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class Expense(Base):
    """One-off owner expense (expenses module)"""

    __tablename__ = "expenses"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(100), nullable=True)
    expense_date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())


class RecurringExpense(Base):
    __tablename__ = "recurring_expenses"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(100), nullable=True)
    frequency = Column(String(20), nullable=False)  # monthly, quarterly, yearly
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class AppSetting(Base):
    """Key/value settings (email templates, cached integration payloads)"""

    __tablename__ = "app_settings"

    key = Column(String(100), primary_key=True)
    value = Column(JSON, nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
