from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .shared.validators import reject_null, validate_email


class MessageResponse(BaseModel):
    message: str


# Profile
class ProfileResponse(BaseModel):
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str
    phone_number: Optional[str] = None
    objective_amount: Optional[float] = None
    commission_rate: Optional[float] = None
    cguv_accepted_at: Optional[datetime] = None
    cguv_version: Optional[str] = None
    pennylane_customer_id: Optional[str] = None
    stripe_account_id: Optional[str] = None
    revyoos_holding_ids: Optional[List[str]] = None
    property_address: Optional[str] = None
    property_city: Optional[str] = None
    property_zip_code: Optional[str] = None
    iban_airbnb_booking: Optional[str] = None
    bic_airbnb_booking: Optional[str] = None
    sync_with_hellokeys: bool = False
    iban_abritel_hellokeys: Optional[str] = None
    bic_abritel_hellokeys: Optional[str] = None
    linen_type: Optional[str] = None
    agency: Optional[str] = None
    contract_start_date: Optional[date] = None
    expenses_module_enabled: bool = False
    notify_new_booking_email: bool = True
    notify_cancellation_email: bool = True
    notify_new_booking_sms: bool = False
    notify_cancellation_sms: bool = False
    is_banned: bool = False
    kyc_status: str = "not_verified"
    kyc_documents: Optional[Any] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    """Fields an owner may change on their own profile"""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    objective_amount: Optional[float] = None
    cguv_accepted_at: Optional[datetime] = None
    cguv_version: Optional[str] = None
    property_address: Optional[str] = None
    property_city: Optional[str] = None
    property_zip_code: Optional[str] = None
    iban_airbnb_booking: Optional[str] = None
    bic_airbnb_booking: Optional[str] = None
    sync_with_hellokeys: Optional[bool] = None
    iban_abritel_hellokeys: Optional[str] = None
    bic_abritel_hellokeys: Optional[str] = None
    linen_type: Optional[str] = None
    notify_new_booking_email: Optional[bool] = None
    notify_cancellation_email: Optional[bool] = None
    notify_new_booking_sms: Optional[bool] = None
    notify_cancellation_sms: Optional[bool] = None
    kyc_documents: Optional[Any] = None

    @field_validator("objective_amount")
    @classmethod
    def validate_objective(cls, v):
        if v is not None and v < 0:
            raise ValueError("L'objectif doit être positif.")
        return v

    @field_validator(
        "sync_with_hellokeys",
        "notify_new_booking_email",
        "notify_cancellation_email",
        "notify_new_booking_sms",
        "notify_cancellation_sms",
    )
    @classmethod
    def flags_not_null(cls, v):
        return reject_null(v)


# Changelog
class ChangelogCreate(BaseModel):
    version: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    category: str = "feature"
    is_public: bool = False


class ChangelogUpdate(BaseModel):
    version: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    is_public: Optional[bool] = None

    @field_validator("version", "title", "category", "is_public")
    @classmethod
    def required_not_null(cls, v):
        return reject_null(v)


class ChangelogResponse(BaseModel):
    id: str
    version: str
    title: str
    description: Optional[str]
    category: str
    is_public: bool
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


# FAQ
class FaqCreate(BaseModel):
    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)
    is_published: bool = True


class FaqUpdate(BaseModel):
    question: Optional[str] = None
    answer: Optional[str] = None
    is_published: Optional[bool] = None

    @field_validator("question", "answer", "is_published")
    @classmethod
    def required_not_null(cls, v):
        return reject_null(v)


class FaqResponse(BaseModel):
    id: str
    question: str
    answer: str
    is_published: bool
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


# Marketplace
class ServiceProviderCreate(BaseModel):
    name: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    description: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    location: Optional[str] = None
    image_url: Optional[str] = None
    is_approved: bool = False


class ServiceProviderUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    location: Optional[str] = None
    image_url: Optional[str] = None
    is_approved: Optional[bool] = None

    @field_validator("name", "category", "is_approved")
    @classmethod
    def required_not_null(cls, v):
        return reject_null(v)


class ServiceProviderResponse(BaseModel):
    id: str
    name: str
    category: str
    description: Optional[str]
    phone: Optional[str]
    email: Optional[str]
    website: Optional[str]
    location: Optional[str]
    image_url: Optional[str]
    is_approved: bool
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


# Ideas
class IdeaCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)


class IdeaResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: str
    status: str
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


# Notifications
class NotificationResponse(BaseModel):
    id: str
    message: str
    link: Optional[str]
    is_read: bool
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


# Accountant access
class AccountantRequestCreate(BaseModel):
    accountant_name: str = Field(..., min_length=1)
    accountant_email: str

    @field_validator("accountant_email")
    @classmethod
    def validate_accountant_email(cls, v):
        if not v or not v.strip():
            raise ValueError("Format d'email invalide.")
        return validate_email(v)


class AccountantRequestResponse(BaseModel):
    id: str
    user_id: str
    accountant_name: str
    accountant_email: str
    status: str
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


# Module activation
class ModuleActivationCreate(BaseModel):
    module_name: str = Field(..., min_length=1)


class ModuleActivationStatusUpdate(BaseModel):
    status: str = Field(..., pattern="^(approved|rejected)$")


class ModuleActivationResponse(BaseModel):
    id: str
    user_id: str
    module_name: str
    status: str
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


# Hivernage
class HivernageCreate(BaseModel):
    user_room_id: Optional[str] = None
    instructions: Dict[str, Any] = Field(default_factory=dict)
    comments: Optional[str] = None


class HivernageStatusUpdate(BaseModel):
    status: str = Field(..., min_length=1)


class HivernageResponse(BaseModel):
    id: str
    user_id: str
    user_room_id: Optional[str]
    instructions: Dict[str, Any]
    comments: Optional[str]
    status: str
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


# Expenses
class ExpenseCreate(BaseModel):
    amount: float = Field(..., gt=0)
    description: str = Field(..., min_length=1)
    category: Optional[str] = None
    expense_date: date


class ExpenseResponse(BaseModel):
    id: str
    user_id: str
    amount: float
    description: str
    category: Optional[str]
    expense_date: date
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class RecurringExpenseCreate(BaseModel):
    amount: float = Field(..., gt=0)
    description: str = Field(..., min_length=1)
    category: Optional[str] = None
    frequency: str = Field(..., pattern="^(monthly|quarterly|yearly)$")
    start_date: date
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("La date de fin doit être postérieure à la date de début.")
        return self


class RecurringExpenseResponse(BaseModel):
    id: str
    user_id: str
    amount: float
    description: str
    category: Optional[str]
    frequency: str
    start_date: date
    end_date: Optional[date]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class ExpenseOccurrence(BaseModel):
    """A dated occurrence of a recurring expense"""

    id: str
    recurring_expense_id: str
    amount: float
    description: str
    category: Optional[str]
    expense_date: date
