"""Statement domain schemas"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


class StatementCreate(BaseModel):
    user_id: str
    period: str = Field(..., min_length=1)
    totals: Optional[Dict[str, Any]] = None
    total_amount: float = 0.0
    commission_amount: float = 0.0
    currency: str = "eur"
    pdf_path: Optional[str] = None

    @field_validator("currency")
    @classmethod
    def lower_currency(cls, v):
        return v.lower()


class StatementResponse(BaseModel):
    id: str
    user_id: str
    period: str
    totals: Optional[Dict[str, Any]] = None
    total_amount: float
    commission_amount: float
    currency: str
    pdf_path: Optional[str] = None
    transfer_completed: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DownloadUrlResponse(BaseModel):
    url: str
    expires_in: int
