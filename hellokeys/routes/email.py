"""
Email Routes - transactional email through Resend
"""

import logging
from typing import List, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator

from .. import email_service
from ..auth import get_current_user
from ..models import Profile
from ..rate_limiter import create_rate_limiter
from ..shared.validators import validate_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/email", tags=["Email"])

# Unauthenticated contact form: 5 emails per IP per hour
limit_public_email = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="public_email")


class SendEmailRequest(BaseModel):
    to: Union[str, List[str]]
    subject: str = Field(..., min_length=1)
    html: str = Field(..., min_length=1)

    @field_validator("to")
    @classmethod
    def validate_recipients(cls, v):
        recipients = [v] if isinstance(v, str) else v
        if not recipients:
            raise ValueError("Destinataire requis.")
        for recipient in recipients:
            if not recipient or not recipient.strip():
                raise ValueError("Destinataire requis.")
            validate_email(recipient)
        return v


@router.post("/send")
async def send_email(
    data: SendEmailRequest,
    current_user: Profile = Depends(get_current_user),
):
    """Send an email on behalf of an authenticated user"""
    result = await email_service.send_email(to=data.to, subject=data.subject, html_content=data.html)
    logger.info(f"📧 Email sent by user {current_user.id}")
    return {"success": True, "data": result}


@router.post("/send-public")
async def send_public_email(
    data: SendEmailRequest,
    _: None = Depends(limit_public_email),
):
    """Send an email without authentication (rate limited per IP)"""
    result = await email_service.send_email(to=data.to, subject=data.subject, html_content=data.html)
    return {"success": True, "data": result}
