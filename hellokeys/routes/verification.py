"""
Phone Verification Routes
SMS one-time codes through Twilio Verify; an approved code stores the number on the profile
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..models import Profile
from ..services.twilio_service import TwilioVerifyService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/verification", tags=["verification"])


class SendCodeRequest(BaseModel):
    phone_number: str = Field(..., min_length=1)


class VerifyCodeRequest(BaseModel):
    phone_number: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1)


def get_twilio_service() -> TwilioVerifyService:
    return TwilioVerifyService()


@router.post("/sms/send")
async def send_sms_code(
    data: SendCodeRequest,
    current_user: Profile = Depends(get_current_user),
    twilio: TwilioVerifyService = Depends(get_twilio_service),
):
    normalized = await twilio.send_code(data.phone_number)
    return {"success": True, "phone_number": normalized}


@router.post("/sms/verify")
async def verify_sms_code(
    data: VerifyCodeRequest,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
    twilio: TwilioVerifyService = Depends(get_twilio_service),
):
    normalized = await twilio.check_code(data.phone_number, data.code)

    current_user.phone_number = normalized
    db.commit()
    logger.info(f"✅ Phone number verified for user {current_user.id}")
    return {"success": True, "phone_number": normalized}
