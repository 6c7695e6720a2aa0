"""
Twilio Verify Service
Sends and checks one-time SMS codes used to verify an owner's phone number
"""

import logging
from typing import Optional

import httpx

from ..config import TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_VERIFY_SERVICE_SID
from ..shared.validators import normalize_fr_phone
from .errors import IntegrationError, NotConfiguredError

logger = logging.getLogger(__name__)

TWILIO_VERIFY_BASE = "https://verify.twilio.com/v2"


def check_twilio_config(account_sid: str, auth_token: str, service_sid: str) -> tuple[list[str], list[str]]:
    """
    Validate Twilio credentials before any call.

    Returns:
        Tuple of (missing, invalid) setting descriptions
    """
    missing = []
    invalid = []
    if not account_sid:
        missing.append("TWILIO_ACCOUNT_SID")
    if not auth_token:
        missing.append("TWILIO_AUTH_TOKEN")
    if not service_sid:
        missing.append("TWILIO_VERIFY_SERVICE_SID")
    if account_sid and not account_sid.startswith("AC"):
        invalid.append('TWILIO_ACCOUNT_SID doit commencer par "AC"')
    if service_sid and not service_sid.startswith("VA"):
        invalid.append('TWILIO_VERIFY_SERVICE_SID doit commencer par "VA"')
    return missing, invalid


class TwilioVerifyService:
    def __init__(
        self,
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        service_sid: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.account_sid = account_sid if account_sid is not None else TWILIO_ACCOUNT_SID
        self.auth_token = auth_token if auth_token is not None else TWILIO_AUTH_TOKEN
        self.service_sid = service_sid if service_sid is not None else TWILIO_VERIFY_SERVICE_SID
        self.transport = transport

    def ensure_configured(self) -> None:
        missing, invalid = check_twilio_config(self.account_sid, self.auth_token, self.service_sid)
        if missing or invalid:
            logger.error(f"❌ Twilio configuration problem - missing: {missing}, invalid: {invalid}")
            raise NotConfiguredError(
                "Configuration Twilio invalide ou manquante.",
                details={"missing": missing, "invalid": invalid},
            )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{TWILIO_VERIFY_BASE}/Services/{self.service_sid}",
            auth=(self.account_sid, self.auth_token),
            timeout=15.0,
            transport=self.transport,
        )

    async def send_code(self, phone_number: str) -> str:
        """Start an SMS verification. Returns the normalized phone number."""
        self.ensure_configured()
        normalized = normalize_fr_phone(phone_number)

        async with self._client() as client:
            response = await client.post("/Verifications", data={"To": normalized, "Channel": "sms"})

        if response.is_error:
            logger.error(f"❌ Twilio Verify start error: {response.text}")
            raise IntegrationError(
                "Échec de l'envoi du code de vérification.", status_code=response.status_code
            )

        logger.info(f"📱 Verification code sent to {normalized}")
        return normalized

    async def check_code(self, phone_number: str, code: str) -> str:
        """
        Check a verification code.

        Returns:
            The normalized phone number once Twilio approves the code

        Raises:
            IntegrationError: 400 when the code is wrong or expired
        """
        self.ensure_configured()
        normalized = normalize_fr_phone(phone_number)

        async with self._client() as client:
            response = await client.post("/VerificationCheck", data={"To": normalized, "Code": code})

        if response.is_error:
            logger.error(f"❌ Twilio Verify check error: {response.text}")
            raise IntegrationError("Code invalide ou expiré.", status_code=400)
        if response.json().get("status") != "approved":
            raise IntegrationError("Code invalide ou expiré.", status_code=400)

        return normalized
