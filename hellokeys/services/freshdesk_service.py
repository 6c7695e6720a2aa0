"""
Freshdesk Support Service
Lists and creates support tickets on behalf of the signed-in owner
"""

import logging
from typing import Any, Optional

import httpx

from ..config import FRESHDESK_API_KEY, FRESHDESK_DOMAIN
from .errors import IntegrationError, NotConfiguredError

logger = logging.getLogger(__name__)

TICKET_STATUS_OPEN = 2
TICKET_SOURCE_PORTAL = 2
DEFAULT_PRIORITY = 1


def _response_details(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class FreshdeskService:
    def __init__(
        self,
        domain: Optional[str] = None,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.domain = domain if domain is not None else FRESHDESK_DOMAIN
        self.api_key = api_key if api_key is not None else FRESHDESK_API_KEY
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        if not self.domain or not self.api_key:
            raise NotConfiguredError("Les identifiants Freshdesk ne sont pas configurés.")
        # Freshdesk basic auth uses the API key as username and any password
        return httpx.AsyncClient(
            base_url=f"https://{self.domain}/api/v2",
            auth=(self.api_key, "X"),
            timeout=30.0,
            transport=self.transport,
        )

    async def list_tickets(self, email: str) -> list[dict]:
        async with self._client() as client:
            response = await client.get(
                "/tickets",
                params={"email": email, "order_by": "updated_at", "order_type": "desc"},
            )
        if response.is_error:
            raise IntegrationError(
                "Impossible de récupérer les tickets depuis Freshdesk.",
                status_code=response.status_code,
                details=response.text,
            )
        return response.json()

    async def get_ticket(self, ticket_id: int) -> dict:
        async with self._client() as client:
            response = await client.get(f"/tickets/{ticket_id}", params={"include": "conversations"})
        if response.is_error:
            raise IntegrationError(
                "Impossible de récupérer les détails du ticket.",
                status_code=response.status_code,
                details=response.text,
            )
        return response.json()

    async def create_ticket(
        self, email: str, subject: str, description: str, priority: Optional[int] = None
    ) -> dict:
        payload = {
            "email": email,
            "subject": subject,
            "description": description,
            "priority": priority or DEFAULT_PRIORITY,
            "status": TICKET_STATUS_OPEN,
            "source": TICKET_SOURCE_PORTAL,
        }
        async with self._client() as client:
            response = await client.post("/tickets", json=payload)
        if response.is_error:
            logger.error(f"❌ Freshdesk ticket creation failed ({response.status_code}): {response.text}")
            raise IntegrationError(
                "Impossible de créer le ticket.",
                status_code=response.status_code,
                details=_response_details(response),
            )
        ticket = response.json()
        logger.info(f"🎫 Freshdesk ticket {ticket.get('id')} created for {email}")
        return ticket

    async def reply_to_ticket(self, ticket_id: int, body: str) -> dict:
        async with self._client() as client:
            response = await client.post(f"/tickets/{ticket_id}/reply", json={"body": body})
        if response.is_error:
            logger.error(f"❌ Freshdesk reply failed ({response.status_code}): {response.text}")
            raise IntegrationError(
                "Impossible d'envoyer la réponse.",
                status_code=response.status_code,
                details=_response_details(response),
            )
        return response.json()
