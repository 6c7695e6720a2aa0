"""
Identity service admin client
Wraps the Supabase GoTrue admin REST API (service-role key) for user management
"""

import logging
from typing import Any, Optional

import httpx

from ..config import SUPABASE_SERVICE_ROLE_KEY, SUPABASE_URL
from .errors import IntegrationError, NotConfiguredError

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return body.get("msg") or body.get("message") or body.get("error_description") or str(body)
    return str(body)


class IdentityAdminService:
    def __init__(
        self,
        base_url: Optional[str] = None,
        service_role_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url if base_url is not None else SUPABASE_URL).rstrip("/")
        self.service_role_key = service_role_key if service_role_key is not None else SUPABASE_SERVICE_ROLE_KEY
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        if not self.base_url or not self.service_role_key:
            raise NotConfiguredError(
                "Server configuration error: SUPABASE_URL/SUPABASE_SERVICE_ROLE_KEY missing."
            )
        return httpx.AsyncClient(
            base_url=f"{self.base_url}/auth/v1/admin",
            headers={
                "apikey": self.service_role_key,
                "Authorization": f"Bearer {self.service_role_key}",
            },
            timeout=30.0,
            transport=self.transport,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict:
        async with self._client() as client:
            response = await client.request(method, path, **kwargs)
        if response.is_error:
            message = _error_message(response)
            logger.error(f"❌ Identity admin {method} {path} failed ({response.status_code}): {message}")
            raise IntegrationError(message, status_code=response.status_code)
        return response.json()

    async def create_user(
        self, email: str, password: str, first_name: str, last_name: str, role: str
    ) -> dict:
        """Create an auto-confirmed user; profile fields travel in user_metadata"""
        user = await self._request(
            "POST",
            "/users",
            json={
                "email": email,
                "password": password,
                "email_confirm": True,
                "user_metadata": {"first_name": first_name, "last_name": last_name, "role": role},
            },
        )
        logger.info(f"👤 Created user {user.get('id')} ({email})")
        return user

    async def get_user(self, user_id: str) -> dict:
        return await self._request("GET", f"/users/{user_id}")

    async def merge_user_metadata(self, user_id: str, updates: dict) -> dict:
        """Merge into existing metadata so unrelated keys are kept"""
        user = await self.get_user(user_id)
        metadata = {**(user.get("user_metadata") or {}), **updates}
        return await self._request("PUT", f"/users/{user_id}", json={"user_metadata": metadata})

    async def set_password(self, user_id: str, new_password: str) -> dict:
        user = await self._request("PUT", f"/users/{user_id}", json={"password": new_password})
        logger.info(f"🔐 Password updated for user {user_id}")
        return user

    async def list_users(self, per_page: int = 1000) -> list[dict]:
        users: list[dict] = []
        page = 1
        while True:
            data = await self._request("GET", "/users", params={"page": page, "per_page": per_page})
            batch = data.get("users") or []
            users.extend(batch)
            if len(batch) < per_page:
                break
            page += 1
        return users
