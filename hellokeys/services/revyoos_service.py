"""
Revyoos Reviews Service
Aggregates guest reviews for an owner's holdings
"""

import hashlib
import logging
import time
from datetime import datetime
from typing import Callable, Optional

import httpx

from ..config import REVYOOS_EMAIL, REVYOOS_PASSWORD
from .errors import IntegrationError, NotConfiguredError

logger = logging.getLogger(__name__)

REVYOOS_API_BASE = "https://www.revyoos.com/lapi"
TOKEN_TTL_SECONDS = 60 * 60

FRENCH_MONTHS = (
    "janvier",
    "février",
    "mars",
    "avril",
    "mai",
    "juin",
    "juillet",
    "août",
    "septembre",
    "octobre",
    "novembre",
    "décembre",
)

# Process-wide sign-in token
_token_cache: dict = {"token": None, "expires_at": 0.0}


def clear_token_cache() -> None:
    _token_cache["token"] = None
    _token_cache["expires_at"] = 0.0


def format_french_date(value: str) -> str:
    """Format an ISO date as e.g. '5 mars 2024'"""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return f"{parsed.day} {FRENCH_MONTHS[parsed.month - 1]} {parsed.year}"


def format_review(review: dict) -> dict:
    return {
        "id": review.get("_id"),
        "author": review.get("name_user_reviews"),
        "avatar": review.get("img_user_reviews"),
        "rating": review.get("score_reviews"),
        "date": format_french_date(review["date"]) if review.get("date") else None,
        "comment": review.get("content_reviews"),
        "source": review.get("type_source_reviews"),
    }


class RevyoosService:
    def __init__(
        self,
        email: Optional[str] = None,
        password: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.email = email if email is not None else REVYOOS_EMAIL
        self.password = password if password is not None else REVYOOS_PASSWORD
        self.transport = transport
        self.clock = clock

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=REVYOOS_API_BASE, timeout=30.0, transport=self.transport)

    async def get_token(self, client: httpx.AsyncClient) -> str:
        if _token_cache["token"] and self.clock() < _token_cache["expires_at"]:
            return _token_cache["token"]

        if not self.email or not self.password:
            raise NotConfiguredError("Revyoos credentials are not set in environment variables.")

        hashed_password = hashlib.sha1(self.password.encode("utf-8")).hexdigest()
        response = await client.get("/signin", params={"email": self.email, "password": hashed_password})
        try:
            data = response.json()
        except ValueError as e:
            raise IntegrationError("Revyoos sign-in failed: invalid response") from e

        if not data.get("b_valid") or not data.get("s_token"):
            raise IntegrationError(
                f"Revyoos sign-in failed: {data.get('s_message') or 'No token returned'}"
            )

        _token_cache["token"] = data["s_token"]
        _token_cache["expires_at"] = self.clock() + TOKEN_TTL_SECONDS
        logger.info("🔑 Revyoos token refreshed")
        return data["s_token"]

    async def _fetch_holding_reviews(self, client: httpx.AsyncClient, holding_id: str, token: str) -> list[dict]:
        """Fetch every page for one holding, stopping at an empty or invalid page"""
        reviews: list[dict] = []
        page = 1
        while True:
            response = await client.get(
                "/reviews", params={"token": token, "id_holding": holding_id, "page": page}
            )
            try:
                data = response.json()
            except ValueError:
                data = {}
            if not isinstance(data, dict):
                data = {}

            page_reviews = data.get("a_reviews")
            if not data.get("b_valid") or not isinstance(page_reviews, list):
                logger.warning(
                    f"⚠️ Failed to fetch Revyoos reviews for holding {holding_id} on page {page}: "
                    f"{data.get('s_message') or 'Invalid response'}"
                )
                break
            if not page_reviews:
                break
            reviews.extend(page_reviews)
            page += 1
        return reviews

    async def get_reviews(self, holding_ids: Optional[list[str]]) -> list[dict]:
        if not holding_ids:
            return []

        async with self._client() as client:
            token = await self.get_token(client)
            all_reviews: list[dict] = []
            for holding_id in holding_ids:
                all_reviews.extend(await self._fetch_holding_reviews(client, holding_id, token))

        # Same review can be attached to several holdings; last one wins
        unique = {review.get("_id"): review for review in all_reviews}
        logger.info(f"⭐ {len(unique)} unique reviews across {len(holding_ids)} holdings")
        return [format_review(review) for review in unique.values()]
