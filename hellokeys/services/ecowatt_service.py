"""
RTE Ecowatt Service
Fetches grid-tension signals with an in-process cache that absorbs RTE rate
limiting, falling back to the last good payload when RTE answers 429
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

import httpx
from sqlalchemy.orm import Session

from ..config import RTE_CLIENT_ID, RTE_CLIENT_SECRET
from ..models import AppSetting
from .errors import IntegrationError, NotConfiguredError

logger = logging.getLogger(__name__)

RTE_TOKEN_URL = "https://digital.iservices.rte-france.com/token/oauth/"
RTE_SIGNALS_URL = "https://digital.iservices.rte-france.com/open_api/ecowatt/v5/signals"

LAST_OK_KEY = "ecowatt_last_ok_payload"

SIGNALS_TTL_SECONDS = 5 * 60
RETRY_AFTER_DEFAULT = 60
RETRY_AFTER_MIN = 60
RETRY_AFTER_MAX = 600
STALE_MAX_AGE_SECONDS = 6 * 60 * 60
TOKEN_SAFETY_SECONDS = 60


@dataclass
class EcowattResult:
    text: str
    status_code: int
    cache: str  # HIT, MISS, STALE, STALE_DB
    original_status: Optional[int] = None


class EcowattCache:
    """Process-wide token and signals cache, lost on restart"""

    def __init__(self):
        self.token: Optional[str] = None
        self.token_expires_at: float = 0.0
        # Raw upstream response (200 or 429) and its expiry
        self.signals_text: Optional[str] = None
        self.signals_status: int = 0
        self.signals_expires_at: float = 0.0
        # Last successful payload, served as STALE on 429
        self.last_ok_text: Optional[str] = None
        self.last_ok_at: float = 0.0

    def clear(self) -> None:
        self.__init__()


ecowatt_cache = EcowattCache()


def retry_after_seconds(header_value: Optional[str]) -> int:
    """Parse Retry-After and clamp it to 60..600 seconds"""
    try:
        seconds = int(header_value or "")
    except ValueError:
        seconds = RETRY_AFTER_DEFAULT
    if seconds <= 0:
        seconds = RETRY_AFTER_DEFAULT
    return max(RETRY_AFTER_MIN, min(seconds, RETRY_AFTER_MAX))


class EcowattService:
    def __init__(
        self,
        db: Session,
        cache: Optional[EcowattCache] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.db = db
        self.cache = cache if cache is not None else ecowatt_cache
        self.client_id = client_id if client_id is not None else RTE_CLIENT_ID
        self.client_secret = client_secret if client_secret is not None else RTE_CLIENT_SECRET
        self.transport = transport
        self.clock = clock

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=20.0, transport=self.transport)

    async def get_token(self, client: httpx.AsyncClient) -> str:
        """Client-credentials token, cached until shortly before it expires"""
        now = self.clock()
        if self.cache.token and self.cache.token_expires_at > now:
            logger.debug("✅ Using cached RTE token")
            return self.cache.token

        if not self.client_id or not self.client_secret:
            logger.error("❌ Missing RTE_CLIENT_ID or RTE_CLIENT_SECRET")
            raise NotConfiguredError("Missing RTE_CLIENT_ID or RTE_CLIENT_SECRET environment variables")

        response = await client.post(
            RTE_TOKEN_URL,
            data={"grant_type": "client_credentials"},
            auth=(self.client_id, self.client_secret),
            headers={"Accept": "application/json"},
        )
        if response.is_error:
            logger.error(f"❌ Failed to obtain RTE token: {response.status_code} - {response.text}")
            raise IntegrationError(f"Failed to obtain token: {response.status_code}")

        token_json = response.json()
        expires_in = token_json.get("expires_in") or 3600
        self.cache.token = token_json["access_token"]
        self.cache.token_expires_at = self.clock() + expires_in - TOKEN_SAFETY_SECONDS
        logger.info(f"🔑 RTE token obtained, expires in ~{expires_in}s")
        return self.cache.token

    def _save_last_ok(self, text: str) -> None:
        try:
            payload = {"data": json.loads(text), "fetched_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())}
            setting = self.db.query(AppSetting).filter(AppSetting.key == LAST_OK_KEY).first()
            if setting:
                setting.value = payload
            else:
                self.db.add(AppSetting(key=LAST_OK_KEY, value=payload))
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.warning(f"⚠️ Failed to persist last Ecowatt payload: {e}")

    def _load_last_ok(self) -> Optional[str]:
        try:
            setting = self.db.query(AppSetting).filter(AppSetting.key == LAST_OK_KEY).first()
        except Exception as e:
            logger.warning(f"⚠️ Failed to load last Ecowatt payload: {e}")
            return None
        value = setting.value if setting else None
        if isinstance(value, dict) and value.get("data"):
            return json.dumps(value["data"])
        return None

    async def get_signals(self) -> EcowattResult:
        now = self.clock()
        if self.cache.signals_text is not None and self.cache.signals_expires_at > now:
            logger.debug("✅ Ecowatt cache HIT")
            return EcowattResult(self.cache.signals_text, self.cache.signals_status, "HIT")

        async with self._client() as client:
            token = await self.get_token(client)
            response = await client.get(
                RTE_SIGNALS_URL,
                headers={"Authorization": f"Bearer {token}", "Accept": "application/json"},
            )

        text = response.text
        status_code = response.status_code

        ttl = 0
        if response.is_success:
            ttl = SIGNALS_TTL_SECONDS
        elif status_code == 429:
            ttl = retry_after_seconds(response.headers.get("Retry-After"))

        # 429s are cached too so RTE is not hammered while it rate limits us
        if ttl:
            self.cache.signals_text = text
            self.cache.signals_status = status_code
            self.cache.signals_expires_at = self.clock() + ttl
            logger.info(f"📦 Ecowatt response ({status_code}) cached for {ttl}s")

        if response.is_success:
            self.cache.last_ok_text = text
            self.cache.last_ok_at = self.clock()
            self._save_last_ok(text)
            return EcowattResult(text, status_code, "MISS")

        if status_code == 429:
            if self.cache.last_ok_text and self.clock() - self.cache.last_ok_at < STALE_MAX_AGE_SECONDS:
                logger.warning("⚠️ RTE rate limited (429), serving last OK payload as STALE")
                return EcowattResult(self.cache.last_ok_text, 200, "STALE", original_status=429)

            db_text = self._load_last_ok()
            if db_text:
                logger.warning("⚠️ RTE rate limited (429), serving stored payload as STALE_DB")
                return EcowattResult(db_text, 200, "STALE_DB", original_status=429)

        return EcowattResult(text, status_code, "MISS")
