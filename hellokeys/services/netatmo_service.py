"""
Netatmo Integration Service
Handles the OAuth code exchange, token refresh and proxying of thermostat
and weather station calls on behalf of an owner
"""

import json
import logging
from datetime import datetime, timedelta
from typing import Any, Optional

import httpx
from fastapi import HTTPException
from sqlalchemy.orm import Session

from ..config import NETATMO_CLIENT_ID, NETATMO_CLIENT_SECRET
from ..models_netatmo import NetatmoLog, NetatmoToken
from .errors import IntegrationError, NotConfiguredError

logger = logging.getLogger(__name__)

NETATMO_TOKEN_URL = "https://api.netatmo.com/oauth2/token"
NETATMO_API_BASE = "https://api.netatmo.com/api"

# Refresh when the stored token expires within this window
REFRESH_MARGIN = timedelta(seconds=5)
# Stored expiry is shortened so a token is never used right at its deadline
EXPIRY_SAFETY_SECONDS = 60
PREVIEW_LENGTH = 500
DEFAULT_SCOPE = "read_station"

SUPPORTED_ACTIONS = (
    "homesdata",
    "homestatus",
    "setroomthermpoint",
    "getmeasure",
    "getroommeasure",
    "createnewhomeschedule",
    "switchhomeschedule",
    "setthermmode",
    "getstationsdata",
)


def compute_expiry(expires_in: int, now: Optional[datetime] = None) -> datetime:
    now = now or datetime.utcnow()
    return now + timedelta(seconds=int(expires_in) - EXPIRY_SAFETY_SECONDS)


def clamp_limit(limit: Any) -> Optional[int]:
    if isinstance(limit, bool) or not isinstance(limit, (int, float)):
        return None
    return int(min(max(limit, 1), 1024))


def _bool_param(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return "true" if value else "false"
    return None


def _type_param(value: Any) -> str:
    return ",".join(str(v) for v in value) if isinstance(value, list) else str(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _missing(message: str):
    raise HTTPException(status_code=400, detail=message)


def build_upstream_request(action: str, payload: dict) -> dict:
    """
    Translate a proxy action into the Netatmo request to perform.

    Returns:
        Dict with method, path and one of params/data/json

    Raises:
        HTTPException: 400 when a required field is missing or the action is unknown
    """
    home_id = payload.get("home_id")
    room_id = payload.get("room_id")
    device_id = payload.get("device_id")
    module_id = payload.get("module_id")
    mode = payload.get("mode")
    scale = payload.get("scale")
    type_param = payload.get("type")

    if action == "homesdata":
        return {"method": "GET", "path": "/homesdata", "params": {"home_id": home_id} if home_id else {}}

    if action == "homestatus":
        if not home_id:
            _missing("Missing home_id for homestatus")
        return {"method": "GET", "path": "/homestatus", "params": {"home_id": home_id}}

    if action == "setroomthermpoint":
        if not home_id or not room_id or not mode:
            _missing("Missing required fields: home_id, room_id, mode")
        temp = payload.get("temp")
        if mode == "manual" and not _is_number(temp):
            _missing("Temp is required and must be a number for manual mode")
        form = {"home_id": home_id, "room_id": room_id, "mode": mode}
        if mode == "manual":
            form["temp"] = str(temp)
        endtime = payload.get("endtime")
        if endtime is not None and str(endtime).strip() != "":
            form["endtime"] = str(endtime)
        return {"method": "POST", "path": "/setroomthermpoint", "data": form}

    if action in ("getmeasure", "getroommeasure"):
        if action == "getmeasure":
            if not device_id or not module_id or not scale or not type_param:
                _missing("Missing required fields: device_id, module_id, scale, type")
            params = {"device_id": device_id, "module_id": module_id}
        else:
            if not home_id or not room_id or not scale or not type_param:
                _missing("Missing required fields: home_id, room_id, scale, type")
            params = {"home_id": home_id, "room_id": room_id}
        params["scale"] = scale
        params["type"] = _type_param(type_param)
        for key in ("date_begin", "date_end"):
            if _is_number(payload.get(key)):
                params[key] = str(payload[key])
        limit = clamp_limit(payload.get("limit"))
        if limit is not None:
            params["limit"] = str(limit)
        for key in ("optimize", "real_time"):
            flag = _bool_param(payload.get(key))
            if flag is not None:
                params[key] = flag
        return {"method": "GET", "path": f"/{action}", "params": params}

    if action == "createnewhomeschedule":
        zones = payload.get("zones")
        timetable = payload.get("timetable")
        hg_temp = payload.get("hg_temp")
        away_temp = payload.get("away_temp")
        if (
            not home_id
            or not isinstance(zones, list)
            or not isinstance(timetable, list)
            or not _is_number(hg_temp)
            or not _is_number(away_temp)
        ):
            _missing("Missing required fields: home_id, zones[], timetable[], hg_temp, away_temp")
        body = {
            "home_id": home_id,
            "zones": zones,
            "timetable": timetable,
            "hg_temp": hg_temp,
            "away_temp": away_temp,
        }
        name = payload.get("name")
        if isinstance(name, str) and name.strip():
            body["name"] = name.strip()
        return {"method": "POST", "path": "/createnewhomeschedule", "json": body}

    if action == "switchhomeschedule":
        schedule_id = payload.get("schedule_id")
        if not home_id or not schedule_id:
            _missing("Missing required fields: home_id, schedule_id")
        return {
            "method": "POST",
            "path": "/switchhomeschedule",
            "data": {"home_id": home_id, "schedule_id": schedule_id},
        }

    if action == "setthermmode":
        if not home_id or not mode:
            _missing("Missing required fields: home_id, mode")
        return {"method": "POST", "path": "/setthermmode", "data": {"home_id": home_id, "mode": mode}}

    if action == "getstationsdata":
        return {
            "method": "GET",
            "path": "/getstationsdata",
            "params": {"device_id": device_id} if device_id else {},
        }

    raise HTTPException(status_code=400, detail=f"Unsupported endpoint: {action}")


def count_points(action: str, text: str) -> Optional[int]:
    """Number of measurement points in a measure response, None when not applicable"""
    try:
        parsed = json.loads(text)
    except ValueError:
        return None
    if not isinstance(parsed, dict):
        return None

    body = parsed.get("body")
    if action == "getroommeasure":
        values = None
        if isinstance(body, dict):
            home = body.get("home")
            values = home.get("values") if isinstance(home, dict) else None
            if values is None:
                values = body.get("values")
        if isinstance(values, list):
            return len(values)
        if isinstance(body, list) and body:
            first = body[0] if isinstance(body[0], dict) else {}
            value = first.get("value")
            if isinstance(value, list):
                # optimized format: list of lists
                return len(value[0]) if value and isinstance(value[0], list) else len(value)
            return 1
        return None

    if action == "getmeasure":
        items = body.get("items") if isinstance(body, dict) else None
        if isinstance(items, list):
            return len(items)
        return 1 if items else 0

    return None


class NetatmoService:
    def __init__(
        self,
        db: Session,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.db = db
        self.client_id = client_id if client_id is not None else NETATMO_CLIENT_ID
        self.client_secret = client_secret if client_secret is not None else NETATMO_CLIENT_SECRET
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=30.0, transport=self.transport)

    def _ensure_configured(self, message: str) -> None:
        if not self.client_id or not self.client_secret:
            raise NotConfiguredError(message)

    async def exchange_code(self, user_id: str, code: str, redirect_uri: str) -> dict:
        """Exchange an authorization code and upsert the owner's tokens"""
        self._ensure_configured(
            "Server not configured: NETATMO_CLIENT_ID/NETATMO_CLIENT_SECRET missing"
        )

        async with self._client() as client:
            response = await client.post(
                NETATMO_TOKEN_URL,
                data={
                    "grant_type": "authorization_code",
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "code": code,
                    "redirect_uri": redirect_uri,
                },
                headers={"Accept": "application/json"},
            )

        if response.is_error:
            logger.error(f"❌ Netatmo token exchange failed for user {user_id}: {response.status_code}")
            raise IntegrationError(
                "Netatmo token exchange failed",
                status_code=502,
                details={
                    "upstream_status": response.status_code,
                    "body": response.text[:PREVIEW_LENGTH],
                },
            )

        try:
            token_json = response.json()
        except ValueError as e:
            raise IntegrationError("Invalid JSON from Netatmo", status_code=502) from e

        scope = token_json.get("scope") or DEFAULT_SCOPE
        if isinstance(scope, list):
            scope = " ".join(scope)
        expires_at = compute_expiry(token_json.get("expires_in", 0))

        record = self.db.query(NetatmoToken).filter(NetatmoToken.user_id == user_id).first()
        if record is None:
            record = NetatmoToken(user_id=user_id)
            self.db.add(record)
        record.access_token = token_json["access_token"]
        record.refresh_token = token_json["refresh_token"]
        record.scope = scope
        record.expires_at = expires_at
        self.db.commit()

        logger.info(f"✅ Netatmo connected for user {user_id}")
        return {"ok": True, "scope": scope, "expires_at": expires_at.isoformat()}

    def get_token(self, user_id: str) -> NetatmoToken:
        record = self.db.query(NetatmoToken).filter(NetatmoToken.user_id == user_id).first()
        if not record:
            raise HTTPException(status_code=404, detail="Not connected to Netatmo")
        return record

    async def ensure_fresh_token(self, record: NetatmoToken) -> NetatmoToken:
        """Refresh and persist the tokens when they expire within the margin"""
        if record.expires_at > datetime.utcnow() + REFRESH_MARGIN:
            return record

        try:
            self._ensure_configured("Server not configured for Netatmo refresh")
            async with self._client() as client:
                response = await client.post(
                    NETATMO_TOKEN_URL,
                    data={
                        "grant_type": "refresh_token",
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "refresh_token": record.refresh_token,
                    },
                    headers={"Accept": "application/json"},
                )
            if response.is_error:
                raise IntegrationError(
                    f"Netatmo refresh failed: {response.status_code} {response.text[:PREVIEW_LENGTH]}"
                )
            token_json = response.json()
        except (IntegrationError, httpx.HTTPError, ValueError) as e:
            logger.error(f"❌ Netatmo token refresh failed for user {record.user_id}: {e}")
            raise IntegrationError("Refresh failed", status_code=502, details=str(e)) from e

        record.access_token = token_json["access_token"]
        record.refresh_token = token_json["refresh_token"]
        record.scope = token_json.get("scope") or record.scope
        if isinstance(record.scope, list):
            record.scope = " ".join(record.scope)
        record.expires_at = compute_expiry(token_json.get("expires_in", 0))
        self.db.commit()

        logger.info(f"🔄 Netatmo token refreshed for user {record.user_id}")
        return record

    def _log_call(
        self,
        user_id: str,
        action: str,
        params: dict,
        status_code: int,
        preview: str,
        error: Optional[str],
        points: Optional[int],
    ) -> None:
        try:
            self.db.add(
                NetatmoLog(
                    user_id=user_id,
                    endpoint=action,
                    params=params,
                    response_status=status_code,
                    body_preview=preview,
                    error=error,
                    count_points=points,
                )
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.warning(f"⚠️ Netatmo log insert failed: {e}")

    async def proxy(self, user_id: str, payload: dict) -> tuple[str, str]:
        """
        Forward one action to the Netatmo API with the owner's tokens.

        Returns:
            Tuple of (response_text, content_type)

        Raises:
            IntegrationError: with the upstream status when Netatmo rejects the call
        """
        action = payload.get("endpoint") or "homesdata"
        if action not in SUPPORTED_ACTIONS:
            raise HTTPException(status_code=400, detail=f"Unsupported endpoint: {action}")

        record = await self.ensure_fresh_token(self.get_token(user_id))
        upstream = build_upstream_request(action, payload)

        async with self._client() as client:
            response = await client.request(
                upstream["method"],
                f"{NETATMO_API_BASE}{upstream['path']}",
                params=upstream.get("params"),
                data=upstream.get("data"),
                json=upstream.get("json"),
                headers={
                    "Authorization": f"Bearer {record.access_token}",
                    "Accept": "application/json",
                },
            )

        text = response.text
        preview = text[:PREVIEW_LENGTH] if text else ""
        points = count_points(action, text)
        log_params = {
            key: payload.get(key)
            for key in (
                "home_id",
                "room_id",
                "device_id",
                "module_id",
                "scale",
                "type",
                "date_begin",
                "date_end",
                "real_time",
                "optimize",
                "mode",
                "temp",
                "endtime",
                "name",
                "hg_temp",
                "away_temp",
            )
        }
        log_params["url"] = str(response.request.url)
        zones = payload.get("zones")
        timetable = payload.get("timetable")
        log_params["zones_len"] = len(zones) if isinstance(zones, list) else None
        log_params["timetable_len"] = len(timetable) if isinstance(timetable, list) else None

        if response.is_error:
            self._log_call(user_id, action, log_params, response.status_code, preview, preview, points)
            logger.warning(f"⚠️ Netatmo {action} returned {response.status_code} for user {user_id}")
            raise IntegrationError(
                "Netatmo upstream error",
                status_code=response.status_code,
                details={"status": response.status_code, "body": preview},
            )

        self._log_call(user_id, action, log_params, response.status_code, preview, None, points)
        return text, response.headers.get("content-type", "application/json")
