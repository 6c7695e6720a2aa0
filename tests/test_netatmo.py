from datetime import datetime, timedelta
from urllib.parse import parse_qs

import httpx
import pytest
from fastapi import HTTPException

from hellokeys.main import app
from hellokeys.models_netatmo import NetatmoLog, NetatmoToken
from hellokeys.routes.netatmo import get_netatmo_service
from hellokeys.services.errors import IntegrationError
from hellokeys.services.netatmo_service import (
    NetatmoService,
    build_upstream_request,
    clamp_limit,
    count_points,
)


def store_token(db, user_id, expires_in_seconds):
    record = NetatmoToken(
        user_id=user_id,
        access_token="old-access",
        refresh_token="old-refresh",
        scope="read_thermostat",
        expires_at=datetime.utcnow() + timedelta(seconds=expires_in_seconds),
    )
    db.add(record)
    db.commit()
    return record


class NetatmoStub:
    def __init__(self, refresh_status=200):
        self.refresh_status = refresh_status
        self.calls = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if request.url.path == "/oauth2/token":
            if self.refresh_status != 200:
                return httpx.Response(self.refresh_status, json={"error": "invalid_grant"})
            return httpx.Response(
                200,
                json={"access_token": "new-access", "refresh_token": "new-refresh", "expires_in": 10800},
            )
        return httpx.Response(200, json={"body": {"homes": []}, "status": "ok"})


async def test_token_close_to_expiry_is_refreshed_and_persisted(db, owner):
    store_token(db, owner.id, expires_in_seconds=3)
    stub = NetatmoStub()
    service = NetatmoService(db, client_id="cid", client_secret="secret", transport=httpx.MockTransport(stub))

    text, content_type = await service.proxy(owner.id, {"endpoint": "homesdata"})

    assert '"homes"' in text
    assert content_type.startswith("application/json")
    assert [call.url.path for call in stub.calls] == ["/oauth2/token", "/api/homesdata"]
    refresh_form = parse_qs(stub.calls[0].content.decode())
    assert refresh_form["grant_type"] == ["refresh_token"]
    assert refresh_form["refresh_token"] == ["old-refresh"]
    assert stub.calls[1].headers["Authorization"] == "Bearer new-access"

    db.expire_all()
    record = db.query(NetatmoToken).filter(NetatmoToken.user_id == owner.id).one()
    assert record.access_token == "new-access"
    assert record.refresh_token == "new-refresh"
    assert record.expires_at > datetime.utcnow() + timedelta(hours=2)


async def test_valid_token_is_used_without_refresh(db, owner):
    store_token(db, owner.id, expires_in_seconds=3600)
    stub = NetatmoStub()
    service = NetatmoService(db, client_id="cid", client_secret="secret", transport=httpx.MockTransport(stub))

    await service.proxy(owner.id, {"endpoint": "homestatus", "home_id": "h1"})

    assert [call.url.path for call in stub.calls] == ["/api/homestatus"]
    log = db.query(NetatmoLog).one()
    assert log.endpoint == "homestatus"
    assert log.response_status == 200
    assert log.error is None


async def test_refresh_failure_is_a_502(db, owner):
    store_token(db, owner.id, expires_in_seconds=-10)
    stub = NetatmoStub(refresh_status=400)
    service = NetatmoService(db, client_id="cid", client_secret="secret", transport=httpx.MockTransport(stub))

    with pytest.raises(IntegrationError) as exc_info:
        await service.proxy(owner.id, {"endpoint": "homesdata"})
    assert exc_info.value.status_code == 502
    assert exc_info.value.message == "Refresh failed"


def test_proxy_without_stored_token_is_404(client, owner, owner_headers):
    response = client.post("/netatmo/proxy", json={"endpoint": "homesdata"}, headers=owner_headers)
    assert response.status_code == 404
    assert response.json() == {"error": "Not connected to Netatmo"}


def test_proxy_accepts_cron_secret_with_user_id(client, db, owner):
    store_token(db, owner.id, expires_in_seconds=3600)
    stub = NetatmoStub()
    service = NetatmoService(db, client_id="cid", client_secret="secret", transport=httpx.MockTransport(stub))
    app.dependency_overrides[get_netatmo_service] = lambda: service

    response = client.post(
        "/netatmo/proxy",
        json={"endpoint": "homesdata", "cron_secret": "test-cron-secret", "user_id": owner.id},
    )
    assert response.status_code == 200
    assert response.json() == {"body": {"homes": []}, "status": "ok"}


def test_proxy_rejects_invalid_json(client, owner_headers):
    response = client.post(
        "/netatmo/proxy",
        content=b"{not json",
        headers={**owner_headers, "Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid JSON body"}


def test_auth_exchange_upserts_tokens(client, db, owner, owner_headers):
    stub = NetatmoStub()
    service = NetatmoService(db, client_id="cid", client_secret="secret", transport=httpx.MockTransport(stub))
    app.dependency_overrides[get_netatmo_service] = lambda: service

    response = client.post(
        "/netatmo/auth",
        json={"code": "abc", "redirect_uri": "https://app.example.com/netatmo"},
        headers=owner_headers,
    )
    assert response.status_code == 200
    assert response.json()["ok"] is True
    assert response.json()["scope"] == "read_station"

    db.expire_all()
    assert db.query(NetatmoToken).filter(NetatmoToken.user_id == owner.id).one().access_token == "new-access"


def test_setroomthermpoint_requires_numeric_temp_in_manual_mode():
    with pytest.raises(HTTPException) as exc_info:
        build_upstream_request(
            "setroomthermpoint", {"home_id": "h", "room_id": "r", "mode": "manual", "temp": "20"}
        )
    assert exc_info.value.status_code == 400


def test_getroommeasure_clamps_limit_and_joins_types():
    request = build_upstream_request(
        "getroommeasure",
        {"home_id": "h", "room_id": "r", "scale": "1hour", "type": ["temperature", "sp_temperature"], "limit": 5000},
    )
    assert request["params"]["limit"] == "1024"
    assert request["params"]["type"] == "temperature,sp_temperature"
    assert clamp_limit(0) == 1
    assert clamp_limit("12") is None


def test_count_points_for_measures():
    assert count_points("getmeasure", '{"body": {"items": [1, 2, 3]}}') == 3
    assert count_points("getroommeasure", '{"body": {"home": {"values": [1, 2]}}}') == 2
    assert count_points("homesdata", '{"body": {}}') is None
