import json

import httpx

from hellokeys.main import app
from hellokeys.models import AppSetting
from hellokeys.routes.ecowatt import get_ecowatt_service
from hellokeys.services.ecowatt_service import (
    LAST_OK_KEY,
    EcowattCache,
    EcowattService,
    retry_after_seconds,
)

SIGNALS = {"signals": [{"GenerationFichier": "2025-01-10T00:00:00+01:00", "dvalue": 1}]}


class FakeClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


class RteStub:
    def __init__(self, responses):
        self.responses = list(responses)
        self.token_calls = 0
        self.signal_calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.startswith("/token/oauth"):
            self.token_calls += 1
            return httpx.Response(200, json={"access_token": "rte-token", "expires_in": 7200})
        self.signal_calls += 1
        return self.responses.pop(0)


def make_service(db, stub, cache=None, clock=None):
    return EcowattService(
        db,
        cache=cache or EcowattCache(),
        client_id="rte-id",
        client_secret="rte-secret",
        transport=httpx.MockTransport(stub),
        clock=clock or FakeClock(),
    )


async def test_second_call_is_served_from_cache(db):
    stub = RteStub([httpx.Response(200, json=SIGNALS)])
    service = make_service(db, stub)

    first = await service.get_signals()
    second = await service.get_signals()

    assert first.cache == "MISS"
    assert second.cache == "HIT"
    assert json.loads(second.text) == SIGNALS
    assert stub.signal_calls == 1
    assert stub.token_calls == 1


async def test_rate_limited_call_serves_stale_payload(db):
    clock = FakeClock()
    stub = RteStub(
        [
            httpx.Response(200, json=SIGNALS),
            httpx.Response(429, json={"error": "too many"}, headers={"Retry-After": "120"}),
        ]
    )
    service = make_service(db, stub, clock=clock)

    await service.get_signals()
    clock.now += 301  # signals cache expired, token still valid
    stale = await service.get_signals()

    assert stale.cache == "STALE"
    assert stale.status_code == 200
    assert stale.original_status == 429
    assert json.loads(stale.text) == SIGNALS
    assert stub.token_calls == 1


async def test_rate_limited_after_restart_serves_stored_payload(db):
    db.add(AppSetting(key=LAST_OK_KEY, value={"data": SIGNALS, "fetched_at": "2025-01-10T00:00:00Z"}))
    db.commit()
    stub = RteStub([httpx.Response(429, json={"error": "too many"})])
    service = make_service(db, stub)

    result = await service.get_signals()

    assert result.cache == "STALE_DB"
    assert result.status_code == 200
    assert json.loads(result.text) == SIGNALS


async def test_successful_payload_is_persisted(db):
    stub = RteStub([httpx.Response(200, json=SIGNALS)])
    await make_service(db, stub).get_signals()

    setting = db.query(AppSetting).filter(AppSetting.key == LAST_OK_KEY).one()
    assert setting.value["data"] == SIGNALS


async def test_rate_limit_response_is_cached_for_retry_after(db):
    clock = FakeClock()
    stub = RteStub([httpx.Response(429, json={"error": "too many"}, headers={"Retry-After": "5"})])
    service = make_service(db, stub, clock=clock)

    first = await service.get_signals()
    clock.now += 59
    second = await service.get_signals()

    assert first.status_code == 429
    assert second.cache == "HIT"
    assert stub.signal_calls == 1


def test_retry_after_is_clamped():
    assert retry_after_seconds(None) == 60
    assert retry_after_seconds("abc") == 60
    assert retry_after_seconds("5") == 60
    assert retry_after_seconds("300") == 300
    assert retry_after_seconds("3600") == 600


def test_signals_route_sets_cache_headers(client, db, owner_headers):
    stub = RteStub([httpx.Response(200, json=SIGNALS)])
    service = make_service(db, stub)
    app.dependency_overrides[get_ecowatt_service] = lambda: service

    first = client.get("/ecowatt/signals", headers=owner_headers)
    second = client.get("/ecowatt/signals", headers=owner_headers)

    assert first.headers["X-Cache"] == "MISS"
    assert second.headers["X-Cache"] == "HIT"
    assert "X-Original-Status" not in second.headers
    assert second.json() == SIGNALS
