import hashlib

import httpx
import pytest

from hellokeys.main import app
from hellokeys.routes.reviews import get_revyoos_service
from hellokeys.services.revyoos_service import RevyoosService, clear_token_cache, format_french_date


def review(review_id, date="2024-03-05T10:00:00Z"):
    return {
        "_id": review_id,
        "name_user_reviews": "Alice",
        "img_user_reviews": None,
        "score_reviews": 5,
        "date": date,
        "content_reviews": "Parfait",
        "type_source_reviews": "airbnb",
    }


class RevyoosStub:
    def __init__(self, pages_by_holding):
        self.pages_by_holding = pages_by_holding
        self.signins = []
        self.review_calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/signin"):
            self.signins.append(dict(request.url.params))
            return httpx.Response(200, json={"b_valid": True, "s_token": "tok"})
        self.review_calls += 1
        holding = request.url.params["id_holding"]
        page = int(request.url.params["page"])
        pages = self.pages_by_holding.get(holding, [])
        reviews = pages[page - 1] if page <= len(pages) else []
        return httpx.Response(200, json={"b_valid": True, "a_reviews": reviews})


@pytest.fixture(autouse=True)
def reset_token_cache():
    clear_token_cache()
    yield
    clear_token_cache()


def make_service(stub):
    return RevyoosService(email="ops@hellokeys.fr", password="pw", transport=httpx.MockTransport(stub))


async def test_reviews_are_deduplicated_across_holdings():
    stub = RevyoosStub(
        {
            "h1": [[review("r1"), review("r2")], [review("r3")]],
            "h2": [[review("r2"), review("r4")]],
        }
    )

    reviews = await make_service(stub).get_reviews(["h1", "h2"])

    assert sorted(r["id"] for r in reviews) == ["r1", "r2", "r3", "r4"]
    assert reviews[0]["date"] == "5 mars 2024"
    assert reviews[0]["author"] == "Alice"
    assert reviews[0]["source"] == "airbnb"


async def test_signin_uses_sha1_password_and_token_is_cached():
    stub = RevyoosStub({"h1": [[review("r1")]]})
    service = make_service(stub)

    await service.get_reviews(["h1"])
    await service.get_reviews(["h1"])

    assert len(stub.signins) == 1
    assert stub.signins[0]["password"] == hashlib.sha1(b"pw").hexdigest()


async def test_no_holdings_returns_empty_list_without_calls():
    stub = RevyoosStub({})
    assert await make_service(stub).get_reviews([]) == []
    assert stub.signins == []


async def test_invalid_page_stops_pagination():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/signin"):
            return httpx.Response(200, json={"b_valid": True, "s_token": "tok"})
        if request.url.params["page"] == "1":
            return httpx.Response(200, json={"b_valid": True, "a_reviews": [review("r1")]})
        return httpx.Response(500, text="oops")

    reviews = await RevyoosService(
        email="ops@hellokeys.fr", password="pw", transport=httpx.MockTransport(handler)
    ).get_reviews(["h1"])
    assert [r["id"] for r in reviews] == ["r1"]


def test_french_date_formatting():
    assert format_french_date("2024-08-15") == "15 août 2024"
    assert format_french_date("2023-12-01T08:00:00Z") == "1 décembre 2023"


def test_reviews_route_falls_back_to_profile_holdings(client, db, owner, owner_headers):
    owner.revyoos_holding_ids = ["h9"]
    db.commit()
    stub = RevyoosStub({"h9": [[review("r9", date="2025-01-02")]]})
    app.dependency_overrides[get_revyoos_service] = lambda: make_service(stub)

    response = client.post("/reviews", json={}, headers=owner_headers)

    assert response.status_code == 200
    assert response.json() == [
        {
            "id": "r9",
            "author": "Alice",
            "avatar": None,
            "rating": 5,
            "date": "2 janvier 2025",
            "comment": "Parfait",
            "source": "airbnb",
        }
    ]
