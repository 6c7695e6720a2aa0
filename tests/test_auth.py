from hellokeys.models import Profile

from .conftest import make_token


def test_missing_token_is_rejected(client):
    response = client.get("/profile")
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_expired_token_is_rejected(client, owner_id):
    token = make_token(owner_id, "owner@example.com", expires_in=-60)
    response = client.get("/profile", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.headers.get("X-Token-Expired") == "true"


def test_token_signed_with_other_secret_is_rejected(client, owner_id):
    from jose import jwt

    token = jwt.encode(
        {"sub": owner_id, "aud": "authenticated", "exp": 9999999999},
        "not-the-secret",
        algorithm="HS256",
    )
    response = client.get("/profile", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_profile_created_from_token_claims(client, db, owner_id, owner_headers):
    response = client.get("/profile", headers=owner_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["id"] == owner_id
    assert body["email"] == "owner@example.com"
    assert body["first_name"] == "Camille"
    assert body["role"] == "user"
    assert db.query(Profile).filter(Profile.id == owner_id).count() == 1


def test_non_admin_gets_403_on_admin_route(client, owner_headers):
    response = client.get("/faqs/admin", headers=owner_headers)
    assert response.status_code == 403
    assert response.json() == {"error": "Forbidden: Admin access required."}


def test_admin_can_reach_admin_route(client, admin_headers):
    response = client.get("/faqs/admin", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == []


def test_banned_user_is_refused(client, db, owner, owner_headers):
    owner.is_banned = True
    db.commit()
    response = client.get("/profile", headers=owner_headers)
    assert response.status_code == 403


def test_profile_update_cannot_change_role(client, owner, owner_headers):
    response = client.put(
        "/profile",
        json={"first_name": "Léa", "role": "admin"},
        headers=owner_headers,
    )
    assert response.status_code == 200
    assert response.json()["first_name"] == "Léa"
    assert response.json()["role"] == "user"
