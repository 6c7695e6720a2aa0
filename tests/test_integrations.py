import json
from urllib.parse import parse_qs

import httpx
from fastapi import HTTPException

from hellokeys import email_service
from hellokeys.main import app
from hellokeys.models import Profile
from hellokeys.routes.admin_users import get_identity_admin_service
from hellokeys.routes.bilan import get_openai_service
from hellokeys.routes.email import limit_public_email
from hellokeys.routes.pennylane import get_pennylane_service
from hellokeys.routes.support import get_freshdesk_service
from hellokeys.routes.verification import get_twilio_service
from hellokeys.services.freshdesk_service import FreshdeskService
from hellokeys.services.identity_admin import IdentityAdminService
from hellokeys.services.openai_service import OpenAIService
from hellokeys.services.pennylane_service import PennylaneService
from hellokeys.services.twilio_service import TwilioVerifyService
from hellokeys.shared.validators import normalize_fr_phone


def twilio_with(handler):
    return TwilioVerifyService(
        account_sid="AC123",
        auth_token="token",
        service_sid="VA123",
        transport=httpx.MockTransport(handler),
    )


def test_twilio_configuration_problems_are_reported(client, owner_headers):
    service = TwilioVerifyService(account_sid="", auth_token="", service_sid="XX1")
    app.dependency_overrides[get_twilio_service] = lambda: service

    response = client.post("/verification/sms/send", json={"phone_number": "0612345678"}, headers=owner_headers)

    assert response.status_code == 500
    assert response.json()["details"]["missing"] == ["TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN"]
    assert response.json()["details"]["invalid"] == ['TWILIO_VERIFY_SERVICE_SID doit commencer par "VA"']


def test_sms_code_is_sent_to_normalized_number(client, owner_headers):
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(201, json={"status": "pending"})

    app.dependency_overrides[get_twilio_service] = lambda: twilio_with(handler)

    response = client.post("/verification/sms/send", json={"phone_number": "06 12 34 56 78"}, headers=owner_headers)

    assert response.json() == {"success": True, "phone_number": "+33612345678"}
    assert requests[0].url.path == "/v2/Services/VA123/Verifications"
    assert parse_qs(requests[0].content.decode()) == {"To": ["+33612345678"], "Channel": ["sms"]}


def test_approved_code_stores_phone_on_profile(client, db, owner, owner_headers):
    app.dependency_overrides[get_twilio_service] = lambda: twilio_with(
        lambda request: httpx.Response(200, json={"status": "approved"})
    )

    response = client.post(
        "/verification/sms/verify",
        json={"phone_number": "0033612345678", "code": "123456"},
        headers=owner_headers,
    )

    assert response.status_code == 200
    db.expire_all()
    assert db.query(Profile).filter(Profile.id == owner.id).one().phone_number == "+33612345678"


def test_rejected_code_leaves_profile_untouched(client, db, owner, owner_headers):
    app.dependency_overrides[get_twilio_service] = lambda: twilio_with(
        lambda request: httpx.Response(200, json={"status": "pending"})
    )

    response = client.post(
        "/verification/sms/verify",
        json={"phone_number": "0612345678", "code": "000000"},
        headers=owner_headers,
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Code invalide ou expiré."}
    db.expire_all()
    assert db.query(Profile).filter(Profile.id == owner.id).one().phone_number is None


def test_normalize_fr_phone_variants():
    assert normalize_fr_phone("06 12 34 56 78") == "+33612345678"
    assert normalize_fr_phone("+33 6 12 34 56 78") == "+33612345678"
    assert normalize_fr_phone("33612345678") == "+33612345678"
    assert normalize_fr_phone("+330612345678") == "+33612345678"


def test_authenticated_email_send(client, owner_headers, monkeypatch):
    sent = []

    async def fake_send_email(to, subject, html_content, from_address=None):
        sent.append(to)
        return {"id": "email_1"}

    monkeypatch.setattr(email_service, "send_email", fake_send_email)

    response = client.post(
        "/email/send",
        json={"to": "guest@example.com", "subject": "Bienvenue", "html": "<p>Bonjour</p>"},
        headers=owner_headers,
    )
    assert response.json() == {"success": True, "data": {"id": "email_1"}}
    assert sent == ["guest@example.com"]

    assert client.post("/email/send", json={"to": "a@b.fr", "subject": "x", "html": "y"}).status_code == 401


def test_public_email_is_rate_limited(client, monkeypatch):
    async def fake_send_email(to, subject, html_content, from_address=None):
        return {"id": "email_2"}

    monkeypatch.setattr(email_service, "send_email", fake_send_email)
    payload = {"to": "contact@hellokeys.fr", "subject": "Contact", "html": "<p>Hello</p>"}

    app.dependency_overrides[limit_public_email] = lambda: None
    assert client.post("/email/send-public", json=payload).status_code == 200

    def exhausted():
        raise HTTPException(status_code=429, detail="Rate limit exceeded", headers={"Retry-After": "60"})

    app.dependency_overrides[limit_public_email] = exhausted
    limited = client.post("/email/send-public", json=payload)
    assert limited.status_code == 429
    assert limited.headers["Retry-After"] == "60"


def test_email_rejects_invalid_recipient(client, owner_headers):
    response = client.post(
        "/email/send", json={"to": "nope", "subject": "x", "html": "y"}, headers=owner_headers
    )
    assert response.status_code == 422


def test_pennylane_without_customer_returns_no_invoices(client, owner, owner_headers):
    response = client.get("/pennylane/invoices", headers=owner_headers)
    assert response.json() == {"items": []}


def test_pennylane_invoices_are_filtered_by_customer(client, db, owner, owner_headers):
    owner.pennylane_customer_id = "4242"
    db.commit()
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"items": [{"id": 1}], "has_more": False})

    app.dependency_overrides[get_pennylane_service] = lambda: PennylaneService(
        api_key="pl-key", transport=httpx.MockTransport(handler)
    )

    response = client.get("/pennylane/invoices", headers=owner_headers)

    assert response.json()["items"] == [{"id": 1}]
    params = requests[0].url.params
    assert params["sort"] == "-date"
    assert json.loads(params["filter"]) == [{"field": "customer_id", "operator": "eq", "value": "4242"}]


def test_support_ticket_defaults(client, owner, owner_headers):
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(201, json={"id": 77, "subject": "Fuite"})

    app.dependency_overrides[get_freshdesk_service] = lambda: FreshdeskService(
        domain="hellokeys.freshdesk.com", api_key="fd-key", transport=httpx.MockTransport(handler)
    )

    response = client.post(
        "/support/tickets",
        json={"subject": "Fuite", "description": "Fuite sous l'évier"},
        headers=owner_headers,
    )

    assert response.status_code == 201
    body = json.loads(requests[0].content)
    assert body == {
        "email": "owner@example.com",
        "subject": "Fuite",
        "description": "Fuite sous l'évier",
        "priority": 1,
        "status": 2,
        "source": 2,
    }


def test_support_ticket_requires_description(client, owner_headers):
    response = client.post("/support/tickets", json={"subject": "Fuite"}, headers=owner_headers)
    assert response.status_code == 422


BILAN = {
    "year": 2024,
    "totals": {
        "totalCA": 24000,
        "totalMontantVerse": 18000,
        "totalFrais": 3000,
        "totalDepenses": 1200,
        "resultatNet": 13800,
    },
    "monthly": [
        {
            "name": "Juillet",
            "ca": 5000,
            "montantVerse": 4000,
            "frais": 500,
            "benef": 3500,
            "nuits": 28,
            "reservations": 6,
            "prixParNuit": 178.5,
        }
    ],
}


def test_bilan_analysis_falls_back_when_model_is_silent(client, owner_headers):
    prompts = []

    def handler(request):
        prompts.append(json.loads(request.content)["messages"][1]["content"])
        return httpx.Response(200, json={"choices": [{"message": {"content": ""}}]})

    app.dependency_overrides[get_openai_service] = lambda: OpenAIService(
        api_key="sk-test", transport=httpx.MockTransport(handler)
    )

    response = client.post("/bilan/analysis", json=BILAN, headers=owner_headers)

    assert response.json() == {"analysis": "Analyse indisponible."}
    assert "2024" in prompts[0]
    assert "réservations: 6" in prompts[0]


def test_bilan_analysis_validates_payload(client, owner_headers):
    response = client.post("/bilan/analysis", json={"year": 2024, "totals": {}}, headers=owner_headers)
    assert response.status_code == 422


def identity_with(handler):
    return IdentityAdminService(
        base_url="https://project.supabase.co",
        service_role_key="service-role",
        transport=httpx.MockTransport(handler),
    )


def test_admin_update_merges_metadata_and_clears_blank_fields(client, db, owner, admin_headers):
    owner.agency = "Marseille"
    db.commit()
    puts = []

    def handler(request):
        if request.method == "GET":
            return httpx.Response(200, json={"id": owner.id, "user_metadata": {"locale": "fr", "role": "user"}})
        puts.append(json.loads(request.content))
        return httpx.Response(200, json={"id": owner.id})

    app.dependency_overrides[get_identity_admin_service] = lambda: identity_with(handler)

    response = client.put(
        f"/admin/users/{owner.id}",
        json={"last_name": "Bernard", "role": "accountant", "agency": ""},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert puts == [{"user_metadata": {"locale": "fr", "role": "accountant", "last_name": "Bernard"}}]
    db.expire_all()
    profile = db.query(Profile).filter(Profile.id == owner.id).one()
    assert profile.last_name == "Bernard"
    assert profile.role == "accountant"
    assert profile.agency is None


def test_admin_update_without_metadata_fields_skips_identity_service(client, db, owner, admin_headers):
    def handler(request):
        raise AssertionError("identity service should not be called")

    app.dependency_overrides[get_identity_admin_service] = lambda: identity_with(handler)

    response = client.put(f"/admin/users/{owner.id}", json={"commission_rate": 0.2}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["commission_rate"] == 0.2


def test_admin_list_users_merges_identity_data(client, owner, admin_headers):
    def handler(request):
        return httpx.Response(
            200,
            json={"users": [{"id": owner.id, "email": "new@example.com", "last_sign_in_at": "2025-06-01T10:00:00Z"}]},
        )

    app.dependency_overrides[get_identity_admin_service] = lambda: identity_with(handler)

    users = client.get("/admin/users", headers=admin_headers).json()
    listed = next(u for u in users if u["id"] == owner.id)
    assert listed["email"] == "new@example.com"
    assert listed["last_sign_in_at"] == "2025-06-01T10:00:00Z"


def test_admin_create_user_confirms_email(client, admin_headers):
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"id": "new-user", "email": "neo@example.com"})

    app.dependency_overrides[get_identity_admin_service] = lambda: identity_with(handler)

    response = client.post(
        "/admin/users",
        json={"email": "neo@example.com", "password": "secret123", "first_name": "Neo", "last_name": "Lee"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert bodies[0]["email_confirm"] is True
    assert bodies[0]["user_metadata"] == {"first_name": "Neo", "last_name": "Lee", "role": "user"}


def test_admin_update_ignores_blank_values_for_required_profile_columns(client, db, owner, admin_headers):
    owner.kyc_status = "verified"
    db.commit()

    def handler(request):
        raise AssertionError("identity service should not be called")

    app.dependency_overrides[get_identity_admin_service] = lambda: identity_with(handler)

    response = client.put(
        f"/admin/users/{owner.id}",
        json={"kyc_status": "", "is_banned": "", "expenses_module_enabled": "", "role": "", "agency": "Nice"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["kyc_status"] == "verified"
    assert body["is_banned"] is False
    assert body["expenses_module_enabled"] is False
    assert body["role"] == "user"
    assert body["agency"] == "Nice"
