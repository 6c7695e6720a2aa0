import json
from urllib.parse import parse_qs

import httpx

from hellokeys.domain.payouts.router import get_stripe_service
from hellokeys.main import app
from hellokeys.models_invoice import Invoice
from hellokeys.services.stripe_service import StripeService, collect_reconcilable_invoice_ids


class StripeStub:
    """Records requests and answers them from a route table"""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        key = (request.method, request.url.path)
        status, body = self.routes[key]
        return httpx.Response(status, json=body)

    def paths(self, method=None):
        return [r.url.path for r in self.calls if method is None or r.method == method]


def use_stripe(stub: StripeStub):
    service = StripeService(secret_key="sk_test_123", transport=httpx.MockTransport(stub))
    app.dependency_overrides[get_stripe_service] = lambda: service


def add_invoices(db, owner, count=2):
    invoices = [Invoice(user_id=owner.id, period=f"Mois {i}", total_amount=100.0) for i in range(count)]
    db.add_all(invoices)
    db.commit()
    return [invoice.id for invoice in invoices]


def test_failed_payout_reverses_transfer_and_keeps_invoices_open(client, db, owner, admin_headers):
    invoice_ids = add_invoices(db, owner)
    stub = StripeStub(
        {
            ("POST", "/v1/transfers"): (200, {"id": "tr_1", "object": "transfer"}),
            ("POST", "/v1/payouts"): (400, {"error": {"message": "Insufficient funds"}}),
            ("POST", "/v1/transfers/tr_1/reversals"): (200, {"id": "trr_1"}),
        }
    )
    use_stripe(stub)

    response = client.post(
        "/stripe/payouts",
        json={
            "destination_account_id": "acct_owner",
            "amount": 15000,
            "currency": "EUR",
            "invoice_ids": invoice_ids,
        },
        headers=admin_headers,
    )

    assert response.status_code == 500
    assert response.json()["error"] == (
        "Stripe Payout API error: Insufficient funds. The initial transfer has been reversed."
    )
    assert stub.paths("POST").count("/v1/transfers/tr_1/reversals") == 1

    payout_request = next(r for r in stub.calls if r.url.path == "/v1/payouts")
    assert payout_request.headers["Stripe-Account"] == "acct_owner"

    db.expire_all()
    assert db.query(Invoice).filter(Invoice.transfer_completed.is_(True)).count() == 0


def test_successful_payout_marks_invoices_completed(client, db, owner, admin_headers):
    invoice_ids = add_invoices(db, owner, count=3)
    stub = StripeStub(
        {
            ("POST", "/v1/transfers"): (200, {"id": "tr_2", "object": "transfer"}),
            ("POST", "/v1/payouts"): (200, {"id": "po_2", "object": "payout"}),
        }
    )
    use_stripe(stub)

    response = client.post(
        "/stripe/payouts",
        json={
            "destination_account_id": "acct_owner",
            "amount": 30000,
            "currency": "eur",
            "invoice_ids": invoice_ids,
            "description": "Relevé juin",
        },
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "transfer": {"id": "tr_2", "object": "transfer"},
        "payout": {"id": "po_2", "object": "payout"},
    }

    transfer_form = parse_qs(stub.calls[0].content.decode())
    assert transfer_form["metadata[invoice_ids]"] == [",".join(invoice_ids)]
    assert transfer_form["transfer_group"] == [f"INVOICES-{invoice_ids[0]}"]
    assert "/v1/transfers/tr_2/reversals" not in stub.paths()

    db.expire_all()
    assert db.query(Invoice).filter(Invoice.transfer_completed.is_(True)).count() == 3


def test_reconcile_skips_reversed_transfers_and_completed_invoices(client, db, owner, admin_headers):
    pending, already_done, reversed_only = add_invoices(db, owner, count=3)
    db.query(Invoice).filter(Invoice.id == already_done).update({Invoice.transfer_completed: True})
    db.commit()

    stub = StripeStub(
        {
            ("GET", "/v1/transfers"): (
                200,
                {
                    "object": "list",
                    "data": [
                        {"id": "tr_a", "reversed": False, "metadata": {"invoice_ids": f"{pending},{already_done}"}},
                        {"id": "tr_b", "reversed": True, "metadata": {"invoice_ids": reversed_only}},
                        {"id": "tr_c", "reversed": False, "metadata": {}},
                    ],
                },
            ),
        }
    )
    use_stripe(stub)

    response = client.post("/stripe/reconcile", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"updatedCount": 1}

    db.expire_all()
    completed = {i.id for i in db.query(Invoice).filter(Invoice.transfer_completed.is_(True))}
    assert completed == {pending, already_done}


def test_reconcile_with_nothing_to_do(client, db, owner, admin_headers):
    use_stripe(StripeStub({("GET", "/v1/transfers"): (200, {"object": "list", "data": []})}))
    response = client.post("/stripe/reconcile", headers=admin_headers)
    assert response.json()["updatedCount"] == 0


def test_single_payment_intent_is_wrapped_as_list(client, admin_headers):
    use_stripe(
        StripeStub(
            {("GET", "/v1/payment_intents/pi_1"): (200, {"id": "pi_1", "object": "payment_intent"})}
        )
    )
    response = client.get("/stripe/payment-intents?id=pi_1", headers=admin_headers)
    assert response.json() == {
        "object": "list",
        "data": [{"id": "pi_1", "object": "payment_intent"}],
        "has_more": False,
    }


def test_list_accounts_follows_pagination(client, admin_headers):
    pages = iter(
        [
            {"data": [{"id": "acct_1"}, {"id": "acct_2"}], "has_more": True},
            {"data": [{"id": "acct_3"}], "has_more": False},
        ]
    )
    seen_cursors = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_cursors.append(request.url.params.get("starting_after"))
        return httpx.Response(200, json=next(pages))

    service = StripeService(secret_key="sk_test_123", transport=httpx.MockTransport(handler))
    app.dependency_overrides[get_stripe_service] = lambda: service

    response = client.get("/stripe/accounts", headers=admin_headers)
    assert [a["id"] for a in response.json()] == ["acct_1", "acct_2", "acct_3"]
    assert seen_cursors == [None, "acct_2"]


def test_create_account_rejects_invalid_email(client, admin_headers):
    response = client.post(
        "/stripe/accounts", json={"email": "nope", "country": "FR"}, headers=admin_headers
    )
    assert response.status_code == 422


def test_create_account_surfaces_stripe_error(client, admin_headers):
    use_stripe(
        StripeStub(
            {("POST", "/v1/accounts"): (400, {"error": {"message": "Country not supported"}})}
        )
    )
    response = client.post(
        "/stripe/accounts", json={"email": "owner@example.com", "country": "fr"}, headers=admin_headers
    )
    assert response.status_code == 400
    assert "Country not supported" in response.json()["error"]
    assert response.json()["details"] == {"message": "Country not supported"}


def test_stripe_routes_are_admin_only(client, owner_headers):
    assert client.get("/stripe/accounts", headers=owner_headers).status_code == 403


def test_collect_reconcilable_invoice_ids_trims_values():
    transfers = [{"metadata": {"invoice_ids": " a , b,,c "}, "reversed": False}]
    assert collect_reconcilable_invoice_ids(transfers) == {"a", "b", "c"}


def test_payout_request_is_validated(client, admin_headers):
    response = client.post(
        "/stripe/payouts",
        json={"destination_account_id": "acct", "amount": 0, "currency": "eur", "invoice_ids": []},
        headers=admin_headers,
    )
    assert response.status_code == 422
    assert json.loads(response.content)["detail"]
