"""
Stripe Connect Service
Payment intents, connected accounts and owner payouts through the Stripe REST API
"""

import logging
from typing import Optional

import httpx

from ..config import STRIPE_DEFAULT_ONBOARDING_URL, STRIPE_SECRET_KEY
from .errors import IntegrationError, NotConfiguredError

logger = logging.getLogger(__name__)

STRIPE_API_BASE = "https://api.stripe.com/v1"


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("message") or str(error)
    return str(body)


def _error_body(response: httpx.Response) -> Optional[dict]:
    try:
        body = response.json()
    except ValueError:
        return None
    return body.get("error") if isinstance(body, dict) else None


class StripeService:
    """Thin async client over the Stripe REST API using the platform secret key"""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.secret_key = secret_key if secret_key is not None else STRIPE_SECRET_KEY
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        if not self.secret_key:
            raise NotConfiguredError("Stripe secret key is not configured.")
        return httpx.AsyncClient(
            base_url=STRIPE_API_BASE,
            headers={"Authorization": f"Bearer {self.secret_key}"},
            timeout=30.0,
            transport=self.transport,
        )

    async def list_payment_intents(self, payment_intent_id: Optional[str] = None, limit: int = 20) -> dict:
        """
        List recent payment intents with their charge balance transactions.
        A single intent requested by id is wrapped in a list object.
        """
        async with self._client() as client:
            if payment_intent_id:
                response = await client.get(
                    f"/payment_intents/{payment_intent_id}",
                    params={"expand[]": "latest_charge.balance_transaction"},
                )
            else:
                response = await client.get(
                    "/payment_intents",
                    params=[
                        ("limit", str(limit)),
                        ("expand[]", "data.latest_charge.balance_transaction"),
                        ("expand[]", "data.customer"),
                    ],
                )

        if response.is_error:
            raise IntegrationError(f"Stripe API error: {_error_message(response)}")

        data = response.json()
        if payment_intent_id and data.get("object") == "payment_intent":
            return {"object": "list", "data": [data], "has_more": False}
        return data

    async def list_accounts(self) -> list[dict]:
        """Fetch every connected account, following has_more pagination"""
        accounts: list[dict] = []
        starting_after: Optional[str] = None

        async with self._client() as client:
            while True:
                params = {"limit": "100"}
                if starting_after:
                    params["starting_after"] = starting_after
                response = await client.get("/accounts", params=params)
                if response.is_error:
                    raise IntegrationError(f"Stripe API error: {_error_message(response)}")

                page = response.json()
                data = page.get("data") or []
                accounts.extend(data)
                if not page.get("has_more") or not data:
                    break
                starting_after = data[-1]["id"]

        logger.info(f"💳 Fetched {len(accounts)} Stripe connected accounts")
        return accounts

    async def get_account(self, account_id: str) -> dict:
        async with self._client() as client:
            response = await client.get(f"/accounts/{account_id}")
        if response.is_error:
            raise IntegrationError(f"Stripe API error: {_error_message(response)}")
        return response.json()

    async def create_express_account(self, email: str, country: str) -> dict:
        """Create an Express connected account whose fees and losses the platform carries"""
        form = {
            "email": email,
            "country": country,
            "controller[fees][payer]": "application",
            "controller[losses][payments]": "application",
            "controller[stripe_dashboard][type]": "express",
        }
        async with self._client() as client:
            response = await client.post("/accounts", data=form)

        if response.is_error:
            logger.error(f"❌ Stripe account creation failed ({response.status_code}): {response.text}")
            raise IntegrationError(
                _error_message(response) or "Erreur lors de la création du compte Stripe",
                status_code=response.status_code,
                details=_error_body(response),
            )

        account = response.json()
        logger.info(f"✅ Stripe account created: {account.get('id')}")
        return account

    async def create_account_link(
        self,
        account_id: str,
        refresh_url: Optional[str] = None,
        return_url: Optional[str] = None,
    ) -> dict:
        form = {
            "account": account_id,
            "refresh_url": refresh_url or STRIPE_DEFAULT_ONBOARDING_URL,
            "return_url": return_url or STRIPE_DEFAULT_ONBOARDING_URL,
            "type": "account_onboarding",
        }
        async with self._client() as client:
            response = await client.post("/account_links", data=form)

        if response.is_error:
            raise IntegrationError(
                _error_message(response) or "Erreur lors de la création du lien d'onboarding",
                status_code=response.status_code,
                details=_error_body(response),
            )
        return response.json()

    async def transfer_and_payout(
        self,
        destination_account_id: str,
        amount: int,
        currency: str,
        invoice_ids: list[str],
        description: Optional[str] = None,
    ) -> tuple[dict, dict]:
        """
        Move funds to a connected account and pay them out to its bank.

        Step 1 creates a transfer tagged with the invoice ids; step 2 creates a
        payout on behalf of the connected account. If the payout fails the
        transfer is reversed before the error is raised.

        Returns:
            Tuple of (transfer, payout)
        """
        transfer_form = {
            "amount": str(amount),
            "currency": currency,
            "destination": destination_account_id,
            "transfer_group": f"INVOICES-{invoice_ids[0]}",
            "metadata[invoice_ids]": ",".join(invoice_ids),
        }
        payout_form = {"amount": str(amount), "currency": currency}
        if description:
            transfer_form["description"] = description
            payout_form["description"] = description

        async with self._client() as client:
            transfer_response = await client.post("/transfers", data=transfer_form)
            if transfer_response.is_error:
                raise IntegrationError(
                    f"Stripe Transfer API error: {_error_message(transfer_response)}"
                )
            transfer = transfer_response.json()
            logger.info(f"💸 Transfer {transfer.get('id')} created to {destination_account_id}")

            payout_response = await client.post(
                "/payouts",
                data=payout_form,
                headers={"Stripe-Account": destination_account_id},
            )
            if payout_response.is_error:
                message = _error_message(payout_response)
                logger.error(f"❌ Payout failed for {destination_account_id}: {message}")
                try:
                    reversal = await client.post(f"/transfers/{transfer['id']}/reversals")
                    if reversal.is_error:
                        logger.error(
                            f"❌ Transfer reversal failed for {transfer['id']}: {reversal.text}"
                        )
                except httpx.HTTPError as e:
                    logger.error(f"❌ Transfer reversal failed for {transfer['id']}: {e}")
                raise IntegrationError(
                    f"Stripe Payout API error: {message}. The initial transfer has been reversed."
                )

        payout = payout_response.json()
        logger.info(f"✅ Payout {payout.get('id')} created on {destination_account_id}")
        return transfer, payout

    async def list_recent_transfers(self, limit: int = 100) -> list[dict]:
        async with self._client() as client:
            response = await client.get("/transfers", params={"limit": str(limit)})
        if response.is_error:
            raise IntegrationError(f"Stripe API error: {_error_message(response)}")
        return response.json().get("data") or []


def collect_reconcilable_invoice_ids(transfers: list[dict]) -> set[str]:
    """Invoice ids carried in the metadata of transfers that were not reversed"""
    invoice_ids: set[str] = set()
    for transfer in transfers:
        metadata = transfer.get("metadata") or {}
        raw_ids = metadata.get("invoice_ids")
        if not raw_ids or transfer.get("reversed"):
            continue
        invoice_ids.update(i.strip() for i in raw_ids.split(",") if i.strip())
    return invoice_ids
