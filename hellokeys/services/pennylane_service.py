"""Pennylane accounting API client"""

import json
import logging
from typing import Optional

import httpx

from ..config import PENNYLANE_API_KEY
from .errors import IntegrationError, NotConfiguredError

logger = logging.getLogger(__name__)

PENNYLANE_API_BASE = "https://app.pennylane.com/api/external/v2"


class PennylaneService:
    def __init__(self, api_key: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key if api_key is not None else PENNYLANE_API_KEY
        self.transport = transport

    async def list_customer_invoices(self, customer_id: str, limit: int = 100) -> dict:
        """Most recent invoices of one Pennylane customer"""
        if not self.api_key:
            logger.error("❌ PENNYLANE_API_KEY environment variable is not set")
            raise NotConfiguredError("Missing PENNYLANE_API_KEY in environment variables.")

        params = {
            "sort": "-date",
            "limit": str(limit),
            "filter": json.dumps([{"field": "customer_id", "operator": "eq", "value": str(customer_id)}]),
        }
        async with httpx.AsyncClient(timeout=30.0, transport=self.transport) as client:
            response = await client.get(
                f"{PENNYLANE_API_BASE}/customer_invoices",
                params=params,
                headers={"Authorization": f"Bearer {self.api_key}", "Accept": "application/json"},
            )

        if response.is_error:
            try:
                details = response.json()
            except ValueError:
                details = response.text
            logger.error(f"❌ Pennylane API error {response.status_code}: {details}")
            raise IntegrationError(
                f"Pennylane API error: {response.status_code}",
                status_code=response.status_code,
                details=details,
            )

        data = response.json()
        logger.info(f"🧾 Pennylane returned {len(data.get('items') or [])} invoices for customer {customer_id}")
        return data
