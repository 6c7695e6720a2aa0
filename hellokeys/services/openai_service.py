"""
Annual report ("bilan") analysis with the OpenAI Chat Completions API
"""

import logging
from typing import Optional

import httpx

from ..config import OPENAI_API_KEY, OPENAI_MODEL
from .errors import IntegrationError, NotConfiguredError

logger = logging.getLogger(__name__)

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"
FALLBACK_ANALYSIS = "Analyse indisponible."

SYSTEM_PROMPT = (
    "Tu es un agent Hello Keys qui produit des analyses financières courtes, concrètes "
    "et actionnables pour des locations saisonnières. N'utilise pas de Markdown."
)


def _eur(value: float) -> str:
    return f"{value:.2f}€"


def build_bilan_prompt(year: int, totals: dict, monthly: list[dict]) -> str:
    """French prompt summarizing yearly and monthly figures"""
    total_reservations = totals.get("totalReservations")
    if total_reservations is None:
        total_reservations = sum(m.get("reservations") or 0 for m in monthly)

    monthly_lines = "\n".join(
        f"{m['name']}: CA={_eur(m['ca'])}; Versé={_eur(m['montantVerse'])}; "
        f"Frais={_eur(m['frais'])}; Bénéf={_eur(m['benef'])}; Nuits={m['nuits']}; "
        f"Réserv={m['reservations']}; Px/Nuit={_eur(m['prixParNuit'])}"
        for m in monthly
    )

    return f"""Tu écris en tant qu'agent Hello Keys. Produit une analyse brève, concrète et actionnable pour l'année {year}, en français.

Contraintes:
- Longueur: 150 à 220 mots maximum
- Pas de Markdown, pas de #, ##, ###, ni de backticks
- Ton: professionnel, direct, utile (voix Hello Keys)
- Structure:
  1) Phrase de synthèse claire (une ou deux phrases)
  2) 3 à 5 puces d'insights clés (saisonnalité, variations, prix/nuit, réservations, nuits)
- N'invente pas de données si elles manquent. Cite le nombre exact de réservations: {total_reservations}.

Données disponibles:
Totaux: CA={_eur(totals['totalCA'])}; Versé={_eur(totals['totalMontantVerse'])}; Frais={_eur(totals['totalFrais'])}; Dépenses={_eur(totals['totalDepenses'])}; Résultat net={_eur(totals['resultatNet'])}; Réservations={total_reservations}.
Mensuel (mois; CA; Versé; Frais; Bénéf; Nuits; Réserv.; Prix/Nuit):
{monthly_lines}

Rédige en gardant un style clair et centré sur la valeur pour le propriétaire Hello Keys."""


class OpenAIService:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else OPENAI_API_KEY
        self.model = model or OPENAI_MODEL
        self.transport = transport

    async def analyze_bilan(self, year: int, totals: dict, monthly: list[dict]) -> str:
        if not self.api_key:
            raise NotConfiguredError("Missing OPENAI_API_KEY")

        prompt = build_bilan_prompt(year, totals, monthly)
        async with httpx.AsyncClient(timeout=60.0, transport=self.transport) as client:
            response = await client.post(
                OPENAI_CHAT_URL,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "model": self.model,
                    "messages": [
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": prompt},
                    ],
                    "temperature": 0.3,
                },
            )

        if response.is_error:
            logger.error(f"❌ OpenAI error {response.status_code}: {response.text}")
            raise IntegrationError(f"OpenAI error: {response.status_code} {response.text}")

        choices = response.json().get("choices") or []
        content = choices[0].get("message", {}).get("content") if choices else None
        return content or FALLBACK_ANALYSIS
