"""Outbound fee payouts over HTTP.

The payout service owns wallet transfers; this client only POSTs an
instruction. ``reference_id`` doubles as the idempotency key so a retried
payout for the same trade can be de-duplicated downstream.
"""

import logging

import httpx

from config.settings import settings
from src.lp_common.errors import DownstreamFailureError

logger = logging.getLogger(__name__)


class PayoutClient:
    def __init__(
        self,
        url: str,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout_seconds or settings.PAYOUT_TIMEOUT_SECONDS
        self._transport = transport

    async def send(
        self, recipient_id: str, amount: float, reference_id: str, payout_type: str
    ) -> None:
        payload = {
            "recipient_id": recipient_id,
            "amount": amount,
            "reference_id": reference_id,
            "payout_type": payout_type,
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    self._url,
                    json=payload,
                    headers={"Idempotency-Key": f"{payout_type}:{reference_id}"},
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise DownstreamFailureError(f"{payout_type} payout to {recipient_id}: {exc}") from exc
        logger.info(
            "Payout sent: type=%s recipient=%s amount=%.8f ref=%s",
            payout_type, recipient_id, amount, reference_id,
        )


def get_payout_client() -> PayoutClient | None:
    """None when no webhook is configured (fees stay in the ledger only)."""
    if not settings.PAYOUT_WEBHOOK_URL:
        return None
    return PayoutClient(settings.PAYOUT_WEBHOOK_URL)
