"""
Square Payments REST client.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

import httpx
import structlog
from homeaudit.core.config import get_settings

logger = structlog.get_logger(__name__)

SQUARE_API_VERSION = "2024-07-17"


class SquareClientError(Exception):
    """Base exception for Square client errors."""


class SquareAPIError(SquareClientError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(slots=True)
class SquarePayment:
    id: str
    status: str
    amount_cents: int
    currency: str
    source_type: str | None = None


def to_cents(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class SquareClient:
    """Async Square client; payments are auto-completed on creation."""

    def __init__(
        self,
        access_token: str | None = None,
        location_id: str | None = None,
        base_url: str | None = None,
        timeout_seconds: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.access_token = access_token or settings.square_access_token
        self.location_id = location_id or settings.square_location_id
        self.base_url = (base_url or settings.square_base_url).rstrip("/")
        self.timeout = (
            timeout_seconds if timeout_seconds is not None else settings.external_timeout_seconds
        )
        self._transport = transport

        if not self.access_token:
            logger.warning("square_access_token_missing", msg="SQUARE_ACCESS_TOKEN not configured")

    async def create_payment(
        self,
        *,
        source_id: str,
        amount: Decimal,
        currency: str,
        idempotency_key: str,
        customer_id: str | None = None,
    ) -> SquarePayment:
        if not self.access_token:
            raise SquareClientError("SQUARE_ACCESS_TOKEN not configured")

        payload: dict[str, object] = {
            "source_id": source_id,
            "idempotency_key": idempotency_key,
            "amount_money": {"amount": to_cents(amount), "currency": currency},
            "location_id": self.location_id,
            "autocomplete": True,
        }
        if customer_id:
            payload["customer_id"] = customer_id

        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
            "Square-Version": SQUARE_API_VERSION,
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    f"{self.base_url}/v2/payments", headers=headers, json=payload
                )
        except httpx.HTTPError as exc:
            raise SquareClientError(f"Square request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise SquareAPIError(
                "Square response was not valid JSON", status_code=response.status_code
            ) from exc

        if response.status_code >= 400:
            errors = data.get("errors") or [{}]
            detail = errors[0].get("detail") or "Payment failed"
            raise SquareAPIError(detail, status_code=response.status_code)

        payment = data.get("payment") or {}
        if not payment.get("id"):
            raise SquareAPIError("Square response missing payment id", response.status_code)

        money = payment.get("amount_money") or {}
        return SquarePayment(
            id=payment["id"],
            status=str(payment.get("status") or "UNKNOWN"),
            amount_cents=int(money.get("amount", to_cents(amount))),
            currency=str(money.get("currency", currency)),
            source_type=payment.get("source_type"),
        )
