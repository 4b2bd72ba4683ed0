"""
Resend API client for appointment and report emails.

Only the ``POST /emails`` endpoint is used. Tags let the Resend dashboard
filter by email kind and appointment; the idempotency key stops a retried
send from delivering the same reminder twice.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass

import httpx
import structlog
from homeaudit.core.config import get_settings

logger = structlog.get_logger(__name__)

# Resend accepts ASCII letters, digits, underscores and dashes in tag values.
_TAG_UNSAFE = re.compile(r"[^A-Za-z0-9_-]")


class ResendClientError(Exception):
    """Base exception for Resend client errors."""


class ResendAPIError(ResendClientError):
    """Raised for non-success responses from Resend."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(slots=True)
class ResendEmailResponse:
    id: str


def encode_tags(tags: Mapping[str, str]) -> list[dict[str, str]]:
    return [
        {"name": _TAG_UNSAFE.sub("_", name), "value": _TAG_UNSAFE.sub("_", value)}
        for name, value in tags.items()
        if value
    ]


class ResendClient:
    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout_seconds: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key or settings.resend_api_key
        self.base_url = (base_url or settings.resend_base_url).rstrip("/")
        self.timeout = (
            timeout_seconds if timeout_seconds is not None else settings.resend_timeout_seconds
        )
        self._transport = transport

        if not self.api_key:
            logger.warning("resend_api_key_missing")

    async def send_email(
        self,
        *,
        from_email: str,
        to_emails: list[str],
        subject: str,
        html: str,
        text: str | None = None,
        reply_to: str | None = None,
        tags: Mapping[str, str] | None = None,
        idempotency_key: str | None = None,
    ) -> ResendEmailResponse:
        if not self.api_key:
            raise ResendClientError("RESEND_API_KEY not configured")

        headers = {"Authorization": f"Bearer {self.api_key}"}
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key

        payload: dict[str, object] = {
            "from": from_email,
            "to": to_emails,
            "subject": subject,
            "html": html,
        }
        if text:
            payload["text"] = text
        if reply_to:
            payload["reply_to"] = reply_to
        if tags:
            payload["tags"] = encode_tags(tags)

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    f"{self.base_url}/emails", headers=headers, json=payload
                )
        except httpx.HTTPError as exc:
            raise ResendClientError(f"Resend request failed: {exc}") from exc

        return ResendEmailResponse(id=_email_id(response))


def _email_id(response: httpx.Response) -> str:
    if response.status_code not in (200, 201):
        raise ResendAPIError(
            f"Resend error {response.status_code}: {response.text}",
            status_code=response.status_code,
        )
    try:
        email_id = response.json().get("id")
    except ValueError as exc:
        raise ResendAPIError(
            "Resend response was not valid JSON", status_code=response.status_code
        ) from exc
    if not email_id:
        raise ResendAPIError("Resend response missing email id", status_code=response.status_code)
    return email_id
