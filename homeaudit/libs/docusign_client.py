"""
DocuSign eSignature REST client.

Only the three calls the service needs: create an envelope, open an embedded
recipient view, and read envelope status.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any

import httpx
import structlog
from homeaudit.core.config import get_settings

logger = structlog.get_logger(__name__)

SIGNER_RECIPIENT_ID = "1"


class DocuSignClientError(Exception):
    """Base exception for DocuSign client errors."""


class DocuSignAPIError(DocuSignClientError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(slots=True)
class EnvelopeSummary:
    envelope_id: str
    status: str


class DocuSignClient:
    """Async DocuSign client authenticated with a pre-issued access token."""

    def __init__(
        self,
        access_token: str | None = None,
        account_id: str | None = None,
        base_url: str | None = None,
        timeout_seconds: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.access_token = access_token or settings.docusign_access_token
        self.account_id = account_id or settings.docusign_account_id
        self.base_url = (base_url or settings.docusign_base_url).rstrip("/")
        self.timeout = (
            timeout_seconds if timeout_seconds is not None else settings.external_timeout_seconds
        )
        self._transport = transport

        if not self.access_token or not self.account_id:
            logger.warning(
                "docusign_credentials_missing",
                msg="DOCUSIGN_ACCESS_TOKEN / DOCUSIGN_ACCOUNT_ID not configured",
            )

    @property
    def _account_url(self) -> str:
        return f"{self.base_url}/v2.1/accounts/{self.account_id}"

    async def create_envelope(
        self,
        *,
        signer_name: str,
        signer_email: str,
        client_user_id: str,
        document_name: str,
        document_html: str,
        email_subject: str,
    ) -> EnvelopeSummary:
        """Create and send a single-signer envelope with one HTML document."""
        payload = {
            "emailSubject": email_subject,
            "status": "sent",
            "documents": [
                {
                    "documentBase64": base64.b64encode(document_html.encode("utf-8")).decode(
                        "ascii"
                    ),
                    "name": document_name,
                    "fileExtension": "html",
                    "documentId": "1",
                }
            ],
            "recipients": {
                "signers": [
                    {
                        "email": signer_email,
                        "name": signer_name,
                        "recipientId": SIGNER_RECIPIENT_ID,
                        "routingOrder": "1",
                        "clientUserId": client_user_id,
                        "tabs": {
                            "signHereTabs": [
                                {
                                    "documentId": "1",
                                    "pageNumber": "1",
                                    "recipientId": SIGNER_RECIPIENT_ID,
                                    "tabLabel": "CustomerSignature",
                                    "xPosition": "400",
                                    "yPosition": "650",
                                }
                            ]
                        },
                    }
                ]
            },
        }
        data = await self._request("POST", "/envelopes", json=payload)
        envelope_id = data.get("envelopeId")
        if not envelope_id:
            raise DocuSignAPIError("DocuSign response missing envelopeId")
        return EnvelopeSummary(envelope_id=envelope_id, status=data.get("status", "sent"))

    async def create_recipient_view(
        self,
        envelope_id: str,
        *,
        signer_name: str,
        signer_email: str,
        client_user_id: str,
        return_url: str,
    ) -> str:
        payload = {
            "authenticationMethod": "email",
            "email": signer_email,
            "userName": signer_name,
            "recipientId": SIGNER_RECIPIENT_ID,
            "clientUserId": client_user_id,
            "returnUrl": return_url,
        }
        data = await self._request(
            "POST", f"/envelopes/{envelope_id}/views/recipient", json=payload
        )
        url = data.get("url")
        if not url:
            raise DocuSignAPIError("DocuSign response missing signing url")
        return url

    async def get_envelope(self, envelope_id: str) -> EnvelopeSummary:
        data = await self._request("GET", f"/envelopes/{envelope_id}")
        return EnvelopeSummary(
            envelope_id=envelope_id,
            status=str(data.get("status") or "unknown"),
        )

    async def _request(
        self, method: str, path: str, *, json: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        if not self.access_token or not self.account_id:
            raise DocuSignClientError("DocuSign credentials not configured")

        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.request(
                    method, f"{self._account_url}{path}", headers=headers, json=json
                )
        except httpx.HTTPError as exc:
            raise DocuSignClientError(f"DocuSign request failed: {exc}") from exc

        if response.status_code >= 400:
            raise DocuSignAPIError(
                f"DocuSign error {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise DocuSignAPIError(
                "DocuSign response was not valid JSON", status_code=response.status_code
            ) from exc
