"""HTTP clients for the third-party services."""

from homeaudit.libs.docusign_client import DocuSignClient, DocuSignClientError
from homeaudit.libs.resend_client import ResendClient, ResendClientError
from homeaudit.libs.square_client import SquareClient, SquareClientError

__all__ = [
    "DocuSignClient",
    "DocuSignClientError",
    "ResendClient",
    "ResendClientError",
    "SquareClient",
    "SquareClientError",
]
