from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Sequence

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from homeaudit.core.auth import Role, TokenError, create_access_token, decode_access_token
from homeaudit.core.config import get_settings
from homeaudit.domain import User
from homeaudit.domain.errors import (
    AuthError,
    DependencyError,
    DomainError,
    NotFoundError,
    PermissionDeniedError,
    PreconditionError,
    RenderError,
    ValidationError,
)
from homeaudit.domain.services.agreements import DocuSignSignatureProvider, SignatureProvider
from homeaudit.domain.services.notifications import (
    NotificationDispatcher,
    NotificationSender,
    ResendNotificationSender,
)
from homeaudit.domain.services.payments import PaymentProcessor, SquarePaymentProcessor
from homeaudit.domain.services.reports import ReportArchive
from homeaudit.infrastructure.db.session import get_session
from homeaudit.infrastructure.storage import LocalReportArchive
from sqlalchemy.ext.asyncio import AsyncSession

bearer_scheme = HTTPBearer(auto_error=False)

_ERROR_STATUS: tuple[tuple[type[DomainError], int], ...] = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (PreconditionError, status.HTTP_400_BAD_REQUEST),
    (AuthError, status.HTTP_401_UNAUTHORIZED),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (DependencyError, status.HTTP_502_BAD_GATEWAY),
    (RenderError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def http_error(exc: DomainError) -> HTTPException:
    """Map a domain error onto the HTTP status routes respond with."""
    for error_cls, status_code in _ERROR_STATUS:
        if isinstance(exc, error_cls):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _user_from_credentials(credentials: HTTPAuthorizationCredentials) -> User:
    try:
        payload = decode_access_token(credentials.credentials)
    except TokenError as exc:
        raise _unauthorized(str(exc)) from exc

    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorized("Token missing subject")

    return User(user_id=user_id, role=payload["role"], email=payload.get("email", ""))


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),  # noqa: B008
) -> User:
    """Resolve the authenticated user from a bearer token."""
    if credentials is None:
        raise _unauthorized("Missing bearer token")
    return _user_from_credentials(credentials)


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),  # noqa: B008
) -> User | None:
    """Like ``get_current_user`` but lets anonymous (guest) callers through."""
    if credentials is None:
        return None
    return _user_from_credentials(credentials)


def require_roles(required_roles: Sequence[Role | str]) -> Callable[[User], User]:
    """Dependency factory enforcing that the authenticated user has one of the required roles."""
    settings = get_settings()
    allowed = set(settings.allowed_roles)

    required = {role.value if isinstance(role, Role) else role for role in required_roles}
    invalid_roles = sorted(required - allowed)
    if invalid_roles:
        joined_roles = ", ".join(invalid_roles)
        raise ValueError(f"Unsupported role(s) requested: {joined_roles}")

    def dependency(user: User = Depends(get_current_user)) -> User:  # noqa: B008
        if user.role.value not in required:
            raise _forbidden("Insufficient role privileges")
        return user

    return dependency


def issue_smoke_token(user_id: str, *, role: Role, email: str | None = None) -> str:
    """Generate a signed token for manual smoke testing."""
    return create_access_token(user_id, role=role, email=email)


async def get_db_session() -> AsyncIterator[AsyncSession]:
    """Provide an async SQLAlchemy session for API handlers."""
    async for session in get_session():
        yield session


def get_notification_sender() -> NotificationSender:
    return ResendNotificationSender()


def get_notifier(
    sender: NotificationSender = Depends(get_notification_sender),  # noqa: B008
) -> NotificationDispatcher:
    return NotificationDispatcher(sender)


def get_report_archive() -> ReportArchive:
    return LocalReportArchive()


def get_payment_processor() -> PaymentProcessor:
    return SquarePaymentProcessor()


def get_signature_provider() -> SignatureProvider:
    return DocuSignSignatureProvider()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _forbidden(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
