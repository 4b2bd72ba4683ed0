"""Error taxonomy shared by the domain services.

Routes translate these into HTTP responses; see ``homeaudit.api.deps.http_error``.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for errors raised by domain services."""


class ValidationError(DomainError):
    """Malformed or missing input (booking fields, categories, date window)."""


class AuthError(DomainError):
    """Missing or invalid credentials."""


class PermissionDeniedError(DomainError):
    """Authenticated, but the role or ownership does not allow the operation."""


class NotFoundError(DomainError):
    """A referenced entity does not exist."""


class PreconditionError(DomainError):
    """The target entity is in a state that disallows the operation."""


class DependencyError(DomainError):
    """An external collaborator (email, e-signature, payments) failed."""


class RenderError(DomainError):
    """PDF composition or archiving failed."""


__all__ = [
    "AuthError",
    "DependencyError",
    "DomainError",
    "NotFoundError",
    "PermissionDeniedError",
    "PreconditionError",
    "RenderError",
    "ValidationError",
]
