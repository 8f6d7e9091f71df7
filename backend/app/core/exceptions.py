"""
Custom exceptions for the application.

Expected domain outcomes (wrong actor, wrong state) are returned as
results (see app.models.results); these exceptions are for failures
that propagate.
"""

from typing import Any, Optional


class MarketplaceError(Exception):
    """Base exception for the marketplace backend."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(MarketplaceError):
    """Resource not found."""

    pass


class ValidationError(MarketplaceError):
    """Validation error."""

    pass


class AuthenticationError(MarketplaceError):
    """Authentication failed."""

    pass


class AuthorizationError(MarketplaceError):
    """Authorization failed."""

    pass


class ForbiddenError(AuthorizationError):
    """Forbidden operation (authorization denied)."""

    pass


class ConflictError(MarketplaceError):
    """Operation conflicts with existing data."""

    pass


class ConfigurationError(MarketplaceError):
    """Required configuration is missing or invalid."""

    pass


class InfrastructureError(MarketplaceError):
    """Infrastructure-related error (DB, external services, etc.)."""

    pass


class BusinessLogicError(MarketplaceError):
    """Business logic constraint violation."""

    pass
