"""
Mapping of domain failures to HTTP responses.
"""

from fastapi import HTTPException, status

from app.core.exceptions import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    MarketplaceError,
    NotFoundError,
    ValidationError,
)
from app.models.results import DomainError, ErrorCode

ERROR_STATUS: dict[ErrorCode, int] = {
    ErrorCode.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_STATE: status.HTTP_409_CONFLICT,
    ErrorCode.UPDATE_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.VALIDATION_ERROR: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def domain_http_error(error: DomainError) -> HTTPException:
    """HTTPException carrying {code, message, details?}."""
    detail = {"code": error.code.value, "message": error.message}
    if error.details is not None:
        detail["details"] = error.details
    return HTTPException(status_code=ERROR_STATUS[error.code], detail=detail)


def exception_http_error(exc: MarketplaceError) -> HTTPException:
    """HTTPException for an exception raised by a service."""
    if isinstance(exc, NotFoundError):
        code = ErrorCode.NOT_FOUND
    elif isinstance(exc, ForbiddenError):
        code = ErrorCode.FORBIDDEN
    elif isinstance(exc, AuthenticationError):
        code = ErrorCode.UNAUTHENTICATED
    elif isinstance(exc, ValidationError):
        code = ErrorCode.VALIDATION_ERROR
    elif isinstance(exc, ConflictError):
        code = ErrorCode.INVALID_STATE
    else:
        code = ErrorCode.UPDATE_FAILED
    return domain_http_error(DomainError(code=code, message=exc.message, details=exc.details))
