"""
Dependency injection for API endpoints.

This module provides FastAPI dependencies that inject the correct
infrastructure implementations based on environment configuration.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from app.core.config import Settings, get_settings
from app.interfaces.auth_provider import IAuthProvider, User
from app.interfaces.booking_repository import IBookingRepository
from app.interfaces.milestone_repository import IMilestoneRepository
from app.interfaces.task_repository import ITaskRepository
from app.models.results import ErrorCode


# ===========================================
# Repository Dependencies
# ===========================================


@lru_cache()
def get_booking_repository() -> IBookingRepository:
    """Get booking repository instance."""
    from app.infrastructure.local.booking_repository import SqliteBookingRepository
    return SqliteBookingRepository()


@lru_cache()
def get_milestone_repository() -> IMilestoneRepository:
    """Get milestone repository instance."""
    from app.infrastructure.local.milestone_repository import SqliteMilestoneRepository
    return SqliteMilestoneRepository()


@lru_cache()
def get_task_repository() -> ITaskRepository:
    """Get task repository instance."""
    from app.infrastructure.local.task_repository import SqliteTaskRepository
    return SqliteTaskRepository()


@lru_cache()
def get_auth_provider() -> IAuthProvider:
    """Get auth provider instance."""
    settings = get_settings()
    if settings.AUTH_PROVIDER == "local":
        from app.infrastructure.auth.local_auth import LocalAuthProvider

        return LocalAuthProvider(settings)

    from app.infrastructure.local.mock_auth import MockAuthProvider
    return MockAuthProvider(enabled=True)


# ===========================================
# User Authentication
# ===========================================


def _unauthenticated(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"code": ErrorCode.UNAUTHENTICATED.value, "message": message},
    )


async def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
    auth_provider: IAuthProvider = Depends(get_auth_provider),
) -> User:
    """
    Get current authenticated actor.

    With mock auth disabled, a fixed development actor is returned.
    Otherwise a "Bearer <token>" header is required.
    """
    if not auth_provider.is_enabled():
        return User(id="dev_client", email="client@example.com", display_name="Dev Client")

    if not authorization:
        raise _unauthenticated("Authorization header required")

    # Extract token from "Bearer <token>"
    try:
        scheme, token = authorization.split()
        if scheme.lower() != "bearer":
            raise ValueError("Invalid scheme")
    except ValueError:
        raise _unauthenticated("Invalid authorization header format")

    try:
        return await auth_provider.verify_token(token)
    except Exception as e:
        raise _unauthenticated(str(e) or "Invalid token")


# ===========================================
# Type Aliases for Dependency Injection
# ===========================================

BookingRepo = Annotated[IBookingRepository, Depends(get_booking_repository)]
MilestoneRepo = Annotated[IMilestoneRepository, Depends(get_milestone_repository)]
TaskRepo = Annotated[ITaskRepository, Depends(get_task_repository)]
CurrentUser = Annotated[User, Depends(get_current_user)]
AppSettings = Annotated[Settings, Depends(get_settings)]
