"""
Authentication provider interface.

Resolves a bearer token to the acting user.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel


class User(BaseModel):
    """Authenticated actor."""

    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None


class IAuthProvider(ABC):
    """Interface for authentication providers."""

    @abstractmethod
    async def verify_token(self, token: str) -> User:
        """Verify a token and return the user. Raises on invalid tokens."""
        pass

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        pass

    @abstractmethod
    def is_enabled(self) -> bool:
        """Check if authentication is enabled."""
        pass
