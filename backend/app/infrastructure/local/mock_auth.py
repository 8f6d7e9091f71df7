"""
Mock authentication provider for local development.
"""

from typing import Optional

from app.interfaces.auth_provider import IAuthProvider, User


class MockAuthProvider(IAuthProvider):
    """Mock auth provider: the bearer token is the actor id."""

    def __init__(self, enabled: bool = True):
        """
        Initialize mock auth provider.

        Args:
            enabled: Whether a bearer token is required
        """
        self._enabled = enabled
        self._known_actors = {
            "dev_client": User(
                id="dev_client",
                email="client@example.com",
                display_name="Dev Client",
            ),
            "dev_provider": User(
                id="dev_provider",
                email="provider@example.com",
                display_name="Dev Provider",
            ),
        }

    async def verify_token(self, token: str) -> User:
        """
        Verify token - in mock mode, token is treated as the actor id.

        Args:
            token: Actor ID (in mock mode)

        Returns:
            Mock user
        """
        token = token.strip()
        if not token:
            raise ValueError("Empty token")
        if token in self._known_actors:
            return self._known_actors[token]
        if "@" in token:
            return User(id=token, email=token, display_name=token)
        return User(id=token, email=f"{token}@example.com", display_name=token)

    async def get_user(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        return self._known_actors.get(user_id)

    def is_enabled(self) -> bool:
        """Check if authentication is enabled."""
        return self._enabled
