"""
Local JWT authentication provider.
"""

from __future__ import annotations

from typing import Optional

from jose import JWTError, jwt

from app.core.config import Settings
from app.interfaces.auth_provider import IAuthProvider, User


class LocalAuthProvider(IAuthProvider):
    """Local auth provider with HMAC JWT validation. The subject is the actor id."""

    def __init__(self, settings: Settings):
        if not settings.LOCAL_JWT_SECRET:
            raise ValueError("LOCAL_JWT_SECRET must be set for local auth")
        self._settings = settings

    def _decode_token(self, token: str) -> dict[str, object]:
        options = {"verify_iss": bool(self._settings.LOCAL_JWT_ISSUER)}
        return jwt.decode(
            token,
            self._settings.LOCAL_JWT_SECRET,
            algorithms=["HS256"],
            issuer=self._settings.LOCAL_JWT_ISSUER or None,
            options=options,
        )

    def issue_token(self, actor_id: str, email: Optional[str] = None) -> str:
        """Sign a token for an actor (local tooling and tests)."""
        claims: dict[str, object] = {"sub": actor_id}
        if email:
            claims["email"] = email
        if self._settings.LOCAL_JWT_ISSUER:
            claims["iss"] = self._settings.LOCAL_JWT_ISSUER
        return jwt.encode(claims, self._settings.LOCAL_JWT_SECRET, algorithm="HS256")

    async def verify_token(self, token: str) -> User:
        claims = self._decode_token(token)
        subject = claims.get("sub")
        if not subject or not isinstance(subject, str):
            raise JWTError("Missing subject")
        email = claims.get("email")
        name = claims.get("name")
        return User(
            id=subject,
            email=email if isinstance(email, str) else None,
            display_name=name if isinstance(name, str) else None,
        )

    async def get_user(self, user_id: str) -> Optional[User]:
        # Actors are not stored locally; identity comes from the token only.
        return None

    def is_enabled(self) -> bool:
        return True
