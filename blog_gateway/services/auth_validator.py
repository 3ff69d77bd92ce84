"""Bearer-token validation against the identity provider.

``validate`` never raises for an anonymous caller when ``require_auth`` is
False; it returns an unauthenticated context instead. With ``require_auth``
every failure (missing header, wrong scheme, unknown token, provider error)
becomes an AuthError. Provider errors are never treated as success.
"""
from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from starlette.concurrency import run_in_threadpool

from blog_gateway.errors import AuthError
from blog_gateway.utils import get_logger

from .identity import IdentityProvider

logger = get_logger(__name__)

BEARER_SCHEME = "bearer"


@dataclass(frozen=True)
class AuthContext:
    is_authenticated: bool
    user_id: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    token: Optional[str] = None
    # "provider" or "bootstrap"
    source: Optional[str] = None

    @classmethod
    def anonymous(cls) -> "AuthContext":
        return cls(is_authenticated=False)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token of a ``Bearer <token>`` header, else None."""
    if not authorization:
        return None
    parts = authorization.strip().split(None, 1)
    if len(parts) != 2 or parts[0].lower() != BEARER_SCHEME:
        return None
    token = parts[1].strip()
    return token or None


class AuthValidator:
    def __init__(
        self,
        provider: IdentityProvider,
        bootstrap_token: Optional[str] = None,
        bootstrap_email: str = "admin@localhost",
    ):
        self._provider = provider
        self._bootstrap_token = bootstrap_token or None
        self._bootstrap_email = bootstrap_email

    @classmethod
    def from_settings(cls, provider: IdentityProvider, settings: Mapping[str, Any]) -> "AuthValidator":
        token = settings.get("bootstrap_token") if settings.get("bootstrap_enabled") else None
        if token:
            logger.warning("Bootstrap token access is enabled")
        return cls(
            provider,
            bootstrap_token=token,
            bootstrap_email=str(settings.get("bootstrap_email") or "admin@localhost"),
        )

    @property
    def bootstrap_enabled(self) -> bool:
        return self._bootstrap_token is not None

    def _reject(self, require_auth: bool, message: str) -> AuthContext:
        if require_auth:
            raise AuthError(message)
        return AuthContext.anonymous()

    async def validate(self, authorization: Optional[str], require_auth: bool = True) -> AuthContext:
        token = extract_bearer_token(authorization)
        if token is None:
            if authorization:
                logger.warning("Rejected authorization header with unsupported scheme")
            return self._reject(require_auth, "Missing or malformed Authorization header")

        if self._bootstrap_token and secrets.compare_digest(token.encode("utf-8"), self._bootstrap_token.encode("utf-8")):
            logger.warning("Request authenticated with bootstrap token")
            return AuthContext(
                is_authenticated=True,
                user_id="bootstrap",
                email=self._bootstrap_email,
                name="Bootstrap Admin",
                token=token,
                source="bootstrap",
            )

        try:
            user = await run_in_threadpool(self._provider.get_user, token)
        except Exception as e:
            # unreachable or failing provider counts as an invalid token
            logger.warning("Identity provider check failed", error=str(e), error_type=type(e).__name__)
            return self._reject(require_auth, "Token validation failed")

        if user is None:
            logger.warning("Identity provider rejected token")
            return self._reject(require_auth, "Invalid or expired token")

        logger.debug("Token validated", user_id=user.id)
        return AuthContext(
            is_authenticated=True,
            user_id=user.id,
            email=user.email,
            name=user.name,
            token=token,
            source="provider",
        )


__all__ = ["AuthContext", "AuthValidator", "extract_bearer_token"]
