"""Identity provider adapter.

The gateway never stores passwords or sessions itself. Token checks, sign-in
and sign-out are delegated to an IdentityProvider; the production one talks to
Supabase Auth with the service-role key.

All provider methods are blocking and are called through
``starlette.concurrency.run_in_threadpool`` by the async callers.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol

from supabase import Client, create_client

from blog_gateway.utils import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class IdentityUser:
    id: str
    email: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class IdentitySession:
    user: IdentityUser
    access_token: str


class IdentityProviderError(Exception):
    """Provider unreachable, misconfigured, or refused the request."""


class IdentityProvider(Protocol):
    def get_user(self, token: str) -> Optional[IdentityUser]: ...

    def sign_in(self, email: str, password: str) -> IdentitySession: ...

    def sign_out(self, token: str) -> None: ...


def _to_identity(user: Any) -> IdentityUser:
    metadata = getattr(user, "user_metadata", None) or {}
    name = metadata.get("name") or metadata.get("full_name")
    return IdentityUser(id=str(user.id), email=getattr(user, "email", None), name=name)


class SupabaseIdentityProvider:
    """Supabase Auth over the official client.

    The client is created on first use so that importing the app never needs
    credentials. Sign-in uses a throwaway client: a successful sign-in stores
    the user session on the client it was made with.
    """

    def __init__(self, url: Optional[str], service_role_key: Optional[str]):
        self._url = url
        self._key = service_role_key
        self._client: Optional[Client] = None

    def _new_client(self) -> Client:
        if not self._url or not self._key:
            raise IdentityProviderError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
        return create_client(self._url, self._key)

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = self._new_client()
        return self._client

    def get_user(self, token: str) -> Optional[IdentityUser]:
        try:
            response = self.client.auth.get_user(token)
        except IdentityProviderError:
            raise
        except Exception as e:
            raise IdentityProviderError(f"Token lookup failed: {e}") from e
        if response is None or response.user is None:
            return None
        return _to_identity(response.user)

    def sign_in(self, email: str, password: str) -> IdentitySession:
        try:
            response = self._new_client().auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except IdentityProviderError:
            raise
        except Exception as e:
            raise IdentityProviderError(f"Sign-in failed: {e}") from e
        if response.user is None or response.session is None:
            raise IdentityProviderError("Sign-in returned no session")
        return IdentitySession(
            user=_to_identity(response.user),
            access_token=response.session.access_token,
        )

    def sign_out(self, token: str) -> None:
        try:
            self.client.auth.admin.sign_out(token)
        except IdentityProviderError:
            raise
        except Exception as e:
            raise IdentityProviderError(f"Sign-out failed: {e}") from e
        logger.debug("Provider session revoked")


__all__ = [
    "IdentityUser",
    "IdentitySession",
    "IdentityProvider",
    "IdentityProviderError",
    "SupabaseIdentityProvider",
]
