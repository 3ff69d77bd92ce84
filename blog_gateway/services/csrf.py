"""CSRF token issue/verify on top of the shared Store.

Tokens are random, opaque and valid until their TTL lapses; verification does
not consume them so one token serves a whole admin session.
"""
from __future__ import annotations

import secrets
from typing import Any, Mapping, Optional

from blog_gateway.utils.store import Store

TOKEN_BYTES = 32


class CsrfTokenService:
    def __init__(self, store: Store, ttl_seconds: int = 3600, enabled: bool = False, header_name: str = "X-CSRF-Token"):
        self._store = store
        self.ttl_seconds = ttl_seconds
        self.enabled = enabled
        self.header_name = header_name

    @classmethod
    def from_settings(cls, store: Store, settings: Mapping[str, Any]) -> "CsrfTokenService":
        return cls(
            store,
            ttl_seconds=int(settings.get("token_ttl_seconds", 3600)),
            enabled=bool(settings.get("enabled", False)),
            header_name=str(settings.get("header_name", "X-CSRF-Token")),
        )

    @staticmethod
    def _key(token: str) -> str:
        return f"csrf:{token}"

    async def issue(self) -> str:
        token = secrets.token_urlsafe(TOKEN_BYTES)
        await self._store.set(self._key(token), True, ttl_seconds=self.ttl_seconds)
        return token

    async def verify(self, token: Optional[str]) -> bool:
        if not token:
            return False
        return bool(await self._store.get(self._key(token)))


__all__ = ["CsrfTokenService"]
