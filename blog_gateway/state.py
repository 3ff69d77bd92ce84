"""Per-application gateway state.

One GatewayState is built by ``create_app`` and stored on ``app.state.gateway``.
Middleware and dependencies read it from the request's app, never from module
globals, so every app instance (and every test) has its own counters.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict

from blog_gateway.services.auth_validator import AuthValidator
from blog_gateway.services.csrf import CsrfTokenService
from blog_gateway.services.identity import IdentityProvider
from blog_gateway.utils.cors import CorsResolver
from blog_gateway.utils.ratelimiter import FixedWindowRateLimiter
from blog_gateway.utils.store import Store


@dataclass
class GatewayState:
    cors: CorsResolver
    store: Store
    rate_limiters: Dict[str, FixedWindowRateLimiter]
    identity_provider: IdentityProvider
    auth_validator: AuthValidator
    csrf: CsrfTokenService
    clock: Callable[[], float]
    mount_prefix: str = ""

    def limiter_for(self, category: str) -> FixedWindowRateLimiter:
        return self.rate_limiters.get(category) or self.rate_limiters["default"]
