"""Fixed-window rate limiter keyed by client identity.

The window starts with a client's first request: the entry is reset to
``count=1, reset_at=now+window`` when absent or when ``now > reset_at``;
otherwise the count is incremented and compared with the limit. Counters live
in the injected Store (see ``utils.store``), namespaced per category:

    ratelimit:<category>:<client identity>

Usage pattern:
    limiter = FixedWindowRateLimiter(store, limit=100, window_seconds=900)
    decision = await limiter.check(request)
    if not decision.allowed:
        ...  # 429 with decision.headers()

Client identity is the first present of CF-Connecting-IP, the first hop of
X-Forwarded-For and X-Real-IP, else the literal "unknown". Every client behind
a proxy that strips all three therefore shares one bucket. Known limitation,
kept deliberately visible.

Headers contract:
    X-RateLimit-Limit: total allowed in the window
    X-RateLimit-Remaining: remaining in the window
    X-RateLimit-Reset: epoch seconds (rounded up) when the window resets

Counters are per process unless the store is Redis-backed; limits reset on
cold start or when traffic lands on another instance.
"""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Protocol

from .store import Store
from .time import epoch_ceil

UNKNOWN_CLIENT = "unknown"

# (method, path) pairs that use a narrower category than "default"
CATEGORY_ROUTES: Dict[tuple[str, str], str] = {
    ("POST", "/login"): "login",
}


class _HasHeaders(Protocol):
    headers: Mapping[str, str]


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    category: str = "default"

    @property
    def reset_epoch(self) -> int:
        return epoch_ceil(self.reset_at)

    def headers(self) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_epoch),
        }

    def retry_after(self, now: float) -> int:
        return max(0, epoch_ceil(self.reset_at - now))


def client_identity(headers: Mapping[str, str]) -> str:
    """Derive the bucket key from proxy headers, falling back to ``"unknown"``."""
    headers = {k.lower(): v for k, v in headers.items()}
    cf_ip = (headers.get("cf-connecting-ip") or "").strip()
    if cf_ip:
        return cf_ip
    forwarded_for = headers.get("x-forwarded-for") or ""
    first_hop = forwarded_for.split(",")[0].strip()
    if first_hop:
        return first_hop
    real_ip = (headers.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip
    return UNKNOWN_CLIENT


def resolve_category(method: str, path: str) -> str:
    return CATEGORY_ROUTES.get((method.upper(), path.rstrip("/") or "/"), "default")


class FixedWindowRateLimiter:
    def __init__(
        self,
        store: Store,
        limit: int,
        window_seconds: float,
        category: str = "default",
        clock: Callable[[], float] = time.time,
        sweep_interval_seconds: float = 60.0,
    ):
        self._store = store
        self.limit = limit
        self.window_seconds = window_seconds
        self.category = category
        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._last_sweep = clock()
        # get-then-set on one key must not interleave within this process
        self._lock = asyncio.Lock()

    def _key(self, identity: str) -> str:
        return f"ratelimit:{self.category}:{identity}"

    async def _maybe_sweep(self, now: float) -> None:
        if now - self._last_sweep < self._sweep_interval:
            return
        self._last_sweep = now
        await self._store.sweep()

    async def hit(self, identity: str) -> RateLimitDecision:
        now = self._clock()
        await self._maybe_sweep(now)
        key = self._key(identity)

        async with self._lock:
            entry: Optional[Dict[str, Any]] = await self._store.get(key)
            if entry is None or now > float(entry["reset_at"]):
                count, reset_at = 1, now + self.window_seconds
            else:
                count, reset_at = int(entry["count"]) + 1, float(entry["reset_at"])
            # one second of slack so the store never drops an entry before reset_at
            await self._store.set(key, {"count": count, "reset_at": reset_at}, ttl_seconds=reset_at - now + 1)

        allowed = count <= self.limit
        return RateLimitDecision(
            allowed=allowed,
            limit=self.limit,
            remaining=max(0, self.limit - count) if allowed else 0,
            reset_at=reset_at,
            category=self.category,
        )

    async def check(self, request: _HasHeaders) -> RateLimitDecision:
        return await self.hit(client_identity(request.headers))

    async def reset(self, identity: str) -> None:
        await self._store.delete(self._key(identity))


def build_rate_limiters(
    store: Store,
    settings: Mapping[str, Mapping[str, Any]],
    clock: Callable[[], float] = time.time,
) -> Dict[str, FixedWindowRateLimiter]:
    """One limiter per configured category, all sharing ``store``."""
    sweep_interval = float(settings.get("sweep", {}).get("interval_seconds", 60))
    limiters: Dict[str, FixedWindowRateLimiter] = {}
    for category, cfg in settings.items():
        if category == "sweep":
            continue
        limiters[category] = FixedWindowRateLimiter(
            store,
            limit=int(cfg.get("limit", 100)),
            window_seconds=float(cfg.get("window_seconds", 900)),
            category=category,
            clock=clock,
            sweep_interval_seconds=sweep_interval,
        )
    return limiters


__all__ = [
    "FixedWindowRateLimiter",
    "RateLimitDecision",
    "build_rate_limiters",
    "client_identity",
    "resolve_category",
    "UNKNOWN_CLIENT",
]
