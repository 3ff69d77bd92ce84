"""Gateway configuration & tunable request-handling policy.

Every knob that may differ between deployments (allowed origins, rate-limit
windows, pagination caps, store backend, identity provider credentials) is
centralized here. Values come from environment variables with conservative
defaults; grouped settings are kept as mutable dicts so tests can monkeypatch
them before calling ``create_app()``.
"""
from __future__ import annotations

import os


def _env_bool(name: str, default: bool = False) -> bool:
	raw = os.getenv(name)
	if raw is None or not raw.strip():
		return default
	return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: list[str]) -> list[str]:
	raw = os.getenv(name, "")
	items = [item.strip() for item in raw.split(",") if item.strip()]
	return items or list(default)


SERVICE_NAME: str = "blog-gateway"
SERVICE_VERSION: str = "1.0.0"

# Path prefix added by the hosting proxy (e.g. Vercel rewrites /api/* here).
API_MOUNT_PREFIX: str = os.getenv("API_MOUNT_PREFIX", "/api")

# ---------------------------------- CORS ---------------------------------- #
# Entries are exact origins or "*.<suffix>" host wildcards.
CORS_SETTINGS: dict[str, object] = {
	"allowed_origins": _env_list(
		"ALLOWED_ORIGINS",
		["http://localhost:3000", "https://localhost:3000", "*.vercel.app"],
	),
	# Sent when the request origin is not allowed; browsers then deny the call.
	"fallback_origin": os.getenv("CORS_FALLBACK_ORIGIN", "http://localhost:3000"),
	"allow_headers": ["authorization", "x-client-info", "apikey", "content-type", "x-csrf-token"],
	"allow_methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
	"allow_credentials": _env_bool("CORS_ALLOW_CREDENTIALS", True),
	"max_age": 86400,
}

# ------------------------------- Rate limits ------------------------------ #
# Fixed window per client identity. "login" is applied to POST /login only.
RATE_LIMIT_SETTINGS: dict[str, dict[str, int]] = {
	"default": {
		"limit": int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100")),
		"window_seconds": int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", str(15 * 60))),
	},
	"login": {
		"limit": int(os.getenv("LOGIN_RATE_LIMIT_MAX_REQUESTS", "5")),
		"window_seconds": int(os.getenv("LOGIN_RATE_LIMIT_WINDOW_SECONDS", "60")),
	},
	"sweep": {
		"interval_seconds": 60,
	},
}

# ------------------------------- Pagination ------------------------------- #
PAGINATION_SETTINGS: dict[str, int] = {
	"default_limit": 10,
	"max_limit": 50,
	"max_search_length": 100,
}

# ------------------------------ Shared store ------------------------------ #
# "memory" keeps counters per process. "redis" shares them between instances
# but gives no cross-instance atomicity.
STORE_SETTINGS: dict[str, object] = {
	"backend": os.getenv("STORE_BACKEND", "memory").strip().lower(),
	"redis_url": os.getenv("REDIS_URL", "redis://localhost:6379/0"),
	"redis_key_prefix": os.getenv("REDIS_KEY_PREFIX", "blog_gateway:"),
	"redis_health_check_timeout": 2.0,
}

# ------------------------------ Identity / auth --------------------------- #
SUPABASE_URL: str | None = os.getenv("SUPABASE_URL") or None
SUPABASE_SERVICE_ROLE_KEY: str | None = os.getenv("SUPABASE_SERVICE_ROLE_KEY") or None

# Bootstrap access for first-time setup. Both the flag and the token must be
# set; never enable in a long-running deployment.
AUTH_SETTINGS: dict[str, object] = {
	"bootstrap_enabled": _env_bool("AUTH_BOOTSTRAP_ENABLED", False),
	"bootstrap_token": os.getenv("AUTH_BOOTSTRAP_TOKEN") or None,
	"bootstrap_email": os.getenv("AUTH_BOOTSTRAP_EMAIL", "admin@localhost"),
}

# ---------------------------------- CSRF ---------------------------------- #
CSRF_SETTINGS: dict[str, object] = {
	"enabled": _env_bool("CSRF_PROTECTION_ENABLED", False),
	"token_ttl_seconds": 60 * 60,
	"header_name": "X-CSRF-Token",
}

__all__ = [
	"SERVICE_NAME",
	"SERVICE_VERSION",
	"API_MOUNT_PREFIX",
	"CORS_SETTINGS",
	"RATE_LIMIT_SETTINGS",
	"PAGINATION_SETTINGS",
	"STORE_SETTINGS",
	"SUPABASE_URL",
	"SUPABASE_SERVICE_ROLE_KEY",
	"AUTH_SETTINGS",
	"CSRF_SETTINGS",
]
