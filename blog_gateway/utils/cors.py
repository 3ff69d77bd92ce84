"""CORS header resolution against a static allow-list.

Allow-list entries are either exact origins (``https://example.com``) or host
suffix wildcards (``*.vercel.app``), matched against the host of the request's
Origin regardless of scheme. ``*`` alone allows every origin.

An origin that is not allowed still receives headers, but with the fallback
origin in ``Access-Control-Allow-Origin``; the browser enforces the denial.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional
from urllib.parse import urlsplit


class CorsResolver:
    def __init__(
        self,
        allowed_origins: Iterable[str],
        fallback_origin: str,
        allow_headers: Iterable[str],
        allow_methods: Iterable[str],
        allow_credentials: bool = True,
        max_age: int = 86400,
    ):
        self._exact: set[str] = set()
        self._suffixes: list[str] = []
        self._allow_any = False
        for entry in allowed_origins:
            entry = entry.strip().rstrip("/")
            if entry == "*":
                self._allow_any = True
            elif entry.startswith("*."):
                self._suffixes.append(entry[1:].lower())  # keep the leading dot
            elif entry:
                self._exact.add(entry)
        self.fallback_origin = fallback_origin
        self.allow_headers = ", ".join(allow_headers)
        self.allow_methods = ", ".join(allow_methods)
        self.allow_credentials = allow_credentials
        self.max_age = max_age

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> "CorsResolver":
        return cls(
            allowed_origins=settings.get("allowed_origins", []),
            fallback_origin=str(settings.get("fallback_origin", "")),
            allow_headers=settings.get("allow_headers", []),
            allow_methods=settings.get("allow_methods", []),
            allow_credentials=bool(settings.get("allow_credentials", True)),
            max_age=int(settings.get("max_age", 86400)),
        )

    def is_allowed(self, origin: Optional[str]) -> bool:
        if not origin:
            return False
        origin = origin.strip().rstrip("/")
        if self._allow_any or origin in self._exact:
            return True
        host = (urlsplit(origin).hostname or "").lower()
        return bool(host) and any(host.endswith(suffix) for suffix in self._suffixes)

    def resolve(self, origin: Optional[str]) -> Dict[str, str]:
        allow_origin = origin.strip().rstrip("/") if origin and self.is_allowed(origin) else self.fallback_origin
        headers = {
            "Access-Control-Allow-Origin": allow_origin,
            "Access-Control-Allow-Headers": self.allow_headers,
            "Access-Control-Allow-Methods": self.allow_methods,
            "Access-Control-Max-Age": str(self.max_age),
            "Vary": "Origin",
        }
        if self.allow_credentials:
            headers["Access-Control-Allow-Credentials"] = "true"
        return headers


__all__ = ["CorsResolver"]
