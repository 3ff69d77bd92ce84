"""Route table machinery.

Routes are declared as data (method, path template, handler, auth flag) and
registered most-specific first: more path segments before fewer, literal
segments before ``{param}`` segments. Registration order is match order, so
``/admin/posts/{post_id}`` can never shadow a literal sibling of the same depth.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Tuple

from fastapi import Depends, FastAPI

from .deps import require_auth, require_csrf


@dataclass(frozen=True)
class Route:
    method: str
    path: str
    endpoint: Callable[..., Any]
    requires_auth: bool = False
    csrf_protected: bool = False
    name: Optional[str] = None
    summary: Optional[str] = None
    tag: Optional[str] = None
    status_code: int = 200

    @property
    def segments(self) -> Tuple[str, ...]:
        return tuple(s for s in self.path.split("/") if s)

    @property
    def specificity(self) -> Tuple[int, int]:
        """Sort key: deeper paths first, then fewer parameters."""
        params = sum(1 for s in self.segments if s.startswith("{"))
        return (-len(self.segments), params)


def ordered(routes: Iterable[Route]) -> List[Route]:
    # sorted() is stable, declaration order breaks ties
    return sorted(routes, key=lambda r: r.specificity)


def register_routes(app: FastAPI, routes: Iterable[Route]) -> None:
    for route in ordered(routes):
        dependencies = []
        if route.requires_auth:
            # route-level dependencies run before any handler dependency
            dependencies.append(Depends(require_auth))
        if route.csrf_protected:
            dependencies.append(Depends(require_csrf))
        app.add_api_route(
            route.path,
            route.endpoint,
            methods=[route.method],
            dependencies=dependencies,
            name=route.name,
            summary=route.summary,
            tags=[route.tag] if route.tag else None,
            status_code=route.status_code,
        )


__all__ = ["Route", "ordered", "register_routes"]
