"""Request path parsing.

The hosting proxy forwards requests under a mount prefix (``/api`` by
default). It is stripped on a segment boundary only, so ``/apix/posts`` is
left alone. A trailing numeric segment is exposed as the resource id for
404 diagnostics.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class ParsedPath:
    original_path: str
    clean_path: str
    segments: Tuple[str, ...]
    resource_id: Optional[int]

    def debug(self, method: str) -> dict:
        return {
            "path": self.clean_path,
            "segments": list(self.segments),
            "resource_id": self.resource_id,
            "method": method,
        }


def strip_mount_prefix(path: str, prefix: str) -> str:
    prefix = prefix.rstrip("/")
    if prefix and (path == prefix or path.startswith(prefix + "/")):
        path = path[len(prefix):]
    return path or "/"


def parse_path(path: str, mount_prefix: str = "") -> ParsedPath:
    stripped = strip_mount_prefix(path, mount_prefix)
    segments = tuple(s for s in stripped.split("/") if s)
    resource_id = None
    if segments and segments[-1].isdigit():
        resource_id = int(segments[-1])
    return ParsedPath(
        original_path=path.rstrip("/") or "/",
        clean_path="/" + "/".join(segments),
        segments=segments,
        resource_id=resource_id,
    )


__all__ = ["ParsedPath", "parse_path", "strip_mount_prefix"]
