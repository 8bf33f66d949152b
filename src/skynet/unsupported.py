"""
unsupported.py — Administrative endpoints without client support

Portal administration (portal lists, pinning, blocklists, file listings,
conversion, statistics) is not implemented by this SDK. Each call returns a
``NotSupported`` value instead of raising, so callers can branch on it.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class NotSupported:
    operation: str
    reason: str = "not yet supported by this client"

    def __bool__(self) -> bool:
        return False


def _not_supported(operation: str) -> NotSupported:
    return NotSupported(operation=operation)


def get_portals(*args: Any, **kwargs: Any) -> NotSupported:
    return _not_supported("get_portals")


def update_portals(*args: Any, **kwargs: Any) -> NotSupported:
    return _not_supported("update_portals")


def pin(*args: Any, **kwargs: Any) -> NotSupported:
    return _not_supported("pin")


def unpin(*args: Any, **kwargs: Any) -> NotSupported:
    return _not_supported("unpin")


def get_blocklist(*args: Any, **kwargs: Any) -> NotSupported:
    return _not_supported("get_blocklist")


def update_blocklist(*args: Any, **kwargs: Any) -> NotSupported:
    return _not_supported("update_blocklist")


def list_files(*args: Any, **kwargs: Any) -> NotSupported:
    return _not_supported("list_files")


def convert(*args: Any, **kwargs: Any) -> NotSupported:
    return _not_supported("convert")


def stats(*args: Any, **kwargs: Any) -> NotSupported:
    return _not_supported("stats")
