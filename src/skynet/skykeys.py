"""
skykeys.py — Skykey Management

Skykeys are portal-side encryption keys. Uploads and downloads reference
them by name or id through UploadOptions / DownloadOptions.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .errors import DecodeError
from .options import Options, default_skykey_options
from .transport import execute_request, make_url, read_body, read_json

SKYKEY_TYPES = ("public-id", "private-id")


@dataclass(frozen=True)
class Skykey:
    skykey: str
    name: str
    id: str
    type: str

    @classmethod
    def from_dict(cls, data: Any) -> "Skykey":
        if not isinstance(data, dict):
            raise DecodeError("skykey response must be a JSON object")
        return cls(
            skykey=str(data.get("skykey", "")),
            name=str(data.get("name", "")),
            id=str(data.get("id", "")),
            type=str(data.get("type", "")),
        )


def _request_skykey(opts: Options, method: str, query: Dict[str, str]) -> Skykey:
    url = make_url(opts.portal_url, opts.endpoint_path, query=query)
    with execute_request(opts, method, url) as resp:
        return Skykey.from_dict(read_json(resp))


def add_skykey(skykey: str, opts: Optional[Options] = None) -> None:
    """Store the given base64-encoded skykey with the portal's key manager."""
    opts = opts or default_skykey_options("add")
    url = make_url(opts.portal_url, opts.endpoint_path, query={"skykey": skykey})
    with execute_request(opts, "POST", url) as resp:
        read_body(resp)


def create_skykey(name: str, skykey_type: str, opts: Optional[Options] = None) -> Skykey:
    """Create a new skykey stored under ``name``."""
    if skykey_type not in SKYKEY_TYPES:
        raise ValueError(f"skykey type must be one of {SKYKEY_TYPES}, got {skykey_type!r}")
    opts = opts or default_skykey_options("create")
    return _request_skykey(opts, "POST", {"name": name, "type": skykey_type})


def get_skykey_by_name(name: str, opts: Optional[Options] = None) -> Skykey:
    opts = opts or default_skykey_options("get")
    return _request_skykey(opts, "GET", {"name": name})


def get_skykey_by_id(skykey_id: str, opts: Optional[Options] = None) -> Skykey:
    opts = opts or default_skykey_options("get")
    return _request_skykey(opts, "GET", {"id": skykey_id})


def list_skykeys(opts: Optional[Options] = None) -> List[Skykey]:
    opts = opts or default_skykey_options("list")
    url = make_url(opts.portal_url, opts.endpoint_path)
    with execute_request(opts, "GET", url) as resp:
        body = read_json(resp)
    if not isinstance(body, dict) or not isinstance(body.get("skykeys") or [], list):
        raise DecodeError("skykeys response must contain a 'skykeys' list")
    return [Skykey.from_dict(item) for item in body.get("skykeys") or []]
