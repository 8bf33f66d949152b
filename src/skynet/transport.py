"""
transport.py — Skynet Portal HTTP Transport

Thin layer over ``urllib.request`` that every endpoint module goes through.
Responsibilities:
  - URL construction from portal URL, endpoint path and query values
  - Auth / User-Agent / Content-Type headers from Options
  - Real deadlines: Options.timeout is handed to urlopen
  - Mapping failures onto the SDK taxonomy:
      HTTP status >= 400      -> HTTPStatusError
      connection / timeout    -> TransportError
"""

from __future__ import annotations
import base64
import http.client
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from http.client import HTTPResponse
from typing import Any, Dict, Mapping, Optional

from .errors import DecodeError, HTTPStatusError, TransportError
from .options import Options

logger = logging.getLogger(__name__)


def make_url(portal_url: str, *paths: str, query: Optional[Mapping[str, Any]] = None) -> str:
    """Join the portal URL and path segments, then append the query string.

    Empty query values are dropped.
    """
    url = portal_url.rstrip("/")
    for path in paths:
        path = path.strip("/")
        if path:
            url = f"{url}/{path}"
    if query:
        values = {k: v for k, v in query.items() if v not in ("", None)}
        if values:
            url = f"{url}?{urllib.parse.urlencode(values)}"
    return url


def build_headers(opts: Options, content_type: Optional[str] = None) -> Dict[str, str]:
    """Return request headers derived from ``opts``."""
    headers: Dict[str, str] = {}
    if opts.api_key:
        token = base64.b64encode(f":{opts.api_key}".encode("utf-8")).decode("ascii")
        headers["Authorization"] = f"Basic {token}"
    if opts.custom_user_agent:
        headers["User-Agent"] = opts.custom_user_agent
    if content_type:
        headers["Content-Type"] = content_type
    return headers


def parse_error_message(body: bytes) -> str:
    """Return ``message`` from a JSON error body, else the raw body text."""
    text = body.decode("utf-8", errors="replace")
    try:
        parsed = json.loads(text)
    except ValueError:
        return text
    if isinstance(parsed, dict) and isinstance(parsed.get("message"), str):
        return parsed["message"]
    return text


def execute_request(
    opts: Options,
    method: str,
    url: str,
    body: Optional[bytes] = None,
    content_type: Optional[str] = None,
) -> HTTPResponse:
    """Execute a request and return the open response.

    The caller owns the response and must close it (``with`` block).

    Raises:
        HTTPStatusError: If the portal answers with status >= 400.
        TransportError: On connection failure or when the deadline expires.
    """
    req = urllib.request.Request(
        url,
        data=body,
        headers=build_headers(opts, content_type),
        method=method,
    )
    try:
        if opts.timeout is not None:
            return urllib.request.urlopen(req, timeout=opts.timeout)
        return urllib.request.urlopen(req)
    except urllib.error.HTTPError as e:
        try:
            message = parse_error_message(e.read() if e.fp is not None else b"")
        finally:
            e.close()
        raise HTTPStatusError(e.code, method, message) from e
    except (OSError, http.client.HTTPException) as e:  # URLError, timeouts, malformed responses
        logger.error(f"{method} {url} failed: {e}")
        raise TransportError(f"could not execute {method} request to {url}: {e}") from e


def read_body(resp: HTTPResponse) -> bytes:
    """Read the remaining body of ``resp``, mapping timeouts to TransportError."""
    try:
        return resp.read()
    except (OSError, http.client.HTTPException) as e:
        raise TransportError(f"could not read response body: {e}") from e


def read_json(resp: HTTPResponse) -> Any:
    """Decode the response body as JSON."""
    raw = read_body(resp)
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise DecodeError(f"could not decode response JSON: {e}") from e
