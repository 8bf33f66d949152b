"""
download.py — Skynet Downloads
"""

from __future__ import annotations
import json
import logging
import shutil
from dataclasses import dataclass
from http.client import HTTPResponse
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .errors import DecodeError
from .options import (
    URI_SKYNET_PREFIX,
    DownloadOptions,
    Options,
    default_download_options,
    default_metadata_options,
)
from .transport import execute_request, make_url

logger = logging.getLogger(__name__)


def strip_prefix(skylink: str) -> str:
    """Remove the ``sia://`` URI prefix, if present."""
    if skylink.startswith(URI_SKYNET_PREFIX):
        return skylink[len(URI_SKYNET_PREFIX):]
    return skylink


def get_download_url(skylink: str, opts: Optional[DownloadOptions] = None) -> str:
    opts = opts or default_download_options()
    return make_url(
        opts.portal_url,
        opts.endpoint_path,
        strip_prefix(skylink),
        query={"skykeyname": opts.skykey_name, "skykeyid": opts.skykey_id},
    )


def download(skylink: str, opts: Optional[DownloadOptions] = None) -> HTTPResponse:
    """Download generic data. The caller closes the returned stream."""
    opts = opts or default_download_options()
    return execute_request(opts, "GET", get_download_url(skylink, opts))


def download_file(
    path: Union[str, Path],
    skylink: str,
    opts: Optional[DownloadOptions] = None,
) -> Path:
    """Download ``skylink`` into the file at ``path``."""
    path = Path(path)
    with download(skylink, opts) as stream, open(path, "wb") as out:
        shutil.copyfileobj(stream, out)
    logger.debug(f"downloaded {skylink} to {path}")
    return path


@dataclass(frozen=True)
class SkyfileMetadata:
    skylink: str
    content_type: str
    metadata: Dict[str, Any]


def get_metadata(skylink: str, opts: Optional[Options] = None) -> SkyfileMetadata:
    """Fetch a skyfile's metadata with a HEAD request."""
    opts = opts or default_metadata_options()
    url = make_url(opts.portal_url, opts.endpoint_path, strip_prefix(skylink))
    with execute_request(opts, "HEAD", url) as resp:
        headers = resp.headers

    raw = headers.get("Skynet-File-Metadata") or "{}"
    try:
        metadata = json.loads(raw)
    except ValueError as err:
        raise DecodeError("could not decode Skynet-File-Metadata header") from err
    return SkyfileMetadata(
        skylink=headers.get("Skynet-Skylink") or strip_prefix(skylink),
        content_type=headers.get("Content-Type") or "",
        metadata=metadata,
    )
