"""
options.py — Skynet SDK Request Options

Every call takes an explicit, immutable options value. Defaults come from
factory functions that return a fresh instance each time, so there is no
shared mutable configuration between callers. Override fields with
``dataclasses.replace``:

    opts = replace(default_upload_options(), portal_url="https://example.org")
"""

from __future__ import annotations
import mimetypes
from dataclasses import dataclass, fields, replace
from typing import Callable, Optional, TypeVar

DEFAULT_PORTAL_URL = "https://siasky.net"
URI_SKYNET_PREFIX = "sia://"

# (filename, first bytes of the file) -> content type
ContentTypeResolver = Callable[[str, bytes], str]

SNIFF_LENGTH = 512

_MAGIC_TYPES = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"%PDF-", "application/pdf"),
    (b"PK\x03\x04", "application/zip"),
    (b"\x1f\x8b\x08", "application/x-gzip"),
    (b"<!DOCTYPE html", "text/html; charset=utf-8"),
    (b"<html", "text/html; charset=utf-8"),
    (b"{", "application/json"),
    (b"[", "application/json"),
)


def default_content_type(filename: str, head: bytes) -> str:
    """Guess a content type from the extension, then from magic bytes."""
    guessed, _ = mimetypes.guess_type(filename)
    if guessed:
        return guessed
    stripped = head[:SNIFF_LENGTH].lstrip()
    for magic, content_type in _MAGIC_TYPES:
        if stripped.startswith(magic):
            return content_type
    return "application/octet-stream"


@dataclass(frozen=True)
class Options:
    """Options used for connecting to a Skynet portal and endpoint."""
    portal_url: str = DEFAULT_PORTAL_URL
    endpoint_path: str = ""
    api_key: str = ""
    custom_user_agent: str = ""
    # Seconds; None means no deadline.
    timeout: Optional[float] = None


@dataclass(frozen=True)
class UploadOptions(Options):
    portal_file_field_name: str = "file"
    portal_directory_file_field_name: str = "files[]"
    custom_filename: str = ""
    custom_dirname: str = ""
    skykey_name: str = ""
    skykey_id: str = ""
    content_type_resolver: ContentTypeResolver = default_content_type


@dataclass(frozen=True)
class DownloadOptions(Options):
    skykey_name: str = ""
    skykey_id: str = ""


OptionsT = TypeVar("OptionsT", bound=Options)


def default_options(endpoint_path: str) -> Options:
    """Return the default options with the given endpoint path."""
    return Options(endpoint_path=endpoint_path)


def default_upload_options() -> UploadOptions:
    return UploadOptions(endpoint_path="/skynet/skyfile")


def default_download_options() -> DownloadOptions:
    return DownloadOptions(endpoint_path="/")


def default_metadata_options() -> Options:
    return default_options("/")


def default_registry_options() -> Options:
    return default_options("/skynet/registry")


def default_skykey_options(operation: str) -> Options:
    """Return default options for one of the skykey endpoints.

    ``operation`` is one of ``add``, ``create``, ``get`` or ``list``.
    """
    paths = {
        "add": "/skynet/addskykey",
        "create": "/skynet/createskykey",
        "get": "/skynet/skykey",
        "list": "/skynet/skykeys",
    }
    try:
        return default_options(paths[operation])
    except KeyError:
        raise ValueError(f"unknown skykey operation: {operation!r}") from None


def merge_options(base: Options, call: OptionsT) -> OptionsT:
    """Fill the connection fields of ``call`` from ``base``.

    Values set on the call win. The portal URL is taken from ``base`` when
    the call still carries the default one.
    """
    overrides = {}
    for f in fields(Options):
        call_value = getattr(call, f.name)
        base_value = getattr(base, f.name)
        if f.name == "endpoint_path":
            continue
        if f.name == "portal_url":
            if call_value == DEFAULT_PORTAL_URL and base_value:
                overrides[f.name] = base_value
            continue
        if call_value in ("", None) and base_value not in ("", None):
            overrides[f.name] = base_value
    return replace(call, **overrides) if overrides else call
