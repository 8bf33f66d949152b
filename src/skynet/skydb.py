"""
skydb.py — SkyDB Document Store

SkyDB stores mutable documents on top of two primitives:
  - the immutable blob store, which holds every document version
  - the signed registry, whose entry under (public_key, data_key) points at
    the current version's skylink

Write path (set_document):
  1. Learn the current revision (unless the caller supplies one)
  2. Stage the content in a temporary file and upload it -> skylink
  3. Publish RegistryEntry(data_key, skylink, revision) signed by the owner

Steps 2 and 3 are not atomic. A failure after the upload orphans a blob
(harmless, content-addressed) and leaves the registry untouched; callers
retry the whole operation. Two concurrent writers race between step 1 and
step 3; the portal rejects the stale revision. No client-side lock is
taken.
"""

from __future__ import annotations
import json
import logging
import re
import shutil
import tempfile
from http.client import HTTPResponse
from typing import Any, BinaryIO, Optional, Union

from .crypto import KeyMaterial, derive_public_key
from .download import download, strip_prefix
from .encoding import canonical_bytes
from .errors import (
    DecodeError,
    EntryNotFoundError,
    InvalidContentReferenceError,
)
from .options import (
    DownloadOptions,
    Options,
    UploadOptions,
    default_download_options,
    default_registry_options,
    default_upload_options,
    merge_options,
)
from .registry import RegistryEntry, SignedEntry, get_entry, next_revision, set_entry
from .transport import read_body
from .upload import upload

logger = logging.getLogger(__name__)

# base64url (46 chars) or base32 (55 chars), optionally followed by a path
_SKYLINK_RE = re.compile(r"^(?:[A-Za-z0-9_-]{46}|[0-9a-v]{55})(?:/.*)?$")


def skylink_from_entry(entry: RegistryEntry) -> str:
    """Decode an entry's data as the skylink it references."""
    try:
        skylink = entry.data.decode("ascii")
    except UnicodeDecodeError as err:
        raise InvalidContentReferenceError(f"data key {entry.data_key!r}: data is not ASCII") from err
    skylink = strip_prefix(skylink)
    if not _SKYLINK_RE.match(skylink):
        raise InvalidContentReferenceError(f"data key {entry.data_key!r}: {skylink!r}")
    return skylink


def _blob_options(registry_opts: Optional[Options], blob_opts, default):
    """Blob traffic goes to the registry's portal unless told otherwise."""
    if blob_opts is not None:
        return blob_opts
    return merge_options(registry_opts or default_registry_options(), default)


def get_document(
    public_key: KeyMaterial,
    data_key: str,
    registry_opts: Optional[Options] = None,
    download_opts: Optional[DownloadOptions] = None,
) -> HTTPResponse:
    """Return a stream over the current document under (public_key, data_key).

    Without ``download_opts`` the blob is fetched from the registry portal.

    Raises:
        EntryNotFoundError: If no registry entry exists yet.
        SignatureVerificationError: If the registry entry does not verify.
        InvalidContentReferenceError: If the entry does not hold a skylink.
    """
    download_opts = _blob_options(registry_opts, download_opts, default_download_options())
    signed = get_entry(public_key, data_key, registry_opts)
    if signed is None:
        raise EntryNotFoundError(f"data key {data_key!r}")
    skylink = skylink_from_entry(signed.entry)
    logger.debug(f"data key {data_key!r} revision {signed.entry.revision} -> {skylink}")
    return download(skylink, download_opts)


def get_json(
    public_key: KeyMaterial,
    data_key: str,
    registry_opts: Optional[Options] = None,
    download_opts: Optional[DownloadOptions] = None,
) -> Any:
    """Fetch the current document and parse it as JSON."""
    with get_document(public_key, data_key, registry_opts, download_opts) as stream:
        raw = read_body(stream)
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as err:
        raise DecodeError(f"document under data key {data_key!r} is not JSON") from err


def set_document(
    private_key: KeyMaterial,
    data_key: str,
    content: Union[bytes, BinaryIO],
    revision: Optional[int] = None,
    registry_opts: Optional[Options] = None,
    upload_opts: Optional[UploadOptions] = None,
) -> SignedEntry:
    """Upload ``content`` and point the registry entry at it.

    Without an explicit ``revision`` the current entry is fetched and the
    next revision is used (0 when the entry does not exist yet).

    Without ``upload_opts`` the upload goes to the portal named by
    ``registry_opts``, with its credentials.

    Returns the signed entry that was published.
    """
    upload_opts = _blob_options(registry_opts, upload_opts, default_upload_options())
    if revision is None:
        current = get_entry(derive_public_key(private_key), data_key, registry_opts)
        revision = next_revision(current)
    logger.debug(f"writing data key {data_key!r} at revision {revision}")

    # Validates the revision before anything is uploaded.
    RegistryEntry(data_key=data_key, data=b"", revision=revision)

    with tempfile.NamedTemporaryFile(prefix="skydb-", suffix=".json") as staged:
        if isinstance(content, (bytes, bytearray)):
            staged.write(content)
        else:
            shutil.copyfileobj(content, staged)
        staged.flush()
        staged.seek(0)
        locator = upload({f"skydb-{revision}.json": staged}, upload_opts)

    skylink = strip_prefix(locator)
    entry = RegistryEntry(data_key=data_key, data=skylink.encode("ascii"), revision=revision)
    return set_entry(private_key, entry, registry_opts)


def set_json(
    private_key: KeyMaterial,
    data_key: str,
    obj: Any,
    revision: Optional[int] = None,
    registry_opts: Optional[Options] = None,
    upload_opts: Optional[UploadOptions] = None,
) -> SignedEntry:
    """Serialize ``obj`` as canonical JSON and store it under ``data_key``."""
    return set_document(
        private_key,
        data_key,
        canonical_bytes(obj),
        revision=revision,
        registry_opts=registry_opts,
        upload_opts=upload_opts,
    )
