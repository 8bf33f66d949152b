"""
registry.py — Skynet Signed Mutable Registry

A registry entry is a (data_key, data, revision) record that lives under an
Ed25519 public key on the portal. Only the holder of the private key can
publish a new revision; anyone can read one.

Trust model:
  The portal is NOT trusted. Every fetched entry is rebuilt locally from the
  caller's original data key plus the returned data/revision, re-hashed, and
  verified against the caller's public key. A failing entry raises
  SignatureVerificationError and is never returned.

Revisions:
  Unsigned 64-bit counters. The portal rejects revisions that do not
  advance; this module never retries and never wraps past 2**64-1.

Wire protocol:
  GET  /skynet/registry?publickey=ed25519:<hex>&datakey=<hex(hash_data_key)>
       -> 200 {"data": hex, "revision": n, "signature": hex} | 404
  POST /skynet/registry
       {"publickey": {"algorithm": "ed25519", "key": [..]},
        "datakey": hex, "revision": n, "data": [..], "signature": [..]}
       -> 204
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .crypto import (
    KeyMaterial,
    decode_public_key,
    derive_public_key,
    hash_data_key,
    hash_registry_entry,
    sign_digest,
    verify_digest,
)
from .encoding import MAX_UINT64, canonical_bytes
from .errors import (
    DecodeError,
    HTTPStatusError,
    RegistryFetchError,
    RegistryPublishError,
    RevisionOverflowError,
    SignatureVerificationError,
)
from .options import Options, default_registry_options
from .transport import execute_request, make_url, read_body, read_json

logger = logging.getLogger(__name__)

REGISTRY_ENDPOINT = "/skynet/registry"
ED25519_ALGORITHM = "ed25519"
MAX_REVISION = MAX_UINT64


@dataclass(frozen=True)
class RegistryEntry:
    data_key: str
    data: bytes
    revision: int

    def __post_init__(self) -> None:
        if self.revision < 0:
            raise ValueError(f"revision must be non-negative, got {self.revision}")
        if self.revision > MAX_REVISION:
            raise RevisionOverflowError(f"revision {self.revision} exceeds {MAX_REVISION}")

    def digest(self) -> bytes:
        return hash_registry_entry(self)


@dataclass(frozen=True)
class SignedEntry:
    entry: RegistryEntry
    signature: bytes

    def verify(self, public_key: KeyMaterial) -> bool:
        """Return True if the signature covers this entry under ``public_key``."""
        return verify_digest(public_key, self.entry.digest(), self.signature)


def sign_entry(private_key: KeyMaterial, entry: RegistryEntry) -> SignedEntry:
    return SignedEntry(entry=entry, signature=sign_digest(private_key, entry.digest()))


def next_revision(current: Optional[SignedEntry]) -> int:
    """Return the revision that follows ``current``; 0 for a new entry."""
    if current is None:
        return 0
    revision = current.entry.revision + 1
    if revision > MAX_REVISION:
        raise RevisionOverflowError(
            f"data key {current.entry.data_key!r} is at revision {current.entry.revision}"
        )
    return revision


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def get_entry_url(
    public_key: KeyMaterial,
    data_key: str,
    opts: Optional[Options] = None,
) -> str:
    """Return the URL that fetches the entry for (public_key, data_key)."""
    opts = opts or default_registry_options()
    query: Dict[str, Any] = {
        "publickey": f"{ED25519_ALGORITHM}:{decode_public_key(public_key).hex()}",
        "datakey": hash_data_key(data_key).hex(),
    }
    if opts.timeout is not None:
        query["timeout"] = max(1, int(opts.timeout))
    return make_url(opts.portal_url, opts.endpoint_path or REGISTRY_ENDPOINT, query=query)


def _decode_hex(value: Any, field: str) -> bytes:
    if not isinstance(value, str):
        raise DecodeError(f"registry entry field {field!r} must be a hex string")
    try:
        return bytes.fromhex(value)
    except ValueError as err:
        raise DecodeError(f"could not decode {field}") from err


def parse_entry_response(data_key: str, body: Any) -> SignedEntry:
    """Build a SignedEntry from a registry GET body without verifying it."""
    if not isinstance(body, dict):
        raise DecodeError("registry entry response must be a JSON object")
    revision = body.get("revision")
    if isinstance(revision, bool) or not isinstance(revision, int):
        raise DecodeError("registry entry field 'revision' must be an integer")
    if not 0 <= revision <= MAX_REVISION:
        raise DecodeError(f"registry entry revision {revision} is out of range")
    entry = RegistryEntry(
        data_key=data_key,
        data=_decode_hex(body.get("data"), "data"),
        revision=revision,
    )
    return SignedEntry(entry=entry, signature=_decode_hex(body.get("signature"), "signature"))


def get_entry(
    public_key: KeyMaterial,
    data_key: str,
    opts: Optional[Options] = None,
) -> Optional[SignedEntry]:
    """
    Fetch and verify the registry entry for (public_key, data_key).

    Returns None if the portal reports that no entry exists (404).

    Raises:
        RegistryFetchError: On any other non-2xx response.
        DecodeError: If the response body is malformed.
        SignatureVerificationError: If the entry does not verify.
        TransportError: On connection failure or timeout.
    """
    opts = opts or default_registry_options()
    url = get_entry_url(public_key, data_key, opts)

    try:
        with execute_request(opts, "GET", url) as resp:
            body = read_json(resp)
    except HTTPStatusError as err:
        if err.status_code == 404:
            logger.debug(f"no registry entry for data key {data_key!r}")
            return None
        raise RegistryFetchError.wrap(err, "could not fetch registry entry") from err

    signed = parse_entry_response(data_key, body)
    if not signed.verify(public_key):
        raise SignatureVerificationError(
            f"data key {data_key!r}, revision {signed.entry.revision}"
        )

    logger.debug(f"verified registry entry {data_key!r} at revision {signed.entry.revision}")
    return signed


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def _request_body(signed: SignedEntry, public_key: bytes) -> bytes:
    entry = signed.entry
    request_body = {
        "publickey": {
            "algorithm": ED25519_ALGORITHM,
            "key": list(public_key),
        },
        "datakey": hash_data_key(entry.data_key).hex(),
        "revision": entry.revision,
        "data": list(entry.data),
        "signature": list(signed.signature),
    }
    return canonical_bytes(request_body)


def prepare_set_entry_body(private_key: KeyMaterial, entry: RegistryEntry) -> bytes:
    """Sign ``entry`` and return the JSON body for the registry POST."""
    return _request_body(sign_entry(private_key, entry), derive_public_key(private_key))


def set_entry(
    private_key: KeyMaterial,
    entry: RegistryEntry,
    opts: Optional[Options] = None,
) -> SignedEntry:
    """
    Sign and publish ``entry``. Returns the signed entry that was sent.

    There is no retry: a stale revision rejected by the portal surfaces as
    RegistryPublishError and the caller decides what to do.
    """
    opts = opts or default_registry_options()
    signed = sign_entry(private_key, entry)
    body = _request_body(signed, derive_public_key(private_key))
    url = make_url(opts.portal_url, opts.endpoint_path or REGISTRY_ENDPOINT)

    try:
        with execute_request(opts, "POST", url, body=body, content_type="application/json") as resp:
            status = resp.status
            read_body(resp)
    except HTTPStatusError as err:
        raise RegistryPublishError.wrap(err, "could not set registry entry") from err

    if status not in (200, 204):
        raise RegistryPublishError(status, "POST", "unexpected status", "could not set registry entry")

    logger.debug(f"published registry entry {entry.data_key!r} at revision {entry.revision}")
    return signed
