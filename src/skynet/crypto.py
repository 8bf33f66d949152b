"""
crypto.py — Skynet Registry Hashing and Signing Layer

Implements:
  - Data key and registry entry hashing (Blake2b-256 over canonical encoding)
  - Ed25519 signing and verification of entry digests (RFC 8032)
  - Key material handling (64-byte private keys, 32-byte public keys)

Dependencies:
  - cryptography >= 41.0 (pip install cryptography)

Key format:
  Private keys follow the Ed25519 convention used by the portal software:
  a 32-byte seed followed by the 32-byte public key derived from it. Public
  keys and signatures cross the wire as lowercase hex, raw bytes internally.

Digest:
  hash_registry_entry(e) = H( H(encode_string(e.data_key))
                              || encode_string(e.data)
                              || encode_number(e.revision) )
  where H is Blake2b with a 32-byte digest. The data key is hashed on its
  own first, so it enters the outer hash fixed-width.
"""

from __future__ import annotations
import hashlib
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
)

from .encoding import encode_number, encode_string
from .errors import InvalidKeyError

if TYPE_CHECKING:
    from .registry import RegistryEntry

PRIVATE_KEY_SIZE = 64
PUBLIC_KEY_SIZE = 32
SEED_SIZE = 32
SIGNATURE_SIZE = 64
DIGEST_SIZE = 32

KeyMaterial = Union[str, bytes]


# ---------------------------------------------------------------------------
# Hashing
# ---------------------------------------------------------------------------

def blake2b_256(data: bytes) -> bytes:
    """Return the 32-byte Blake2b digest of ``data``."""
    return hashlib.blake2b(data, digest_size=DIGEST_SIZE).digest()


def hash_all(*args: bytes) -> bytes:
    """Concatenate all arguments and hash the result."""
    return blake2b_256(b"".join(args))


def hash_data_key(data_key: str) -> bytes:
    """Hash the given data key."""
    return blake2b_256(encode_string(data_key))


def hash_registry_entry(entry: "RegistryEntry") -> bytes:
    """Return the digest that is signed for ``entry``."""
    return hash_all(
        hash_data_key(entry.data_key),
        encode_string(entry.data),
        encode_number(entry.revision),
    )


# ---------------------------------------------------------------------------
# Key material
# ---------------------------------------------------------------------------

def _key_bytes(key: KeyMaterial, expected_size: int, what: str) -> bytes:
    if isinstance(key, str):
        try:
            raw = bytes.fromhex(key)
        except ValueError as err:
            raise InvalidKeyError(f"could not decode {what} hex") from err
    else:
        raw = bytes(key)
    if len(raw) != expected_size:
        raise InvalidKeyError(f"{what} must be {expected_size} bytes, got {len(raw)}")
    return raw


def decode_private_key(key: KeyMaterial) -> bytes:
    """Return raw 64-byte private key material from bytes or hex."""
    return _key_bytes(key, PRIVATE_KEY_SIZE, "private key")


def decode_public_key(key: KeyMaterial) -> bytes:
    """Return a raw 32-byte public key from bytes or hex."""
    return _key_bytes(key, PUBLIC_KEY_SIZE, "public key")


def derive_public_key(private_key: KeyMaterial) -> bytes:
    """Return the public key packed into the last 32 bytes of ``private_key``."""
    return decode_private_key(private_key)[SEED_SIZE:]


def _signing_key(private_key: KeyMaterial) -> Ed25519PrivateKey:
    raw = decode_private_key(private_key)
    sk = Ed25519PrivateKey.from_private_bytes(raw[:SEED_SIZE])
    derived = sk.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
    if derived != raw[SEED_SIZE:]:
        raise InvalidKeyError("public half of private key does not match its seed")
    return sk


# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------

def sign_digest(private_key: KeyMaterial, digest: bytes) -> bytes:
    """Sign ``digest`` with Ed25519. Signatures are deterministic."""
    return _signing_key(private_key).sign(digest)


def verify_digest(public_key: KeyMaterial, digest: bytes, signature: bytes) -> bool:
    """
    Verify an Ed25519 signature over ``digest``.

    Returns True if valid, False on any cryptographic mismatch, including a
    signature of the wrong length. Raises InvalidKeyError only when the
    public key itself is malformed.
    """
    pk_bytes = decode_public_key(public_key)
    if len(signature) != SIGNATURE_SIZE:
        return False

    try:
        pk = Ed25519PublicKey.from_public_bytes(pk_bytes)
    except ValueError as err:
        raise InvalidKeyError("public key is not a valid Ed25519 point") from err

    try:
        pk.verify(bytes(signature), digest)
        return True
    except InvalidSignature:
        return False


# ---------------------------------------------------------------------------
# Keypair management
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SkynetKeypair:
    """An Ed25519 keypair in the 64-byte private key convention."""
    public_key: bytes
    private_key: bytes

    @classmethod
    def generate(cls) -> "SkynetKeypair":
        """Generate a new random keypair."""
        sk = Ed25519PrivateKey.generate()
        seed = sk.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption())
        pub = sk.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
        return cls(public_key=pub, private_key=seed + pub)

    @classmethod
    def from_private_key(cls, private_key: KeyMaterial) -> "SkynetKeypair":
        """Load a keypair from 64-byte private key material (bytes or hex)."""
        _signing_key(private_key)  # rejects mismatched halves
        raw = decode_private_key(private_key)
        return cls(public_key=raw[SEED_SIZE:], private_key=raw)

    @property
    def public_key_hex(self) -> str:
        return self.public_key.hex()

    @property
    def private_key_hex(self) -> str:
        """Export the private key as hex. Keep it out of logs and portals."""
        return self.private_key.hex()
