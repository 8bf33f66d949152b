"""
encoding.py — Skynet Canonical Encoding

Two deterministic encodings live here:

- The binary encoding that feeds registry hashing and signing:
  - numbers: 8 bytes, little-endian, unsigned 64-bit
  - strings: length prefix (as a number) followed by the raw bytes
  These bytes are never sent over the wire, but every implementation MUST
  produce them bit-for-bit identically, since digests and signatures are
  compared across processes and languages.

- Compact JSON for request bodies:
  - Object keys sorted lexicographically
  - No insignificant whitespace
  - No NaN/Infinity (raises ValueError)
"""

from __future__ import annotations
import json
import struct
from typing import Any, Union

MAX_UINT64 = 2**64 - 1

_UINT64_LE = struct.Struct("<Q")


def encode_number(number: int) -> bytes:
    """Return ``number`` as 8 little-endian bytes."""
    if not 0 <= number <= MAX_UINT64:
        raise ValueError(f"number {number} does not fit in an unsigned 64-bit integer")
    return _UINT64_LE.pack(number)


def encode_string(value: Union[str, bytes]) -> bytes:
    """Return the length-prefixed bytes of ``value``.

    ``str`` values are UTF-8 encoded first; the prefix is the byte length.
    """
    raw = value.encode("utf-8") if isinstance(value, str) else bytes(value)
    return encode_number(len(raw)) + raw


def canonical_dumps(obj: Any) -> str:
    """Return canonical JSON string with sorted keys and no whitespace."""
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def canonical_bytes(obj: Any) -> bytes:
    """Return canonical JSON as UTF-8 bytes."""
    return canonical_dumps(obj).encode("utf-8")
