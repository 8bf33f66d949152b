"""
test_property_fuzzing.py — Property-based checks for registry entries

Uses Hypothesis to drive the digest, signature and response-parsing code
with generated inputs.

Properties tested:
  A. Encoding and digests
       A1. encode_number is 8 bytes little-endian for every u64
       A2. Digest is deterministic
       A3. Changing data key, data or revision changes the digest
       A4. canonical_bytes ignores dict insertion order

  B. Signatures
       B1. A fresh signature verifies
       B2. Any single-byte signature flip fails verification
       B3. A different key never verifies
       B4. Garbage signatures return False, never raise

  C. Registry GET bodies
       C1. Arbitrary JSON either parses or raises DecodeError
"""

import struct

import pytest

try:
    from hypothesis import given, settings, assume, HealthCheck
    from hypothesis import strategies as st
except ImportError:
    pytest.skip("hypothesis not installed", allow_module_level=True)

from skynet.crypto import SkynetKeypair, verify_digest
from skynet.encoding import MAX_UINT64, canonical_bytes, encode_number
from skynet.errors import DecodeError
from skynet.registry import MAX_REVISION, RegistryEntry, parse_entry_response, sign_entry

OWNER = SkynetKeypair.generate()
STRANGER = SkynetKeypair.generate()

data_keys = st.text(max_size=64)
payloads = st.binary(max_size=256)
revisions = st.integers(min_value=0, max_value=MAX_REVISION)
entries = st.builds(RegistryEntry, data_key=data_keys, data=payloads, revision=revisions)

json_values = st.recursive(
    st.none() | st.booleans() | st.integers() | st.text(max_size=20),
    lambda children: st.lists(children, max_size=4) | st.dictionaries(st.text(max_size=8), children, max_size=4),
    max_leaves=12,
)

FUZZ = settings(max_examples=100, deadline=None, suppress_health_check=[HealthCheck.too_slow])


# A. Encoding and digests

@FUZZ
@given(st.integers(min_value=0, max_value=MAX_UINT64))
def test_encode_number_little_endian(n):
    encoded = encode_number(n)
    assert len(encoded) == 8
    assert struct.unpack("<Q", encoded)[0] == n


@FUZZ
@given(entries)
def test_digest_deterministic(entry):
    same = RegistryEntry(entry.data_key, bytes(entry.data), entry.revision)
    assert entry.digest() == same.digest()
    assert len(entry.digest()) == 32


@FUZZ
@given(entries, entries)
def test_digest_distinguishes_entries(a, b):
    assume((a.data_key, a.data, a.revision) != (b.data_key, b.data, b.revision))
    assert a.digest() != b.digest()


@FUZZ
@given(st.dictionaries(st.text(max_size=8), st.integers(), max_size=8))
def test_canonical_bytes_order_independent(d):
    reordered = dict(reversed(list(d.items())))
    assert canonical_bytes(d) == canonical_bytes(reordered)


# B. Signatures

@FUZZ
@given(entries)
def test_signature_verifies(entry):
    assert sign_entry(OWNER.private_key, entry).verify(OWNER.public_key)


@FUZZ
@given(entries, st.integers(min_value=0, max_value=63), st.integers(min_value=1, max_value=255))
def test_signature_flip_rejected(entry, index, mask):
    signed = sign_entry(OWNER.private_key, entry)
    tampered = bytearray(signed.signature)
    tampered[index] ^= mask
    assert not verify_digest(OWNER.public_key, entry.digest(), bytes(tampered))


@FUZZ
@given(entries)
def test_wrong_key_rejected(entry):
    assert not sign_entry(OWNER.private_key, entry).verify(STRANGER.public_key)


@FUZZ
@given(entries, st.binary(max_size=100))
def test_garbage_signature_is_false(entry, garbage):
    assert verify_digest(OWNER.public_key, entry.digest(), garbage) is False


# C. Registry GET bodies

@FUZZ
@given(st.dictionaries(st.sampled_from(["data", "revision", "signature", "extra"]), json_values))
def test_parse_entry_response_only_raises_decode_error(body):
    try:
        signed = parse_entry_response("k", body)
    except DecodeError:
        return
    assert 0 <= signed.entry.revision <= MAX_REVISION


@FUZZ
@given(json_values)
def test_parse_entry_response_rejects_non_objects(body):
    assume(not isinstance(body, dict))
    with pytest.raises(DecodeError):
        parse_entry_response("k", body)
