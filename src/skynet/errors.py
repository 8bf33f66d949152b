"""
errors.py — Skynet SDK Error Taxonomy

Standardized error codes and messages for transport, decoding, registry
integrity and key handling failures. Every error raised by the SDK derives
from ``SkynetError``.
"""

from typing import Optional

__all__ = [
    "SkynetError",
    "TransportError",
    "HTTPStatusError",
    "RegistryFetchError",
    "RegistryPublishError",
    "DecodeError",
    "InvalidContentReferenceError",
    "SignatureVerificationError",
    "InvalidKeyError",
    "RevisionOverflowError",
    "EntryNotFoundError",
    "UploadError",
]

class SkynetError(Exception):
    """Base class for all Skynet SDK errors."""
    def __init__(
        self,
        code: str,
        message: str,
        context: Optional[str] = None,
    ):
        self.code = code
        self.message = message
        self.context = context

        full_msg = f"[{code}] {message}"
        if context:
            full_msg += f" Context: {context}"

        super().__init__(full_msg)

# Transport Errors (E1xx)
class TransportError(SkynetError):
    def __init__(self, context: Optional[str] = None):
        super().__init__("SKYNET_E100", "The portal could not be reached or the request timed out.", context)

class HTTPStatusError(SkynetError):
    """A non-success HTTP status, with the portal's error message attached."""

    _code = "SKYNET_E101"
    _message = "The portal responded with a non-success HTTP status."

    def __init__(
        self,
        status_code: int,
        method: str,
        response_message: str,
        context: Optional[str] = None,
    ):
        self.status_code = status_code
        self.method = method
        self.response_message = response_message
        detail = f"{status_code} response from {method}: {response_message}"
        if context:
            detail = f"{context}: {detail}"
        super().__init__(self._code, self._message, detail)

    @classmethod
    def wrap(cls, err: "HTTPStatusError", context: Optional[str] = None) -> "HTTPStatusError":
        """Re-express ``err`` as ``cls`` keeping status, method and message."""
        return cls(err.status_code, err.method, err.response_message, context)

class RegistryFetchError(HTTPStatusError):
    _code = "SKYNET_E102"
    _message = "The registry entry could not be fetched."

class RegistryPublishError(HTTPStatusError):
    _code = "SKYNET_E103"
    _message = "The registry entry could not be published."

# Decode Errors (E2xx)
class DecodeError(SkynetError):
    def __init__(self, context: Optional[str] = None):
        super().__init__("SKYNET_E200", "A portal response contained malformed JSON or hex data.", context)

class InvalidContentReferenceError(SkynetError):
    def __init__(self, context: Optional[str] = None):
        super().__init__("SKYNET_E201", "Registry entry data is not a valid skylink.", context)

# Integrity and Key Errors (E3xx)
class SignatureVerificationError(SkynetError):
    def __init__(self, context: Optional[str] = None):
        super().__init__(
            "SKYNET_E300",
            "Could not verify signature from retrieved, signed registry entry -- possibly corrupted entry.",
            context,
        )

class InvalidKeyError(SkynetError):
    def __init__(self, context: Optional[str] = None):
        super().__init__("SKYNET_E301", "Ed25519 key material is malformed.", context)

# Registry State Errors (E4xx)
class RevisionOverflowError(SkynetError):
    def __init__(self, context: Optional[str] = None):
        super().__init__(
            "SKYNET_E400",
            "Current entry already has maximum allowed revision, could not update the entry.",
            context,
        )

class EntryNotFoundError(SkynetError):
    def __init__(self, context: Optional[str] = None):
        super().__init__("SKYNET_E401", "No registry entry exists for the given public key and data key.", context)

# Upload Errors (E5xx)
class UploadError(SkynetError):
    def __init__(self, context: Optional[str] = None):
        super().__init__("SKYNET_E500", "The upload request could not be prepared.", context)
