"""Skynet Python SDK public API.

This module exposes the ``SkynetClient`` facade and stable top-level imports
for uploads, downloads, the signed registry and SkyDB.

Example:
    from skynet import SkynetClient, SkynetKeypair

    client = SkynetClient("https://siasky.net")
    kp = SkynetKeypair.generate()
    client.set_json(kp.private_key, "settings", {"theme": "dark"})
    print(client.get_json(kp.public_key, "settings"))
"""

from .client import SkynetClient
from .crypto import (
    SkynetKeypair,
    derive_public_key,
    hash_data_key,
    hash_registry_entry,
    sign_digest,
    verify_digest,
)
from .download import SkyfileMetadata, download, download_file, get_metadata
from .encoding import canonical_bytes, canonical_dumps, encode_number, encode_string
from .errors import (
    DecodeError,
    EntryNotFoundError,
    HTTPStatusError,
    InvalidContentReferenceError,
    InvalidKeyError,
    RegistryFetchError,
    RegistryPublishError,
    RevisionOverflowError,
    SignatureVerificationError,
    SkynetError,
    TransportError,
    UploadError,
)
from .options import (
    DEFAULT_PORTAL_URL,
    URI_SKYNET_PREFIX,
    DownloadOptions,
    Options,
    UploadOptions,
    default_download_options,
    default_options,
    default_registry_options,
    default_skykey_options,
    default_upload_options,
)
from .registry import (
    MAX_REVISION,
    REGISTRY_ENDPOINT,
    RegistryEntry,
    SignedEntry,
    get_entry,
    set_entry,
)
from .skydb import get_document, get_json, set_document, set_json
from .skykeys import (
    Skykey,
    add_skykey,
    create_skykey,
    get_skykey_by_id,
    get_skykey_by_name,
    list_skykeys,
)
from .unsupported import NotSupported
from .upload import upload, upload_bytes, upload_directory, upload_file

__version__ = "2.0.0"

__all__ = [
    "SkynetClient",
    "SkynetKeypair",
    "RegistryEntry",
    "SignedEntry",
    "Skykey",
    "SkyfileMetadata",
    "NotSupported",
    "Options",
    "UploadOptions",
    "DownloadOptions",
    "DEFAULT_PORTAL_URL",
    "URI_SKYNET_PREFIX",
    "MAX_REVISION",
    "REGISTRY_ENDPOINT",
    "default_options",
    "default_upload_options",
    "default_download_options",
    "default_registry_options",
    "default_skykey_options",
    "encode_number",
    "encode_string",
    "canonical_dumps",
    "canonical_bytes",
    "hash_data_key",
    "hash_registry_entry",
    "derive_public_key",
    "sign_digest",
    "verify_digest",
    "get_entry",
    "set_entry",
    "get_document",
    "get_json",
    "set_document",
    "set_json",
    "upload",
    "upload_bytes",
    "upload_file",
    "upload_directory",
    "download",
    "download_file",
    "get_metadata",
    "add_skykey",
    "create_skykey",
    "get_skykey_by_name",
    "get_skykey_by_id",
    "list_skykeys",
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
