"""
client.py — SkynetClient facade

Binds a portal URL and base connection options (API key, user agent,
timeout) to every endpoint. Per-call options override the client's values
field by field; the client itself holds no mutable state and is safe to
share between threads.
"""

from __future__ import annotations
from dataclasses import replace
from http.client import HTTPResponse
from pathlib import Path
from typing import Any, BinaryIO, List, Optional, Union

from . import download as _download
from . import registry as _registry
from . import skydb as _skydb
from . import skykeys as _skykeys
from . import upload as _upload
from .crypto import KeyMaterial
from .options import (
    DownloadOptions,
    Options,
    OptionsT,
    UploadOptions,
    default_download_options,
    default_metadata_options,
    default_registry_options,
    default_skykey_options,
    default_upload_options,
    merge_options,
)
from .registry import RegistryEntry, SignedEntry


class SkynetClient:
    """Client for a single Skynet portal."""

    def __init__(self, portal_url: Optional[str] = None, options: Optional[Options] = None):
        options = options or Options()
        if portal_url:
            options = replace(options, portal_url=portal_url)
        self.options = options

    @property
    def portal_url(self) -> str:
        return self.options.portal_url

    def _opts(self, call: Optional[OptionsT], default: OptionsT) -> OptionsT:
        return merge_options(self.options, call if call is not None else default)

    def _blob_opts(self, call: Optional[OptionsT]) -> Optional[OptionsT]:
        # None lets skydb send blobs to the registry call's portal.
        return merge_options(self.options, call) if call is not None else None

    # -- uploads -----------------------------------------------------------

    def upload(self, upload_data: _upload.UploadData, opts: Optional[UploadOptions] = None) -> str:
        return _upload.upload(upload_data, self._opts(opts, default_upload_options()))

    def upload_bytes(self, data: bytes, filename: str, opts: Optional[UploadOptions] = None) -> str:
        return _upload.upload_bytes(data, filename, self._opts(opts, default_upload_options()))

    def upload_file(self, path: Union[str, Path], opts: Optional[UploadOptions] = None) -> str:
        return _upload.upload_file(path, self._opts(opts, default_upload_options()))

    def upload_directory(self, path: Union[str, Path], opts: Optional[UploadOptions] = None) -> str:
        return _upload.upload_directory(path, self._opts(opts, default_upload_options()))

    # -- downloads ---------------------------------------------------------

    def download(self, skylink: str, opts: Optional[DownloadOptions] = None) -> HTTPResponse:
        return _download.download(skylink, self._opts(opts, default_download_options()))

    def download_file(
        self,
        path: Union[str, Path],
        skylink: str,
        opts: Optional[DownloadOptions] = None,
    ) -> Path:
        return _download.download_file(path, skylink, self._opts(opts, default_download_options()))

    def get_metadata(self, skylink: str, opts: Optional[Options] = None) -> _download.SkyfileMetadata:
        return _download.get_metadata(skylink, self._opts(opts, default_metadata_options()))

    # -- registry ----------------------------------------------------------

    def get_entry(
        self,
        public_key: KeyMaterial,
        data_key: str,
        opts: Optional[Options] = None,
    ) -> Optional[SignedEntry]:
        return _registry.get_entry(public_key, data_key, self._opts(opts, default_registry_options()))

    def set_entry(
        self,
        private_key: KeyMaterial,
        entry: RegistryEntry,
        opts: Optional[Options] = None,
    ) -> SignedEntry:
        return _registry.set_entry(private_key, entry, self._opts(opts, default_registry_options()))

    # -- skydb -------------------------------------------------------------

    def get_document(
        self,
        public_key: KeyMaterial,
        data_key: str,
        registry_opts: Optional[Options] = None,
        download_opts: Optional[DownloadOptions] = None,
    ) -> HTTPResponse:
        return _skydb.get_document(
            public_key,
            data_key,
            self._opts(registry_opts, default_registry_options()),
            self._blob_opts(download_opts),
        )

    def get_json(
        self,
        public_key: KeyMaterial,
        data_key: str,
        registry_opts: Optional[Options] = None,
        download_opts: Optional[DownloadOptions] = None,
    ) -> Any:
        return _skydb.get_json(
            public_key,
            data_key,
            self._opts(registry_opts, default_registry_options()),
            self._blob_opts(download_opts),
        )

    def set_document(
        self,
        private_key: KeyMaterial,
        data_key: str,
        content: Union[bytes, BinaryIO],
        revision: Optional[int] = None,
        registry_opts: Optional[Options] = None,
        upload_opts: Optional[UploadOptions] = None,
    ) -> SignedEntry:
        return _skydb.set_document(
            private_key,
            data_key,
            content,
            revision=revision,
            registry_opts=self._opts(registry_opts, default_registry_options()),
            upload_opts=self._blob_opts(upload_opts),
        )

    def set_json(
        self,
        private_key: KeyMaterial,
        data_key: str,
        obj: Any,
        revision: Optional[int] = None,
        registry_opts: Optional[Options] = None,
        upload_opts: Optional[UploadOptions] = None,
    ) -> SignedEntry:
        return _skydb.set_json(
            private_key,
            data_key,
            obj,
            revision=revision,
            registry_opts=self._opts(registry_opts, default_registry_options()),
            upload_opts=self._blob_opts(upload_opts),
        )

    # -- skykeys -----------------------------------------------------------

    def add_skykey(self, skykey: str) -> None:
        _skykeys.add_skykey(skykey, self._opts(None, default_skykey_options("add")))

    def create_skykey(self, name: str, skykey_type: str) -> _skykeys.Skykey:
        return _skykeys.create_skykey(name, skykey_type, self._opts(None, default_skykey_options("create")))

    def get_skykey_by_name(self, name: str) -> _skykeys.Skykey:
        return _skykeys.get_skykey_by_name(name, self._opts(None, default_skykey_options("get")))

    def get_skykey_by_id(self, skykey_id: str) -> _skykeys.Skykey:
        return _skykeys.get_skykey_by_id(skykey_id, self._opts(None, default_skykey_options("get")))

    def list_skykeys(self) -> List[_skykeys.Skykey]:
        return _skykeys.list_skykeys(self._opts(None, default_skykey_options("list")))
