"""
upload.py — Skynet Uploads

Uploads files, directories and raw bytes to a portal as multipart form data
and returns the resulting locator, ``sia://<skylink>``.

A single file goes in the ``file`` field. Several files, or any upload with
a custom dirname, go in ``files[]`` and are stored as a directory named by
the ``filename`` query parameter.
"""

from __future__ import annotations
import io
import os
import uuid
from dataclasses import replace
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional, Tuple, Union

from .errors import DecodeError, UploadError
from .options import (
    SNIFF_LENGTH,
    URI_SKYNET_PREFIX,
    UploadOptions,
    default_upload_options,
)
from .transport import execute_request, make_url, read_json

# filename -> readable binary stream
UploadData = Dict[str, BinaryIO]


def _header_value(value: str) -> str:
    # CR/LF would end the part header early
    value = value.replace("\r", "").replace("\n", "")
    return value.replace("\\", "\\\\").replace('"', '\\"')


def encode_multipart(
    fieldname: str,
    upload_data: UploadData,
    opts: UploadOptions,
) -> Tuple[bytes, str]:
    """Return (body, content type) for a multipart/form-data upload."""
    boundary = uuid.uuid4().hex
    body = io.BytesIO()
    for filename, stream in upload_data.items():
        content = stream.read()
        content_type = opts.content_type_resolver(filename, content[:SNIFF_LENGTH])
        body.write(f"--{boundary}\r\n".encode("utf-8"))
        body.write(
            (
                f'Content-Disposition: form-data; name="{_header_value(fieldname)}"; '
                f'filename="{_header_value(filename)}"\r\n'
                f"Content-Type: {content_type}\r\n\r\n"
            ).encode("utf-8")
        )
        body.write(content)
        body.write(b"\r\n")
    body.write(f"--{boundary}--\r\n".encode("utf-8"))
    return body.getvalue(), f"multipart/form-data; boundary={boundary}"


def upload(upload_data: UploadData, opts: Optional[UploadOptions] = None) -> str:
    """Upload the given generic data and return its ``sia://`` locator."""
    opts = opts or default_upload_options()
    if not upload_data:
        raise UploadError("nothing to upload")

    query: Dict[str, str] = {}
    if len(upload_data) == 1 and not opts.custom_dirname:
        fieldname = opts.portal_file_field_name
    else:
        if not opts.custom_dirname:
            raise UploadError("custom_dirname must be set when uploading multiple files")
        fieldname = opts.portal_directory_file_field_name
        query["filename"] = opts.custom_dirname
    query["skykeyname"] = opts.skykey_name
    query["skykeyid"] = opts.skykey_id

    body, content_type = encode_multipart(fieldname, upload_data, opts)
    url = make_url(opts.portal_url, opts.endpoint_path, query=query)
    with execute_request(opts, "POST", url, body=body, content_type=content_type) as resp:
        api_response = read_json(resp)

    skylink = api_response.get("skylink") if isinstance(api_response, dict) else None
    if not isinstance(skylink, str) or not skylink:
        raise DecodeError("upload response did not contain a skylink")
    return f"{URI_SKYNET_PREFIX}{skylink}"


def upload_bytes(data: bytes, filename: str, opts: Optional[UploadOptions] = None) -> str:
    """Upload an in-memory payload as a single file."""
    return upload({filename: io.BytesIO(data)}, opts)


def upload_file(path: Union[str, Path], opts: Optional[UploadOptions] = None) -> str:
    """Upload a local file and return its locator."""
    opts = opts or default_upload_options()
    path = Path(os.path.normpath(path))
    filename = opts.custom_filename or path.name
    with open(path, "rb") as f:
        return upload({filename: f}, opts)


def walk_directory(path: Path) -> List[Path]:
    """Return every file below ``path``, recursively, in sorted order."""
    return sorted(p for p in path.rglob("*") if p.is_file())


def upload_directory(path: Union[str, Path], opts: Optional[UploadOptions] = None) -> str:
    """Upload a local directory; file names are relative to ``path``."""
    opts = opts or default_upload_options()
    path = Path(os.path.normpath(path))
    if not path.is_dir():
        raise UploadError(f"given path {path} is not a directory")

    if not opts.custom_dirname:
        opts = replace(opts, custom_dirname=path.name)

    files = walk_directory(path)
    handles: UploadData = {}
    try:
        for file_path in files:
            handles[file_path.relative_to(path).as_posix()] = open(file_path, "rb")
        return upload(handles, opts)
    finally:
        for handle in handles.values():
            handle.close()
