#!/usr/bin/env python3
"""
cli.py — Command line interface for the Skynet SDK

Commands:
  keygen        Generate an Ed25519 keypair and write it to a keyfile
  upload        Upload a file or directory
  download      Download a skylink to a local file
  metadata      Show a skyfile's metadata
  registry-get  Fetch and verify a registry entry
  skydb-get     Print the SkyDB document under a public key / data key
  skydb-set     Store a file as the SkyDB document under a data key

The portal defaults to $SKYNET_PORTAL_URL, the API key to $SKYNET_API_KEY.
"""

from __future__ import annotations
import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from .client import SkynetClient
from .crypto import SkynetKeypair
from .errors import InvalidKeyError, SkynetError
from .options import DEFAULT_PORTAL_URL, Options
from .transport import read_body


def _fail_with_error(err: SkynetError) -> None:
    """Print a structured error message from a ``SkynetError`` and exit.

    Args:
        err: Structured SDK error.

    Returns:
        None: This function terminates the process.
    """
    context = f" Context: {err.context}." if err.context else ""
    print(
        f"ERROR: {err.code}. {err.message.rstrip('.')}.{context} "
        f"Fix: check the portal URL, keys and data key, then retry the command."
    )
    sys.exit(1)


def _cli_error(what: str, why: str, fix: str) -> None:
    """Print a teaching-style CLI error and exit."""
    print(f"ERROR: {what}. {why}. Fix: {fix}.")
    sys.exit(1)


def _client(args: argparse.Namespace) -> SkynetClient:
    options = Options(
        portal_url=args.portal,
        api_key=args.api_key or "",
        timeout=args.timeout,
    )
    return SkynetClient(options=options)


def _load_keypair(keys_path: Path) -> SkynetKeypair:
    """Load a keyfile written by ``skynet keygen``.

    Raises:
        SystemExit: If the keyfile is missing or malformed.
    """
    if not keys_path.exists():
        _cli_error(
            f"Private key file not found: {keys_path}",
            "publishing registry entries requires the owner's Ed25519 private key",
            "provide a valid `--keyfile` path or create one with `skynet keygen <file>`",
        )
    try:
        data = json.loads(keys_path.read_text(encoding="utf-8"))
        return SkynetKeypair.from_private_key(data["private_key"])
    except (ValueError, KeyError, TypeError, InvalidKeyError) as err:
        _cli_error(
            f"Keyfile {keys_path} is malformed",
            f"expected a JSON object with a hex `private_key` ({err})",
            "regenerate it with `skynet keygen <file>`",
        )
        raise  # unreachable; _cli_error exits


def cmd_keygen(args: argparse.Namespace) -> None:
    target = Path(args.path)
    if target.exists() and not args.force:
        _cli_error(
            f"Refusing to overwrite {target}",
            "the file may hold the only copy of an existing private key",
            "choose another path or pass --force",
        )
    kp = SkynetKeypair.generate()
    target.write_text(
        json.dumps(
            {"public_key": kp.public_key_hex, "private_key": kp.private_key_hex},
            indent=2,
        ),
        encoding="utf-8",
    )
    print(f"Public key: {kp.public_key_hex}")
    print(f"Private key written to {target}. Keep it secret.")


def cmd_upload(args: argparse.Namespace) -> None:
    client = _client(args)
    path = Path(args.path)
    if path.is_dir():
        locator = client.upload_directory(path)
    else:
        locator = client.upload_file(path)
    print(locator)


def cmd_download(args: argparse.Namespace) -> None:
    out = _client(args).download_file(args.path, args.skylink)
    print(f"Saved {args.skylink} to {out}")


def cmd_metadata(args: argparse.Namespace) -> None:
    meta = _client(args).get_metadata(args.skylink)
    print(json.dumps(
        {"skylink": meta.skylink, "content_type": meta.content_type, "metadata": meta.metadata},
        indent=2,
    ))


def cmd_registry_get(args: argparse.Namespace) -> None:
    signed = _client(args).get_entry(args.public_key, args.data_key)
    if signed is None:
        print(f"No registry entry for data key {args.data_key!r}")
        sys.exit(1)
    print(json.dumps(
        {
            "data_key": signed.entry.data_key,
            "data": signed.entry.data.hex(),
            "revision": signed.entry.revision,
            "signature": signed.signature.hex(),
        },
        indent=2,
    ))


def cmd_skydb_get(args: argparse.Namespace) -> None:
    with _client(args).get_document(args.public_key, args.data_key) as stream:
        content = read_body(stream)
    if args.output:
        Path(args.output).write_bytes(content)
        print(f"Saved document to {args.output}")
    else:
        sys.stdout.write(content.decode("utf-8", errors="replace"))


def cmd_skydb_set(args: argparse.Namespace) -> None:
    if args.revision is not None and args.revision < 0:
        _cli_error(
            f"Invalid revision {args.revision}",
            "registry revisions are unsigned 64-bit integers",
            "pass a revision of 0 or more, or omit --revision to use current + 1",
        )
    kp = _load_keypair(Path(args.keyfile))
    with open(args.path, "rb") as f:
        signed = _client(args).set_document(kp.private_key, args.data_key, f, revision=args.revision)
    print(
        f"Data key {args.data_key!r} now at revision {signed.entry.revision} "
        f"-> {signed.entry.data.decode('ascii')}"
    )


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entrypoint.

    Parses command-line arguments, routes to a subcommand handler, and exits
    non-zero on SDK errors.
    """
    parser = argparse.ArgumentParser(prog="skynet", description="Skynet portal client")
    parser.add_argument(
        "--portal",
        default=os.environ.get("SKYNET_PORTAL_URL", DEFAULT_PORTAL_URL),
        help="Portal URL (default: $SKYNET_PORTAL_URL or %(default)s)",
    )
    parser.add_argument("--api-key", default=os.environ.get("SKYNET_API_KEY"), help="Portal API key")
    parser.add_argument("--timeout", type=float, default=None, help="Request deadline in seconds")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    # keygen
    p_keygen = sub.add_parser("keygen", help="Generate a keypair")
    p_keygen.add_argument("path", help="Path to write the keyfile")
    p_keygen.add_argument("--force", action="store_true", help="Overwrite an existing keyfile")

    # upload
    p_upload = sub.add_parser("upload", help="Upload a file or directory")
    p_upload.add_argument("path", help="File or directory to upload")

    # download
    p_download = sub.add_parser("download", help="Download a skylink")
    p_download.add_argument("skylink", help="Skylink, with or without sia://")
    p_download.add_argument("path", help="Destination file")

    # metadata
    p_meta = sub.add_parser("metadata", help="Show skyfile metadata")
    p_meta.add_argument("skylink", help="Skylink, with or without sia://")

    # registry-get
    p_reg = sub.add_parser("registry-get", help="Fetch and verify a registry entry")
    p_reg.add_argument("public_key", help="Hex Ed25519 public key")
    p_reg.add_argument("data_key", help="Data key")

    # skydb-get
    p_dbget = sub.add_parser("skydb-get", help="Read a SkyDB document")
    p_dbget.add_argument("public_key", help="Hex Ed25519 public key")
    p_dbget.add_argument("data_key", help="Data key")
    p_dbget.add_argument("-o", "--output", help="Write the document to this file")

    # skydb-set
    p_dbset = sub.add_parser("skydb-set", help="Write a SkyDB document")
    p_dbset.add_argument("data_key", help="Data key")
    p_dbset.add_argument("path", help="File holding the new document")
    p_dbset.add_argument("--keyfile", required=True, help="Keyfile from `skynet keygen`")
    p_dbset.add_argument("--revision", type=int, default=None, help="Explicit revision (default: current + 1)")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    handlers = {
        "keygen": cmd_keygen,
        "upload": cmd_upload,
        "download": cmd_download,
        "metadata": cmd_metadata,
        "registry-get": cmd_registry_get,
        "skydb-get": cmd_skydb_get,
        "skydb-set": cmd_skydb_set,
    }
    try:
        handlers[args.command](args)
    except SkynetError as err:
        _fail_with_error(err)

if __name__ == "__main__":
    main()
