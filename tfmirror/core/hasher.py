"""Hashing helpers for mirror archives.

Terraform verifies mirror downloads with ``h1:`` hashes, the ``dirhash.Hash1``
scheme from Go's module tooling. The hash covers only entry names and
uncompressed contents, so the same binary always hashes the same no matter
when, where, or with what compression settings it was zipped:

    summary = "".join(f"{sha256(content).hexdigest()}  {name}\\n" for name in sorted(names))
    h1      = "h1:" + base64(sha256(summary))
"""

from __future__ import annotations

import base64
import hashlib
import zipfile
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import IO

H1_PREFIX = "h1:"

_CHUNK_SIZE = 1024 * 1024


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def _sha256_stream(stream: IO[bytes]) -> str:
    digest = hashlib.sha256()
    for chunk in iter(lambda: stream.read(_CHUNK_SIZE), b""):
        digest.update(chunk)
    return digest.hexdigest()


def hash1(names: Iterable[str], open_entry: Callable[[str], IO[bytes]]) -> str:
    """Compute an ``h1:`` hash over named entries.

    Parameters
    ----------
    names:
        Entry names; order does not matter.
    open_entry:
        Returns a readable binary stream for a name. Streams are closed
        after reading.
    """
    summary = hashlib.sha256()
    for name in sorted(names):
        if "\n" in name:
            raise ValueError(f"filenames with newlines are not supported: {name!r}")
        with open_entry(name) as stream:
            summary.update(f"{_sha256_stream(stream)}  {name}\n".encode("utf-8"))
    return H1_PREFIX + base64.b64encode(summary.digest()).decode("ascii")


def hash_zip(zip_path: Path) -> str:
    """Return the ``h1:`` hash of a zip archive's entries."""
    with zipfile.ZipFile(zip_path) as zf:
        names = [info.filename for info in zf.infolist()]
        return hash1(names, zf.open)
