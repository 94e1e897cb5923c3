"""Hashing helpers for manifest integrity and content addressing.

SHA-256 vouches for source files listed in a manifest; SHA-1 names shared
libraries in the library namespace.  Files are hashed in chunks so large
build outputs never have to fit in memory.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

_CHUNK_SIZE = 1024 * 1024


def file_digest(path: Path, algorithm: str = "sha256") -> str:
    """Return the hex digest of a file's contents."""
    digest = hashlib.new(algorithm)
    with Path(path).open("rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def file_sha256(path: Path) -> str:
    """SHA-256 of a file, as recorded in ``hash-<path>`` manifest lines."""
    return file_digest(path, "sha256")


def file_sha1(path: Path) -> str:
    """SHA-1 of a file, used to name library namespace entries."""
    return file_digest(path, "sha1")
