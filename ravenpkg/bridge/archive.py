"""Tarball extraction with exactly one leading path component stripped.

Source tarballs must unpack into a single top-level directory
(``foo-1.0/...``).  Archives that spray files into the extraction root
("tarbombs") are rejected before anything is written.
"""

from __future__ import annotations

import logging
import tarfile
from pathlib import Path, PurePosixPath

from ravenpkg.core.errors import FetchError

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIXES: tuple[str, ...] = (
    ".tar.gz",
    ".tar.bz2",
    ".tar.xz",
    ".tgz",
    ".tbz2",
    ".txz",
    ".tar",
)


def strip_archive_suffix(filename: str) -> str:
    """``foo-1.0.tar.gz`` -> ``foo-1.0``; unknown suffixes drop one extension."""
    for suffix in ARCHIVE_SUFFIXES:
        if filename.endswith(suffix) and len(filename) > len(suffix):
            return filename[: -len(suffix)]
    stem = PurePosixPath(filename).stem
    return stem or filename


def is_archive(path: Path) -> bool:
    """True if *path* looks like a supported source archive."""
    return path.is_file() and any(path.name.endswith(s) for s in ARCHIVE_SUFFIXES)


def _relative_parts(name: str) -> tuple[str, ...]:
    path = PurePosixPath(name)
    if path.is_absolute() or ".." in path.parts:
        raise FetchError(f"archive member escapes extraction root: {name!r}")
    return tuple(part for part in path.parts if part != ".")


def _strip_root(members: list[tarfile.TarInfo], archive: Path) -> list[tarfile.TarInfo]:
    """Rewrite member names without their root directory.

    Raises ``FetchError`` unless every member lives under one directory.
    """
    roots: set[str] = set()
    root_is_file = False
    for member in members:
        parts = _relative_parts(member.name)
        if not parts:
            continue
        roots.add(parts[0])
        if len(parts) == 1 and not member.isdir():
            root_is_file = True

    if len(roots) != 1 or root_is_file:
        raise FetchError(
            f"archive {archive.name} must contain a single top-level directory "
            f"(found: {', '.join(sorted(roots)) or 'nothing'})"
        )

    stripped: list[tarfile.TarInfo] = []
    for member in members:
        parts = _relative_parts(member.name)
        if len(parts) <= 1:
            continue
        member.name = "/".join(parts[1:])
        if member.islnk():
            link_parts = _relative_parts(member.linkname)
            member.linkname = "/".join(link_parts[1:])
        stripped.append(member)
    return stripped


class TarArchiver:
    """Extracts gzip/bzip2/xz/plain tarballs via :mod:`tarfile`."""

    def extract_stripping_root(self, archive: Path, dest: Path) -> None:
        logger.info("extracting %s into %s", archive, dest)
        dest.mkdir(parents=True, exist_ok=True)
        try:
            with tarfile.open(archive, "r:*") as tar:
                members = _strip_root(tar.getmembers(), archive)
                tar.extractall(dest, members=members, filter="data")
        except (tarfile.TarError, OSError) as exc:
            raise FetchError(f"failed to extract {archive}: {exc}") from exc
