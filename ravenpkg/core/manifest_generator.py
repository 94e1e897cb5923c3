"""Manifest generation — the packaging-time inverse of the install check.

Reads ``name = "..."`` and ``vers = "..."`` from a build descriptor, writes
an unsigned manifest, and when a signer is requested also records a
SHA-256 for every source/build file and signs the result.

The file walk is sorted by relative POSIX path so the same tree always
yields byte-identical manifests.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from ravenpkg.bridge.capabilities import Signer
from ravenpkg.core.errors import ManifestError, UsageError
from ravenpkg.core.hasher import file_sha256
from ravenpkg.models.manifest import HASH_PREFIX, Manifest

logger = logging.getLogger(__name__)

SOURCE_SUFFIXES: frozenset[str] = frozenset({
    ".c", ".h", ".cc", ".cpp", ".cxx", ".hpp", ".hh",
    ".rs", ".rc", ".s", ".S", ".asm",
    ".py", ".sh", ".mk", ".in", ".am", ".ac", ".cmake", ".toml",
})

BUILD_FILE_NAMES: frozenset[str] = frozenset({
    "Makefile", "GNUmakefile", "makefile", "configure", "CMakeLists.txt",
})

_SKIP_DIRS: frozenset[str] = frozenset({".git", ".hg", ".svn"})


def read_descriptor_attr(text: str, attr: str) -> str | None:
    """Find the first literal ``attr = "value"`` in *text*.

    >>> read_descriptor_attr('#[link(name = "foo", vers = "0.1")];', "vers")
    '0.1'
    """
    match = re.search(rf'\b{re.escape(attr)}\s*=\s*"([^"]*)"', text)
    return match.group(1) if match else None


def _is_source_file(path: Path) -> bool:
    return path.suffix in SOURCE_SUFFIXES or path.name in BUILD_FILE_NAMES


def discover_source_files(root: Path, *, exclude: set[Path] | None = None) -> list[str]:
    """Return relative POSIX paths of every source/build file under *root*, sorted."""
    excluded = {p.resolve() for p in (exclude or set())}
    found: list[str] = []
    for path in root.rglob("*"):
        rel = path.relative_to(root)
        if any(part in _SKIP_DIRS for part in rel.parts):
            continue
        if not path.is_file() or path.resolve() in excluded:
            continue
        if _is_source_file(path):
            found.append(rel.as_posix())
    return sorted(found)


def _relative_to_root(root: Path, extra: Path) -> str:
    try:
        return extra.resolve().relative_to(root.resolve()).as_posix()
    except ValueError as exc:
        raise UsageError(f"extra file is outside the source tree: {extra}") from exc


def generate_manifest(
    build_descriptor: Path,
    out_path: Path,
    extra_files: list[Path] | None = None,
    signer: str | None = None,
    *,
    signing: Signer | None = None,
) -> Manifest:
    """Write a manifest for the tree containing *build_descriptor*.

    Parameters
    ----------
    build_descriptor:
        File carrying ``name = "..."`` and ``vers = "..."`` attributes.  Its
        directory is the source root that hash paths are relative to.
    out_path:
        Where to write the manifest.  The signature goes to
        ``<out_path>.sig``.
    extra_files:
        Additional files to hash.  Relative paths are taken from the current
        directory, like *build_descriptor*, and must lie inside the source
        root.
    signer:
        Signer identity.  ``None`` produces an unsigned manifest with no
        ``hash-*`` lines.
    signing:
        Signing backend; required when *signer* is given.

    Raises
    ------
    ManifestError
        If the descriptor lacks ``name`` or ``vers``, or signing fails.
    UsageError
        If the descriptor or an extra file is missing.
    """
    if not build_descriptor.is_file():
        raise UsageError(f"build descriptor not found: {build_descriptor}")
    text = build_descriptor.read_text(encoding="utf-8")

    name = read_descriptor_attr(text, "name")
    vers = read_descriptor_attr(text, "vers")
    if name is None:
        raise ManifestError(f"no name attribute in {build_descriptor}")
    if vers is None:
        raise ManifestError(f"no vers attribute in {build_descriptor}")

    entries: list[tuple[str, str]] = [("name", name), ("vers", vers)]

    if signer is not None:
        if signing is None:
            raise UsageError("a signing backend is required to sign manifests")
        root = build_descriptor.parent
        sig_path = out_path.with_name(out_path.name + ".sig")

        listed: list[str] = []
        for extra in extra_files or []:
            rel = _relative_to_root(root, extra)
            if not (root / rel).is_file():
                raise UsageError(f"extra file not found: {extra}")
            listed.append(rel)

        discovered = discover_source_files(root, exclude={out_path, sig_path})
        for rel in sorted(set(listed) | set(discovered)):
            entries.append((f"{HASH_PREFIX}{rel}", file_sha256(root / rel)))

    manifest = Manifest(entries=tuple(entries))
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(manifest.render(), encoding="utf-8")
    logger.info(
        "Wrote manifest for %s %s to %s (%d file hashes).",
        name, vers, out_path, len(manifest.file_hashes()),
    )

    if signer is not None:
        signing.sign_detached(out_path, sig_path, signer)

    return manifest
