"""Reader for the line-oriented ``key: value`` format.

Both the package manifest and the config store use it.  Each line is split
at the first ``": "``; a line ending in a bare ``":"`` declares an empty
value.  Anything else is ignored.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ravenpkg.core.errors import ManifestError
from ravenpkg.models.manifest import Manifest

logger = logging.getLogger(__name__)

MANIFEST_NAME = "manifest"
SIGNATURE_NAME = "manifest.sig"


def parse_line(line: str) -> tuple[str, str] | None:
    """Split one line into ``(key, value)``, or ``None`` if it has no key.

    >>> parse_line("name: foo")
    ('name', 'foo')
    >>> parse_line("test:")
    ('test', '')
    """
    text = line.rstrip("\r\n")
    key, sep, value = text.partition(": ")
    if sep and key:
        return key, value
    if text.endswith(":") and len(text) > 1 and ": " not in text:
        return text[:-1], ""
    return None


def parse_text(text: str) -> list[tuple[str, str]]:
    """Parse every well-formed line of *text*, preserving order."""
    entries: list[tuple[str, str]] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        parsed = parse_line(line)
        if parsed is None:
            logger.debug("ignoring malformed line %d: %r", lineno, line)
            continue
        entries.append(parsed)
    return entries


def read_manifest(path: Path) -> Manifest:
    """Load a manifest file.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ManifestError
        If the file is not valid UTF-8.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ManifestError(f"manifest {path} is not valid UTF-8: {exc}") from exc
    return Manifest(entries=tuple(parse_text(text)))


def manifest_path(working_tree: Path) -> Path:
    """Where a working tree keeps its manifest."""
    return working_tree / MANIFEST_NAME


def signature_path(working_tree: Path) -> Path:
    """Where a working tree keeps the detached manifest signature."""
    return working_tree / SIGNATURE_NAME
