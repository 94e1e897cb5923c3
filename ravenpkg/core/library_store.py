"""Content-addressed shared-library namespace.

Storage layout: ``{lib_dir}/{sha1}-{basename}`` -> symlink to the built
artifact inside its fixed install directory.

Two builds that both produce ``libfoo.so`` with different bytes get two
different entries; identical bytes map to the same entry.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from ravenpkg.core.hasher import file_sha1

logger = logging.getLogger(__name__)

_LIBRARY_RE = re.compile(r"^.+\.(?:so(?:\.\d+)*|dylib|dll)$")


def is_shared_library(path: Path) -> bool:
    """True for ``*.so``, versioned ``*.so.N[.M...]``, ``*.dylib`` and ``*.dll`` files."""
    return path.is_file() and bool(_LIBRARY_RE.match(path.name))


def find_libraries(directory: Path) -> list[Path]:
    """Shared libraries at the top level of *directory*, sorted by name."""
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir() if is_shared_library(p))


class LibraryStore:
    """SHA-1 keyed symlink namespace for installed shared libraries.

    Parameters
    ----------
    lib_dir:
        Directory holding the ``<sha1>-<basename>`` links.
    """

    def __init__(self, lib_dir: Path) -> None:
        self._base = Path(lib_dir)
        self._base.mkdir(parents=True, exist_ok=True)

    @property
    def lib_dir(self) -> Path:
        return self._base

    @staticmethod
    def entry_name(artifact: Path) -> str:
        """Return ``<sha1-of-bytes>-<basename>`` for *artifact*."""
        return f"{file_sha1(artifact)}-{artifact.name}"

    def register(self, artifact: Path) -> Path:
        """Link *artifact* into the namespace and return the link path.

        An existing link with the same name is replaced; since the name
        embeds the content hash, only a link to identical bytes is replaced.
        """
        link = self._base / self.entry_name(artifact)
        if link.is_symlink() or link.exists():
            link.unlink()
        link.symlink_to(artifact.resolve())
        logger.info("Registered library %s -> %s", link.name, artifact)
        return link

    def register_all(self, install_dir: Path) -> list[Path]:
        """Register every top-level shared library of *install_dir*."""
        return [self.register(lib) for lib in find_libraries(install_dir)]

    def entries(self) -> list[Path]:
        """All namespace entries, sorted by name."""
        return sorted(p for p in self._base.iterdir() if p.is_symlink())
