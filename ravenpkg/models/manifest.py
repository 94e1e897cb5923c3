"""Manifest and install result models."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

HASH_PREFIX = "hash-"


class Manifest(BaseModel):
    """An ordered list of ``key: value`` pairs.

    Keys may repeat; ``hash-<relative-path>`` is the reserved repeating
    family carrying SHA-256 digests of files in the source tree.
    """

    model_config = ConfigDict(frozen=True)

    entries: tuple[tuple[str, str], ...] = ()

    def get(self, key: str) -> str | None:
        """Return the first value for *key*, or ``None`` if absent.

        A key present with an empty value returns ``""``.
        """
        for entry_key, value in self.entries:
            if entry_key == key:
                return value
        return None

    def file_hashes(self) -> list[tuple[str, str]]:
        """Return ``(relative_path, digest)`` for every ``hash-*`` entry."""
        return [
            (key[len(HASH_PREFIX):], value)
            for key, value in self.entries
            if key.startswith(HASH_PREFIX) and len(key) > len(HASH_PREFIX)
        ]

    def render(self) -> str:
        """Serialize back to the line-oriented file format."""
        return "".join(f"{key}: {value}\n" for key, value in self.entries)


class InstallResult(BaseModel):
    """Outcome of a successful install."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    install_dir: Path
    libraries: list[Path] = Field(default_factory=list)
    verified_by: str | None = None
