"""Persisted key/value config store.

The store is a single ``key: value`` text file, created empty on first
access.  Every ``set`` rewrites the file immediately (delete any prior
lines for the key, then append), so there is no flush or teardown step.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ravenpkg.core.errors import ConfigError, UsageError
from ravenpkg.core.manifest_reader import parse_line

logger = logging.getLogger(__name__)


class ConfigStore:
    """Last-write-wins key/value settings.

    Parameters
    ----------
    path:
        Location of the backing file.

    Examples
    --------
    >>> store = ConfigStore(Path("/tmp/ravenpkg-doc/config"))
    >>> store.set("build-opts", "-j4")
    >>> store.get("build-opts")
    '-j4'
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._ensure()

    @property
    def path(self) -> Path:
        return self._path

    def _ensure(self) -> None:
        if not self._path.exists():
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.touch()
            logger.debug("Created empty config store at %s.", self._path)

    def _read(self) -> str:
        self._ensure()
        try:
            return self._path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise ConfigError(f"config store {self._path} is not valid UTF-8: {exc}") from exc

    def _lines(self) -> list[str]:
        return self._read().splitlines()

    def get(self, key: str) -> str | None:
        """Return the value for *key*, or ``None`` if it was never set."""
        for line in self._lines():
            parsed = parse_line(line)
            if parsed is not None and parsed[0] == key:
                return parsed[1]
        return None

    def set(self, key: str, value: str) -> None:
        """Replace every existing line for *key* with a single new one."""
        if not key or ": " in key or key.endswith(":") or "\n" in key:
            raise UsageError(f"invalid config key: {key!r}")
        if "\n" in value:
            raise UsageError(f"config values must be single-line: {key!r}")

        kept = []
        for line in self._lines():
            parsed = parse_line(line)
            if parsed is not None and parsed[0] == key:
                continue
            kept.append(line)
        kept.append(f"{key}: {value}")
        self._path.write_text("\n".join(kept) + "\n", encoding="utf-8")
        logger.info("Set config %s.", key)

    def list(self) -> str:
        """Return the raw contents of the store."""
        return self._read()
