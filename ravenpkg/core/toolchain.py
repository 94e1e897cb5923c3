"""Toolchain resolution — the one hard configuration requirement.

Non-bootstrap builds need a toolchain path.  Resolution order:

1. the ``toolchain`` key in the config store;
2. the ``RAVENPKG_TOOLCHAIN`` setting;
3. ``shutil.which`` of the configured toolchain binary.

A value found by 2 or 3 is persisted to the config store so later
installs skip discovery.  Finding nothing is fatal.
"""

from __future__ import annotations

import logging
import shutil

from ravenpkg.config import RavenpkgSettings
from ravenpkg.core.config_store import ConfigStore
from ravenpkg.core.errors import ConfigError

logger = logging.getLogger(__name__)

TOOLCHAIN_KEY = "toolchain"


def discover_toolchain(settings: RavenpkgSettings) -> str | None:
    """Look for a toolchain in the execution environment."""
    if settings.toolchain:
        return settings.toolchain
    return shutil.which(settings.toolchain_binary)


def resolve_toolchain(store: ConfigStore, settings: RavenpkgSettings) -> str:
    """Return the toolchain path, discovering and persisting it if needed.

    Raises
    ------
    ConfigError
        If no toolchain is configured and none can be discovered.
    """
    configured = store.get(TOOLCHAIN_KEY)
    if configured:
        return configured

    discovered = discover_toolchain(settings)
    if not discovered:
        msg = (
            f"No toolchain configured and '{settings.toolchain_binary}' is not on PATH. "
            f"Run 'ravenpkg config {TOOLCHAIN_KEY} <path>' or set RAVENPKG_TOOLCHAIN."
        )
        logger.critical(msg)
        raise ConfigError(msg)

    store.set(TOOLCHAIN_KEY, discovered)
    logger.info("Discovered toolchain %s; saved to config.", discovered)
    return discovered
