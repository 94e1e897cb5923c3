"""Git client — clone and checkout via the ``git`` CLI."""

from __future__ import annotations

import logging
from pathlib import Path

from ravenpkg.bridge.shell import run_tool
from ravenpkg.core.errors import FetchError

logger = logging.getLogger(__name__)


class GitClient:
    """Thin ``git`` CLI wrapper.  No retries: a failed clone is fatal."""

    def __init__(self, timeout: float | None = None) -> None:
        self._timeout = timeout

    def clone(self, url: str, dest: Path) -> None:
        logger.info("cloning %s into %s", url, dest)
        result = run_tool(["git", "clone", url, str(dest)], timeout=self._timeout)
        if result.returncode != 0:
            raise FetchError(
                f"git clone failed (exit={result.returncode}) for {url}: "
                f"{result.stderr.strip()}"
            )

    def checkout(self, repo_dir: Path, commit: str) -> None:
        logger.info("checking out %s in %s", commit, repo_dir)
        result = run_tool(
            ["git", "checkout", "--quiet", commit],
            cwd=repo_dir,
            timeout=self._timeout,
        )
        if result.returncode != 0:
            raise FetchError(
                f"git checkout of {commit!r} failed (exit={result.returncode}): "
                f"{result.stderr.strip()}"
            )
