"""Subprocess plumbing shared by the bridge modules."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Mapping

from ravenpkg.core.errors import ConfigError

logger = logging.getLogger(__name__)


def run_tool(
    argv: list[str],
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run an external tool, capturing its output as text.

    A missing binary is a configuration problem, so ``FileNotFoundError``
    surfaces as ``ConfigError``.  Non-zero exits are returned, not raised;
    a timeout is returned as exit status 124.
    """
    logger.debug("exec cwd=%s cmd=%s", cwd, " ".join(argv))
    try:
        return subprocess.run(
            argv,
            check=False,
            capture_output=True,
            text=True,
            cwd=str(cwd) if cwd is not None else None,
            env=dict(env) if env is not None else None,
            timeout=timeout,
        )
    except FileNotFoundError as exc:
        raise ConfigError(
            f"'{argv[0]}' not found. Install it and ensure it is available in PATH."
        ) from exc
    except subprocess.TimeoutExpired:
        return subprocess.CompletedProcess(
            argv, 124, stdout="", stderr=f"timed out after {timeout:.1f}s"
        )


class ShellRunner:
    """Runs build-phase commands through ``/bin/sh``.

    Output is streamed straight to the terminal so long builds show
    progress.  A command that exceeds *timeout* is killed and reported
    as a failure (exit status 124, as ``timeout(1)`` does).
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._timeout = timeout

    def run(self, command: str, cwd: Path, env: Mapping[str, str]) -> int:
        logger.info("running: %s", command)
        try:
            completed = subprocess.run(
                command,
                shell=True,
                check=False,
                cwd=str(cwd),
                env=dict(env),
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired:
            logger.error("command timed out after %ss: %s", self._timeout, command)
            return 124
        return completed.returncode


def base_environment() -> dict[str, str]:
    """Snapshot of the caller's environment for build commands."""
    return dict(os.environ)
