"""GnuPG backend — detached signing and verification via the ``gpg`` CLI.

Bridge boundary
---------------
The keyring is owned by the user's GnuPG installation; ravenpkg never
imports or manages keys.  Verification returns gpg's human-readable report
untouched and the trust verifier classifies it.  The locale is pinned to
``C`` so the report wording is stable.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from ravenpkg.bridge.shell import run_tool
from ravenpkg.core.errors import ManifestError

logger = logging.getLogger(__name__)


def _gpg_environment() -> dict[str, str]:
    env = dict(os.environ)
    env["LC_ALL"] = "C"
    env["LANG"] = "C"
    return env


class GpgBackend:
    """Signs and verifies with the ``gpg`` binary.

    Parameters
    ----------
    binary:
        Name or path of the GnuPG executable.
    """

    def __init__(self, binary: str = "gpg") -> None:
        self._binary = binary

    def verify_detached(self, signature: Path, data: Path) -> str:
        result = run_tool(
            [self._binary, "--batch", "--verify", str(signature), str(data)],
            env=_gpg_environment(),
        )
        logger.debug("gpg --verify exit=%s", result.returncode)
        # gpg writes its report to stderr; keep stdout too for odd builds.
        return "\n".join(part for part in (result.stderr, result.stdout) if part)

    def sign_detached(self, data: Path, signature: Path, signer: str) -> None:
        if signature.exists():
            signature.unlink()
        result = run_tool(
            [
                self._binary,
                "--batch",
                "--yes",
                "--armor",
                "--local-user",
                signer,
                "--output",
                str(signature),
                "--detach-sign",
                str(data),
            ],
            env=_gpg_environment(),
        )
        if result.returncode != 0:
            raise ManifestError(
                f"signing {data.name} as {signer!r} failed "
                f"(exit={result.returncode}): {result.stderr.strip()}"
            )
        logger.info("signed %s as %s", data, signer)
