"""Error hierarchy for the install pipeline.

Every failure is fatal: library code raises one of these and never
recovers.  Only the CLI catches ``RavenpkgError``, reports it, and exits
with a failure status.
"""

from __future__ import annotations

from enum import Enum


class RavenpkgError(RuntimeError):
    """Base class for all ravenpkg failures."""


class UsageError(RavenpkgError):
    """Missing or malformed arguments (including unparseable pkgrefs)."""


class ConfigError(RavenpkgError):
    """Required configuration is absent and cannot be discovered."""


class FetchError(RavenpkgError):
    """Clone, download, registry lookup or extraction failed."""


class ManifestError(RavenpkgError):
    """A manifest or build descriptor lacks a required key."""


class TrustFailure(str, Enum):
    """Why a working tree was not trusted."""

    BAD_SIGNATURE = "bad_signature"
    WRONG_SIGNER = "wrong_signer"
    HASH_MISMATCH = "hash_mismatch"
    UNPARSEABLE = "unparseable"


class TrustError(RavenpkgError):
    """Signature or per-file hash verification failed."""

    def __init__(self, kind: TrustFailure, message: str) -> None:
        super().__init__(message)
        self.kind = kind


class CommandError(RavenpkgError):
    """An external build-phase command exited non-zero."""

    phase = "command"

    def __init__(self, command: str, returncode: int) -> None:
        super().__init__(
            f"{self.phase} failed (exit={returncode}): {command}"
        )
        self.command = command
        self.returncode = returncode


class BuildError(CommandError):
    phase = "build"


class TestError(CommandError):
    phase = "test"

    # Keeps pytest from collecting this class as a test case.
    __test__ = False


class InstallError(CommandError):
    phase = "install"
