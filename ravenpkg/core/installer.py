"""Install orchestration — verify, build, test, install, publish.

The Installer wires together the TrustVerifier, ConfigStore, LibraryStore
and a CommandRunner into a single install procedure for one working tree.

Every step is a hard gate: the first failure raises and the remaining
steps never run.  A successful install removes the working tree; a failed
one leaves it in place for inspection.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
from pathlib import Path

from ravenpkg.bridge.capabilities import CommandRunner, SignatureVerifier
from ravenpkg.bridge.gpg import GpgBackend
from ravenpkg.bridge.shell import ShellRunner, base_environment
from ravenpkg.config import RavenpkgSettings
from ravenpkg.core.config_store import ConfigStore
from ravenpkg.core.errors import (
    BuildError,
    CommandError,
    InstallError,
    ManifestError,
    TestError,
    TrustError,
    TrustFailure,
    UsageError,
)
from ravenpkg.core.library_store import LibraryStore
from ravenpkg.core.manifest_reader import manifest_path, read_manifest
from ravenpkg.core.toolchain import resolve_toolchain
from ravenpkg.core.trust_verifier import TrustVerifier
from ravenpkg.models.manifest import HASH_PREFIX, InstallResult, Manifest

logger = logging.getLogger(__name__)

TOOLCHAIN_ENV = "RAVENPKG_TOOLCHAIN"
PREFIX_ENV = "RAVENPKG_PREFIX"

_SAFE_COMPONENT_RE = re.compile(r"^[A-Za-z0-9_.+\-]+$")


def _with_opts(command: str, opts: str | None) -> str:
    return f"{command} {opts}" if opts else command


class Installer:
    """Builds and installs a fetched working tree.

    Parameters
    ----------
    settings:
        Process settings (storage locations, timeouts).
    config_store:
        The persisted key/value store (toolchain, build options).
    runner:
        Executes build-phase shell commands.  Defaults to ``ShellRunner``.
    verifier:
        Detached signature backend.  Defaults to ``GpgBackend``.
    library_store:
        Library namespace.  Defaults to one rooted at ``settings.lib_dir``.
    """

    def __init__(
        self,
        settings: RavenpkgSettings,
        config_store: ConfigStore,
        *,
        runner: CommandRunner | None = None,
        verifier: SignatureVerifier | None = None,
        library_store: LibraryStore | None = None,
    ) -> None:
        self.settings = settings
        self.config_store = config_store
        self.runner = runner or ShellRunner(timeout=settings.command_timeout_seconds)
        self.trust = TrustVerifier(verifier or GpgBackend())
        self.library_store = library_store or LibraryStore(settings.lib_dir)

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def install_dir_for(self, name: str, version: str) -> Path:
        """The fixed install directory for ``(name, version)``."""
        return self.settings.pkg_dir / f"{name}-{version}"

    # ------------------------------------------------------------------
    # Install
    # ------------------------------------------------------------------

    def install_from_source(
        self,
        working_tree: Path,
        required_signer: str | None = None,
    ) -> InstallResult:
        """Verify, build, test and install *working_tree*.

        Raises
        ------
        UsageError
            If *required_signer* is given but blank.
        TrustError
            If *required_signer* is set and verification fails, or an
            executable ``configure`` has no hash in the signed manifest.
        ManifestError
            If the manifest is missing or lacks ``name``/``vers``.
        ConfigError
            If a toolchain is required but cannot be found.
        BuildError, TestError, InstallError
            If the corresponding command exits non-zero.
        """
        verified_by: str | None = None
        if required_signer is not None:
            if not required_signer.strip():
                raise UsageError("a required signer must not be blank")
            verified_by = self.trust.verify(working_tree, required_signer)
        else:
            logger.info("No signer required; skipping trust verification.")

        manifest = self._load_manifest(working_tree)
        name = self._required(manifest, "name")
        version = self._required(manifest, "vers")

        configure = working_tree / "configure"
        run_configure = configure.is_file() and os.access(configure, os.X_OK)
        if run_configure and verified_by is not None and manifest.get(f"{HASH_PREFIX}configure") is None:
            raise TrustError(
                TrustFailure.HASH_MISMATCH,
                "configure is not covered by a hash in the signed manifest",
            )

        bootstrap = manifest.get("bootstrap")
        build = manifest.get("build") or _with_opts("make", self.config_store.get("build-opts"))
        test = manifest.get("test")
        install = manifest.get("install") or _with_opts(
            "make install", self.config_store.get("install-opts")
        )

        toolchain: str | None = None
        if bootstrap is None:
            toolchain = resolve_toolchain(self.config_store, self.settings)
        else:
            logger.info("Bootstrap package; no toolchain required.")

        install_dir = self.install_dir_for(name, version)
        if install_dir.exists():
            logger.info("Wiping previous install of %s %s at %s.", name, version, install_dir)
            shutil.rmtree(install_dir)
        install_dir.mkdir(parents=True)

        env = base_environment()
        env[PREFIX_ENV] = str(install_dir)
        if toolchain:
            env[TOOLCHAIN_ENV] = toolchain

        logger.info("Installing %s %s from %s.", name, version, working_tree)
        if bootstrap:
            self._run(bootstrap, working_tree, env, BuildError)

        if run_configure:
            self._run("./configure", working_tree, env, BuildError)

        self._run(build, working_tree, env, BuildError)
        if test:
            self._run(test, working_tree, env, TestError)
        self._run(install, working_tree, env, InstallError)

        libraries = self.library_store.register_all(install_dir)

        shutil.rmtree(working_tree)
        logger.info("Installed %s %s; removed %s.", name, version, working_tree)

        return InstallResult(
            name=name,
            version=version,
            install_dir=install_dir,
            libraries=libraries,
            verified_by=verified_by,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _load_manifest(working_tree: Path) -> Manifest:
        path = manifest_path(working_tree)
        if not path.is_file():
            raise ManifestError(f"no manifest found in {working_tree}")
        return read_manifest(path)

    @staticmethod
    def _required(manifest: Manifest, key: str) -> str:
        value = manifest.get(key)
        if not value:
            raise ManifestError(f"manifest is missing required key '{key}'")
        if not _SAFE_COMPONENT_RE.match(value) or value in (".", ".."):
            raise ManifestError(f"manifest {key} {value!r} is not a safe path component")
        return value

    def _run(
        self,
        command: str,
        cwd: Path,
        env: dict[str, str],
        error: type[CommandError],
    ) -> None:
        returncode = self.runner.run(command, cwd, env)
        if returncode != 0:
            logger.error("%s failed (exit=%s): %s", error.phase, returncode, command)
            raise error(command, returncode)
