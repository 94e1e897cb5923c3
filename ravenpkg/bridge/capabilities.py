"""Capability protocols for the external collaborators of the pipeline.

The fetch/verify/build core never shells out directly.  It talks to these
narrow interfaces, and the defaults in the sibling modules satisfy them:

* ``VcsClient``         — ``ravenpkg.bridge.git.GitClient``
* ``Archiver``          — ``ravenpkg.bridge.archive.TarArchiver``
* ``HttpFetcher``       — ``ravenpkg.bridge.http.RequestsFetcher``
* ``SignatureVerifier`` — ``ravenpkg.bridge.gpg.GpgBackend``
* ``Signer``            — ``ravenpkg.bridge.gpg.GpgBackend``
* ``CommandRunner``     — ``ravenpkg.bridge.shell.ShellRunner``

Tests substitute in-memory fakes for any of them.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Protocol, runtime_checkable


@runtime_checkable
class VcsClient(Protocol):
    """Clones repositories and checks out revisions."""

    def clone(self, url: str, dest: Path) -> None:
        """Clone *url* into the (not yet existing or empty) *dest*.

        Raises ``FetchError`` on failure.
        """
        ...

    def checkout(self, repo_dir: Path, commit: str) -> None:
        """Check out *commit* in *repo_dir*.  Raises ``FetchError``."""
        ...


@runtime_checkable
class Archiver(Protocol):
    """Extracts source archives."""

    def extract_stripping_root(self, archive: Path, dest: Path) -> None:
        """Extract *archive* into *dest*, dropping its single top-level directory.

        Raises ``FetchError`` if the archive is unreadable or does not
        consist of exactly one top-level directory.
        """
        ...


@runtime_checkable
class HttpFetcher(Protocol):
    """Downloads resources over HTTP(S)."""

    def download(self, url: str, dest_dir: Path) -> Path:
        """Save *url* into *dest_dir* and return the written file path."""
        ...

    def fetch_text(self, url: str) -> str:
        """Return the body of *url* decoded as text."""
        ...


@runtime_checkable
class SignatureVerifier(Protocol):
    """Verifies detached signatures against a keyring."""

    def verify_detached(self, signature: Path, data: Path) -> str:
        """Return the verifier's human-readable report.

        The report is returned whatever the outcome; classification is the
        caller's job.
        """
        ...


@runtime_checkable
class Signer(Protocol):
    """Produces detached, armored signatures."""

    def sign_detached(self, data: Path, signature: Path, signer: str) -> None:
        """Write a signature over *data* to *signature*, replacing it."""
        ...


@runtime_checkable
class CommandRunner(Protocol):
    """Runs build-phase shell commands."""

    def run(self, command: str, cwd: Path, env: Mapping[str, str]) -> int:
        """Run *command* through the shell and return its exit status."""
        ...
