"""Shared test fixtures for ravenpkg.

The pipeline's external collaborators (git, gpg, HTTP, build commands) are
replaced by in-memory fakes that satisfy the capability protocols.
"""

from __future__ import annotations

import shutil
import tarfile
from collections.abc import Callable
from pathlib import Path
from typing import Any, Mapping

import pytest

from ravenpkg.config import RavenpkgSettings
from ravenpkg.core.config_store import ConfigStore
from ravenpkg.core.installer import Installer
from ravenpkg.core.library_store import LibraryStore

ALICE_KEY = "0123456789ABCDEF0123456789ABCDEF89ABCDEF"
ALICE_EMAIL = "alice@example.com"


def good_report(
    name: str = "Alice Example",
    email: str = ALICE_EMAIL,
    key: str = ALICE_KEY,
) -> str:
    """A gpg 2.x style report for a good signature."""
    return (
        "gpg: Signature made Mon 01 Jan 2024 12:00:00 PM UTC\n"
        f"gpg:                using RSA key {key}\n"
        f'gpg: Good signature from "{name} <{email}>" [ultimate]\n'
    )


BAD_REPORT = (
    "gpg: Signature made Mon 01 Jan 2024 12:00:00 PM UTC\n"
    f"gpg:                using RSA key {ALICE_KEY}\n"
    'gpg: BAD signature from "Alice Example <alice@example.com>" [ultimate]\n'
)


# ---------------------------------------------------------------------------
# Capability fakes
# ---------------------------------------------------------------------------


class RecordingRunner:
    """CommandRunner fake: records commands and returns scripted exit codes."""

    def __init__(
        self,
        returncodes: Mapping[str, int] | None = None,
        on_run: Callable[[str, Path, Mapping[str, str]], None] | None = None,
    ) -> None:
        self.commands: list[str] = []
        self.envs: list[dict[str, str]] = []
        self._returncodes = dict(returncodes or {})
        self._on_run = on_run

    def run(self, command: str, cwd: Path, env: Mapping[str, str]) -> int:
        self.commands.append(command)
        self.envs.append(dict(env))
        if self._on_run is not None:
            self._on_run(command, cwd, env)
        return self._returncodes.get(command, 0)


class FakeVerifier:
    """SignatureVerifier fake returning a canned report."""

    def __init__(self, report: str) -> None:
        self.report = report
        self.calls: list[tuple[Path, Path]] = []

    def verify_detached(self, signature: Path, data: Path) -> str:
        self.calls.append((signature, data))
        return self.report


class FakeSigner:
    """Signer fake that writes a marker signature file."""

    def __init__(self) -> None:
        self.calls: list[tuple[Path, Path, str]] = []

    def sign_detached(self, data: Path, signature: Path, signer: str) -> None:
        self.calls.append((data, signature, signer))
        signature.write_text(f"-----FAKE SIGNATURE {signer}-----\n", encoding="utf-8")


class FakeVcs:
    """VcsClient fake that 'clones' by copying a prepared directory."""

    def __init__(self, source: Path | None = None, fail_checkout: bool = False) -> None:
        self.source = source
        self.fail_checkout = fail_checkout
        self.cloned: list[tuple[str, Path]] = []
        self.checked_out: list[tuple[Path, str]] = []

    def clone(self, url: str, dest: Path) -> None:
        from ravenpkg.core.errors import FetchError

        self.cloned.append((url, dest))
        if self.source is None:
            raise FetchError(f"git clone failed for {url}")
        shutil.copytree(self.source, dest, dirs_exist_ok=True)

    def checkout(self, repo_dir: Path, commit: str) -> None:
        from ravenpkg.core.errors import FetchError

        self.checked_out.append((repo_dir, commit))
        if self.fail_checkout:
            raise FetchError(f"git checkout of {commit!r} failed")


class FakeHttp:
    """HttpFetcher fake serving files and text documents from dicts."""

    def __init__(
        self,
        files: Mapping[str, Path] | None = None,
        texts: Mapping[str, str] | None = None,
    ) -> None:
        self.files = dict(files or {})
        self.texts = dict(texts or {})
        self.requested: list[str] = []

    def download(self, url: str, dest_dir: Path) -> Path:
        from ravenpkg.bridge.http import url_basename

        self.requested.append(url)
        out = dest_dir / url_basename(url)
        shutil.copyfile(self.files[url], out)
        return out

    def fetch_text(self, url: str) -> str:
        self.requested.append(url)
        return self.texts[url]


# ---------------------------------------------------------------------------
# Core fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def settings(tmp_dir: Path) -> RavenpkgSettings:
    """Settings rooted in a temp home with an explicit toolchain."""
    return RavenpkgSettings(
        home=tmp_dir / "ravenpkg-home",
        toolchain="/opt/toolchain/bin/cc",
        registry_url="https://registry.test/uuids.txt",
    )


@pytest.fixture
def config_store(settings: RavenpkgSettings) -> ConfigStore:
    """Provide a fresh ConfigStore in the temp home."""
    return ConfigStore(settings.config_path)


@pytest.fixture
def library_store(settings: RavenpkgSettings) -> LibraryStore:
    """Provide an empty library namespace."""
    return LibraryStore(settings.lib_dir)


@pytest.fixture
def runner() -> RecordingRunner:
    """A runner where every command succeeds."""
    return RecordingRunner()


@pytest.fixture
def make_installer(
    settings: RavenpkgSettings,
    config_store: ConfigStore,
    library_store: LibraryStore,
) -> Callable[..., Installer]:
    """Factory fixture: an Installer wired with fakes."""

    def _factory(
        runner: Any = None,
        report: str | None = None,
    ) -> Installer:
        return Installer(
            settings,
            config_store,
            runner=runner or RecordingRunner(),
            verifier=FakeVerifier(report if report is not None else good_report()),
            library_store=library_store,
        )

    return _factory


# ---------------------------------------------------------------------------
# Source tree factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_source_tree(tmp_dir: Path) -> Callable[..., Path]:
    """Factory fixture: a source directory with a manifest and some files."""

    def _factory(
        name: str = "foo",
        vers: str = "0.1",
        *,
        root: Path | None = None,
        manifest: str | None = None,
        files: Mapping[str, str] | None = None,
        signature: str | None = "-----FAKE SIGNATURE-----\n",
    ) -> Path:
        tree = root or tmp_dir / "src" / f"{name}-{vers}"
        tree.mkdir(parents=True, exist_ok=True)
        for rel, content in (files or {"src/main.c": "int main(void) { return 0; }\n"}).items():
            path = tree / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        if manifest is None:
            manifest = f"name: {name}\nvers: {vers}\n"
        (tree / "manifest").write_text(manifest, encoding="utf-8")
        if signature is not None:
            (tree / "manifest.sig").write_text(signature, encoding="utf-8")
        return tree

    return _factory


@pytest.fixture
def make_tarball(tmp_dir: Path) -> Callable[..., Path]:
    """Factory fixture: pack a directory as ``<out>`` with one top-level dir."""

    def _factory(source: Path, out: Path | None = None, *, arcname: str | None = None) -> Path:
        out = out or tmp_dir / "dist" / f"{source.name}.tar.gz"
        out.parent.mkdir(parents=True, exist_ok=True)
        with tarfile.open(out, "w:gz") as tar:
            tar.add(source, arcname=arcname or source.name)
        return out

    return _factory


def copy_lib_on_install(content: bytes, name: str = "libfoo.so") -> Callable[..., None]:
    """on_run hook: the install command drops a shared library into the prefix."""

    def _hook(command: str, cwd: Path, env: Mapping[str, str]) -> None:
        if command.startswith("make install"):
            prefix = Path(env["RAVENPKG_PREFIX"])
            (prefix / name).write_bytes(content)

    return _hook
