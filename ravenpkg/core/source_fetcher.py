"""Source fetching — materialize a package reference as a working tree.

Each reference variant has its own strategy:

* ``GithubRef`` — ``git clone`` (+ ``git checkout`` of a pinned commit)
* ``FileRef``   — extract a local tarball
* ``UrlRef``    — download a tarball, then extract it
* ``UuidRef``   — look the UUID up in the remote registry and resolve the
  resulting reference (one hop at most)

Every strategy creates a fresh working directory under ``work_dir`` and
hands it to ``Installer.install_from_source``.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import assert_never

from ravenpkg.bridge.archive import TarArchiver, is_archive, strip_archive_suffix
from ravenpkg.bridge.capabilities import Archiver, HttpFetcher, VcsClient
from ravenpkg.bridge.git import GitClient
from ravenpkg.bridge.http import RequestsFetcher, url_basename
from ravenpkg.config import RavenpkgSettings
from ravenpkg.core.config_store import ConfigStore
from ravenpkg.core.errors import FetchError
from ravenpkg.core.installer import Installer
from ravenpkg.core.manifest_reader import parse_line
from ravenpkg.models.manifest import InstallResult
from ravenpkg.models.references import (
    FileRef,
    GithubRef,
    PackageReference,
    UrlRef,
    UuidRef,
    parse_reference,
)

logger = logging.getLogger(__name__)

REGISTRY_KEY = "registry"


def parse_registry(text: str) -> dict[str, str]:
    """Parse the ``<uuid>: <reference>`` registry document.

    Blank lines and ``#`` comments are skipped; the first entry for a UUID
    wins.
    """
    mapping: dict[str, str] = {}
    for line in text.splitlines():
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        parsed = parse_line(line.strip())
        if parsed is None:
            continue
        uuid, target = parsed
        mapping.setdefault(uuid.strip().lower(), target.strip())
    return mapping


class SourceFetcher:
    """Dispatches package references to their fetch strategy.

    Parameters
    ----------
    settings:
        Process settings (work directory, registry URL, git URL template).
    installer:
        Receives every populated working tree.
    vcs, archiver, http:
        Capability backends; default to git, tarfile and requests.
    """

    def __init__(
        self,
        settings: RavenpkgSettings,
        installer: Installer,
        *,
        vcs: VcsClient | None = None,
        archiver: Archiver | None = None,
        http: HttpFetcher | None = None,
    ) -> None:
        self.settings = settings
        self.installer = installer
        self.vcs = vcs or GitClient(timeout=settings.command_timeout_seconds)
        self.archiver = archiver or TarArchiver()
        self.http = http or RequestsFetcher(timeout=settings.http_timeout_seconds)

    @property
    def config_store(self) -> ConfigStore:
        return self.installer.config_store

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def resolve(
        self,
        ref: str | PackageReference,
        required_signer: str | None = None,
    ) -> InstallResult:
        """Fetch *ref* into a fresh working tree and install it."""
        reference = parse_reference(ref) if isinstance(ref, str) else ref
        return self._dispatch(reference, required_signer, via_uuid=False)

    def _dispatch(
        self,
        reference: PackageReference,
        required_signer: str | None,
        *,
        via_uuid: bool,
    ) -> InstallResult:
        match reference:
            case GithubRef():
                tree = self.fetch_github(reference)
            case FileRef():
                tree = self.fetch_file(reference)
            case UrlRef():
                tree = self.fetch_url(reference)
            case UuidRef():
                if via_uuid:
                    raise FetchError(
                        f"registry maps to another UUID ({reference}); refusing to follow "
                        "more than one registry hop"
                    )
                resolved = self.lookup_uuid(reference)
                return self._dispatch(resolved, required_signer, via_uuid=True)
            case _:
                assert_never(reference)

        return self.installer.install_from_source(tree, required_signer)

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def fresh_working_dir(self, name: str) -> Path:
        """Create a uniquely named working directory for *name*."""
        self.settings.work_dir.mkdir(parents=True, exist_ok=True)
        path = Path(tempfile.mkdtemp(prefix=f"{name or 'package'}-", dir=self.settings.work_dir))
        logger.info("Working tree: %s", path)
        return path

    def fetch_github(self, ref: GithubRef) -> Path:
        url = self.settings.github_url_template.format(owner=ref.owner, repo=ref.repo)
        tree = self.fresh_working_dir(ref.repo)
        self.vcs.clone(url, tree)
        if ref.commit:
            self.vcs.checkout(tree, ref.commit)
        return tree

    def fetch_file(self, ref: FileRef) -> Path:
        archive = Path(ref.path).expanduser()
        if not archive.is_file():
            raise FetchError(f"source archive not found: {archive}")
        if ref.commit:
            logger.warning("Ignoring commit pin %r on a tarball reference.", ref.commit)
        tree = self.fresh_working_dir(strip_archive_suffix(archive.name))
        self.archiver.extract_stripping_root(archive, tree)
        return tree

    def fetch_url(self, ref: UrlRef) -> Path:
        tree = self.fresh_working_dir(strip_archive_suffix(url_basename(ref.url)))
        self.http.download(ref.url, tree)

        archives = sorted(p for p in tree.iterdir() if is_archive(p))
        if not archives:
            raise FetchError(f"no source archive found after downloading {ref.url}")
        if len(archives) > 1:
            raise FetchError(
                f"expected one archive in {tree}, found {len(archives)}"
            )
        archive = archives[0]
        self.archiver.extract_stripping_root(archive, tree)
        archive.unlink()
        return tree

    def lookup_uuid(self, ref: UuidRef) -> PackageReference:
        """Resolve *ref* through the registry, carrying over its commit pin."""
        url = self.config_store.get(REGISTRY_KEY) or self.settings.registry_url
        mapping = parse_registry(self.http.fetch_text(url))
        target = mapping.get(ref.uuid.lower())
        if target is None:
            raise FetchError(f"UUID {ref.uuid} not found in registry {url}")

        resolved = parse_reference(target)
        if ref.commit:
            if isinstance(resolved, UrlRef):
                logger.warning("Ignoring commit pin %r for URL reference %s.", ref.commit, resolved)
            else:
                resolved = resolved.model_copy(update={"commit": ref.commit})
        logger.info("Resolved %s -> %s", ref, resolved)
        return resolved


def create_fetcher(settings: RavenpkgSettings | None = None) -> SourceFetcher:
    """Wire a SourceFetcher with production backends."""
    settings = settings or RavenpkgSettings()
    store = ConfigStore(settings.config_path)
    return SourceFetcher(settings, Installer(settings, store))
