"""ravenpkg: a minimal source package manager.

Resolves a package reference (GitHub repo, local tarball, tarball URL or
registry UUID) to a source tree, verifies it against a signed manifest with
per-file SHA-256 hashes, builds it, and publishes its shared libraries into
a content-addressed namespace.
"""

__version__ = "0.1.0"
__description__ = "Minimal source package manager with signed, hash-checked manifests"

from ravenpkg.core.installer import Installer
from ravenpkg.core.source_fetcher import SourceFetcher, create_fetcher
from ravenpkg.cli.app import app as cli

__all__ = ["Installer", "SourceFetcher", "create_fetcher", "cli", "__version__"]
