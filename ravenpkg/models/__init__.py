"""ravenpkg data models — all Pydantic v2, all frozen (immutable)."""

from ravenpkg.models.manifest import HASH_PREFIX, InstallResult, Manifest
from ravenpkg.models.references import (
    FileRef,
    GithubRef,
    PackageReference,
    UrlRef,
    UuidRef,
    parse_reference,
)

__all__ = [
    # references
    "PackageReference",
    "GithubRef",
    "FileRef",
    "UrlRef",
    "UuidRef",
    "parse_reference",
    # manifest
    "HASH_PREFIX",
    "Manifest",
    "InstallResult",
]
