"""Two-phase trust check for a fetched working tree.

Phase 1 — signature
    ``manifest.sig`` must be a good signature over ``manifest`` made by the
    required signer.  The verifier's report is classified into accept,
    ``BAD_SIGNATURE``, ``WRONG_SIGNER`` or ``UNPARSEABLE``.  Output that
    matches no known pattern is never treated as success.

Phase 2 — file hashes
    Every ``hash-<path>`` entry must match the SHA-256 of ``<path>`` in the
    working tree.  This stops a validly signed manifest from vouching for
    files altered after signing.

Both phases run whenever a signer is required; there is no partial trust.
"""

from __future__ import annotations

import hmac
import logging
import re
from pathlib import Path

from ravenpkg.bridge.capabilities import SignatureVerifier
from ravenpkg.core.errors import TrustError, TrustFailure
from ravenpkg.core.hasher import file_sha256
from ravenpkg.core.manifest_reader import manifest_path, read_manifest, signature_path
from ravenpkg.models.manifest import Manifest

logger = logging.getLogger(__name__)

_GOOD_RE = re.compile(r'Good signature from "([^"]*)"')
_KEY_RE = re.compile(r"(?:using \w+ key|key ID)\s+([0-9A-Fa-f]+)")
_EMAIL_RE = re.compile(r"<([^<>\s]+@[^<>\s]+)>")
_DIGEST_RE = re.compile(r"^[0-9a-f]{64}$")
_FAILURE_MARKERS: tuple[str, ...] = (
    "BAD signature",
    "Can't check signature",
    "No public key",
    "no valid OpenPGP data",
    "no signature found",
    "not a detached signature",
)


def _signer_matches(required: str, identities: list[str], key_ids: list[str]) -> bool:
    wanted = required.strip()
    if not wanted:
        return False
    if "@" in wanted:
        bare = wanted.strip("<>")
        return any(f"<{bare}>" in identity for identity in identities)
    needle = wanted.upper().removeprefix("0X")
    return any(needle in key_id.upper() for key_id in key_ids)


def classify_report(report: str, required_signer: str) -> str:
    """Classify a verifier report and return the accepted identity.

    Raises
    ------
    TrustError
        ``BAD_SIGNATURE`` for a recognized failure report, ``WRONG_SIGNER``
        for a good signature by someone else, ``UNPARSEABLE`` otherwise.
    """
    identities = _GOOD_RE.findall(report)
    if identities:
        key_ids = _KEY_RE.findall(report)
        emails = [m for identity in identities for m in _EMAIL_RE.findall(identity)]
        if not key_ids and not emails:
            raise TrustError(
                TrustFailure.UNPARSEABLE,
                "good signature reported but no signer identity could be read",
            )
        if _signer_matches(required_signer, identities, key_ids):
            return identities[0]
        raise TrustError(
            TrustFailure.WRONG_SIGNER,
            f"manifest signed by {identities[0]!r} "
            f"(key {', '.join(key_ids) or 'unknown'}), not {required_signer!r}",
        )

    if any(marker in report for marker in _FAILURE_MARKERS):
        raise TrustError(
            TrustFailure.BAD_SIGNATURE,
            f"manifest signature did not verify: {report.strip()}",
        )

    raise TrustError(
        TrustFailure.UNPARSEABLE,
        f"unrecognized verifier output: {report.strip()!r}",
    )


def _resolve_inside(root: Path, rel: str) -> Path | None:
    target = (root / rel).resolve()
    base = root.resolve()
    if base not in target.parents:
        return None
    return target


def check_file_hashes(working_tree: Path, manifest: Manifest) -> int:
    """Compare every declared ``hash-*`` digest with the tree.

    Returns the number of files checked.

    Raises
    ------
    TrustError
        ``HASH_MISMATCH`` on the first differing, missing, or out-of-tree file.
    """
    checked = 0
    for rel, expected in manifest.file_hashes():
        target = _resolve_inside(working_tree, rel)
        if target is None:
            raise TrustError(TrustFailure.HASH_MISMATCH, f"hash path escapes the tree: {rel}")
        if not target.is_file():
            raise TrustError(TrustFailure.HASH_MISMATCH, f"hashed file is missing: {rel}")
        digest = expected.strip().lower()
        if not _DIGEST_RE.match(digest):
            raise TrustError(
                TrustFailure.HASH_MISMATCH,
                f"malformed SHA-256 digest for {rel}: {expected!r}",
            )
        actual = file_sha256(target)
        if not hmac.compare_digest(actual, digest):
            raise TrustError(
                TrustFailure.HASH_MISMATCH,
                f"hash mismatch for {rel}: manifest={expected} actual={actual}",
            )
        checked += 1
    return checked


class TrustVerifier:
    """Runs both trust phases over a working tree.

    Parameters
    ----------
    verifier:
        Detached-signature backend (``GpgBackend`` in production).
    """

    def __init__(self, verifier: SignatureVerifier) -> None:
        self._verifier = verifier

    def verify(self, working_tree: Path, required_signer: str) -> str:
        """Verify *working_tree* and return the accepted signer identity.

        Raises
        ------
        TrustError
            On any signature or hash failure.
        """
        manifest_file = manifest_path(working_tree)
        sig_file = signature_path(working_tree)
        if not manifest_file.is_file():
            raise TrustError(TrustFailure.BAD_SIGNATURE, f"no manifest in {working_tree}")
        if not sig_file.is_file():
            raise TrustError(TrustFailure.BAD_SIGNATURE, f"no manifest.sig in {working_tree}")

        report = self._verifier.verify_detached(sig_file, manifest_file)
        identity = classify_report(report, required_signer)
        logger.info("Manifest signature accepted: %s", identity)

        checked = check_file_hashes(working_tree, read_manifest(manifest_file))
        logger.info("Verified %d file hash(es) in %s.", checked, working_tree)
        return identity
