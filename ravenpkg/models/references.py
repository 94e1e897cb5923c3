"""Package references — the tagged union behind the pkgref grammar.

Grammar::

    github:<user>/<repo>[@<commit>]
    file:<path>[@<commit>]
    uuid:<uuid>[@<commit>]
    <scheme>://<url>

A reference string is parsed exactly once by ``parse_reference`` and every
consumer dispatches on the concrete variant.
"""

from __future__ import annotations

import re
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from ravenpkg.core.errors import UsageError

_URL_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://\S+$")
_GITHUB_NAME_RE = re.compile(r"^[A-Za-z0-9_.\-]+$")
_UUID_RE = re.compile(r"^[0-9A-Fa-f]{8}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{12}$")


def _with_commit(base: str, commit: str | None) -> str:
    return f"{base}@{commit}" if commit else base


class GithubRef(BaseModel):
    """A GitHub repository, optionally pinned to a commit."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["github"] = "github"
    owner: str
    repo: str
    commit: str | None = None

    def __str__(self) -> str:
        return _with_commit(f"github:{self.owner}/{self.repo}", self.commit)


class FileRef(BaseModel):
    """A local source tarball."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["file"] = "file"
    path: str
    commit: str | None = None

    def __str__(self) -> str:
        return _with_commit(f"file:{self.path}", self.commit)


class UrlRef(BaseModel):
    """A remote source tarball.  URLs never carry a commit pin."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["url"] = "url"
    url: str

    def __str__(self) -> str:
        return self.url


class UuidRef(BaseModel):
    """An opaque UUID resolved through the remote registry."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["uuid"] = "uuid"
    uuid: str
    commit: str | None = None

    def __str__(self) -> str:
        return _with_commit(f"uuid:{self.uuid}", self.commit)


PackageReference = Annotated[
    Union[GithubRef, FileRef, UrlRef, UuidRef],
    Field(discriminator="kind"),
]


def _split_commit(body: str) -> tuple[str, str | None]:
    """Split ``<body>@<commit>``; only an ``@`` after the last ``/`` counts."""
    slash = body.rfind("/")
    at = body.rfind("@")
    if at <= slash:
        return body, None
    commit = body[at + 1:]
    if not commit:
        raise UsageError(f"empty commit pin in reference: {body!r}")
    return body[:at], commit


def parse_reference(text: str) -> GithubRef | FileRef | UrlRef | UuidRef:
    """Parse a pkgref string into exactly one reference variant.

    Raises
    ------
    UsageError
        If the string matches no variant of the grammar.

    Examples
    --------
    >>> parse_reference("github:alice/bar@deadbeef")
    GithubRef(kind='github', owner='alice', repo='bar', commit='deadbeef')
    >>> parse_reference("http://example.com/x.tar").kind
    'url'
    """
    value = text.strip()

    if value.startswith("github:"):
        body, commit = _split_commit(value[len("github:"):])
        parts = body.split("/")
        if len(parts) != 2 or not all(_GITHUB_NAME_RE.match(p) for p in parts):
            raise UsageError(f"malformed github reference: {text!r}")
        return GithubRef(owner=parts[0], repo=parts[1], commit=commit)

    if value.startswith("file:"):
        body, commit = _split_commit(value[len("file:"):])
        if not body:
            raise UsageError(f"malformed file reference: {text!r}")
        return FileRef(path=body, commit=commit)

    if value.startswith("uuid:"):
        body, commit = _split_commit(value[len("uuid:"):])
        if not _UUID_RE.match(body):
            raise UsageError(f"malformed uuid reference: {text!r}")
        return UuidRef(uuid=body.lower(), commit=commit)

    if _URL_RE.match(value):
        return UrlRef(url=value)

    raise UsageError(f"unrecognized package reference: {text!r}")
