"""HTTP transport built on ``requests``."""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from urllib.parse import unquote, urlsplit

import requests

from ravenpkg.core.errors import FetchError

logger = logging.getLogger(__name__)


def url_basename(url: str) -> str:
    """Final path segment of *url*, percent-decoded.

    >>> url_basename("https://example.com/dl/foo-1.0.tar.gz?x=1")
    'foo-1.0.tar.gz'
    """
    path = unquote(urlsplit(url).path).rstrip("/")
    return PurePosixPath(path).name


class RequestsFetcher:
    """Streams downloads to disk and fetches small text documents."""

    def __init__(self, timeout: float = 60.0) -> None:
        self._timeout = timeout

    def download(self, url: str, dest_dir: Path) -> Path:
        name = url_basename(url)
        if not name:
            raise FetchError(f"cannot derive a file name from URL: {url}")
        out_path = dest_dir / name
        logger.info("downloading %s", url)
        try:
            with requests.get(url, stream=True, timeout=self._timeout) as response:
                if response.status_code >= 400:
                    raise FetchError(f"download failed: {response.status_code} {url}")
                with out_path.open("wb") as handle:
                    for chunk in response.iter_content(chunk_size=1024 * 1024):
                        if chunk:
                            handle.write(chunk)
        except requests.RequestException as exc:
            raise FetchError(f"download failed for {url}: {exc}") from exc
        return out_path

    def fetch_text(self, url: str) -> str:
        logger.info("fetching %s", url)
        try:
            response = requests.get(url, timeout=self._timeout)
        except requests.RequestException as exc:
            raise FetchError(f"request failed for {url}: {exc}") from exc
        if response.status_code >= 400:
            raise FetchError(f"request failed: {response.status_code} {url}")
        return response.text
