"""Document fetch: stream a source document to local storage."""

from __future__ import annotations

import hashlib
from pathlib import Path
from urllib.parse import unquote, urlparse

from amenity_parser.common.fs import safe_filename
from amenity_parser.common.http import HttpClient, RetryConfig, TimeoutConfig


def document_filename(url: str, title: str | None = None) -> str:
    """Stable local filename: readable stem plus a short digest of the URL."""
    digest = hashlib.sha1(url.encode("utf-8")).hexdigest()[:8]
    stem_source = title or unquote(Path(urlparse(url).path).stem) or "document"
    suffix = Path(urlparse(url).path).suffix.lower() or ".pdf"
    name = safe_filename(stem_source, suffix="", max_length=60)
    return f"{name}_{digest}{suffix}"


class DocumentFetcher:
    def __init__(
        self,
        download_dir: Path,
        *,
        verify_tls: bool = True,
        timeout_seconds: float = 30.0,
        retry: RetryConfig | None = None,
        http_client: HttpClient | None = None,
    ) -> None:
        self.download_dir = download_dir
        self.timeout = TimeoutConfig(connect=min(10.0, timeout_seconds), read=timeout_seconds)
        self._owns_client = http_client is None
        self.client = http_client or HttpClient(verify_tls=verify_tls, timeout=self.timeout, retry=retry)

    @classmethod
    def from_config(cls, source_config: dict, download_dir: Path) -> "DocumentFetcher":
        return cls(
            download_dir,
            verify_tls=bool(source_config["verify_tls"]),
            timeout_seconds=float(source_config.get("document_timeout_seconds", 30)),
            retry=RetryConfig.from_config(source_config.get("retry")),
        )

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "DocumentFetcher":
        return self

    def __exit__(self, *_exc) -> None:
        self.close()

    def fetch(self, url: str, filename: str | None = None) -> Path:
        target = self.download_dir / (filename or document_filename(url))
        return self.client.download(url, target, timeout=self.timeout)
