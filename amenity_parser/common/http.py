"""HTTP client with timeouts, explicit TLS trust mode, and opt-in retries."""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import Any

import requests
import urllib3
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from amenity_parser.common.constants import USER_AGENT
from amenity_parser.common.errors import (
    FetchError,
    FetchStatusError,
    FetchTimeoutError,
    FetchTlsError,
    RetryableFetchError,
)
from amenity_parser.common.fs import ensure_dir

RETRYABLE_STATUS_CODES = {408, 425, 429, 500, 502, 503, 504}
DOWNLOAD_CHUNK_SIZE = 1024 * 128


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 10.0
    read: float = 30.0


@dataclass(frozen=True)
class RetryConfig:
    # One attempt: a failed request is terminal for the item unless retries are configured.
    max_attempts: int = 1
    multiplier: float = 1.0
    max_wait: float = 30.0
    jitter: float = 1.0

    @classmethod
    def from_config(cls, cfg: dict[str, Any] | None) -> "RetryConfig":
        if not cfg:
            return cls()
        defaults = cls()
        return cls(
            max_attempts=int(cfg.get("max_attempts", defaults.max_attempts)),
            multiplier=float(cfg.get("multiplier", defaults.multiplier)),
            max_wait=float(cfg.get("max_wait", defaults.max_wait)),
            jitter=float(cfg.get("jitter", defaults.jitter)),
        )


class HttpClient:
    def __init__(
        self,
        *,
        timeout: TimeoutConfig | None = None,
        retry: RetryConfig | None = None,
        verify_tls: bool = True,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.retry = retry or RetryConfig()
        self.verify_tls = verify_tls
        self.session = requests.Session()
        self.session.verify = verify_tls
        self.default_headers = {"User-Agent": USER_AGENT}
        if headers:
            self.default_headers.update(headers)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _headers(self, headers: dict[str, str] | None) -> dict[str, str]:
        out = dict(self.default_headers)
        if headers:
            out.update(headers)
        return out

    def _raise_for_status(self, response: requests.Response, url: str) -> None:
        status = response.status_code
        if status in RETRYABLE_STATUS_CODES:
            raise RetryableFetchError(f"Retryable HTTP status {status} for {url}", url=url, status_code=status)
        if status < 200 or status >= 300:
            raise FetchStatusError(f"HTTP status {status} for {url}", url=url, status_code=status)

    def _send(self, method: str, url: str, *, timeout: TimeoutConfig | None = None, **kwargs: Any) -> requests.Response:
        req_timeout = timeout or self.timeout
        headers = self._headers(kwargs.pop("headers", None))
        try:
            with warnings.catch_warnings():
                if not self.verify_tls:
                    # Relaxed trust is scoped to this client, not the process.
                    warnings.simplefilter("ignore", urllib3.exceptions.InsecureRequestWarning)
                return self.session.request(
                    method=method,
                    url=url,
                    headers=headers,
                    timeout=(req_timeout.connect, req_timeout.read),
                    **kwargs,
                )
        except requests.exceptions.SSLError as exc:
            raise FetchTlsError(f"TLS failure for {url}: {exc}", url=url) from exc
        except requests.exceptions.Timeout as exc:
            raise FetchTimeoutError(f"Timed out fetching {url}", url=url) from exc
        except requests.exceptions.RequestException as exc:
            raise FetchError(f"Network failure for {url}: {exc}", url=url) from exc

    def _with_retry(self, func):
        return retry(
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=wait_exponential_jitter(
                initial=self.retry.multiplier,
                max=self.retry.max_wait,
                jitter=self.retry.jitter,
            ),
            retry=retry_if_exception_type(RetryableFetchError),
            reraise=True,
        )(func)

    def request(
        self,
        method: str,
        url: str,
        *,
        timeout: TimeoutConfig | None = None,
        **kwargs: Any,
    ) -> requests.Response:
        """Send a request and return the response without checking its status."""
        return self._send(method, url, timeout=timeout, **kwargs)

    def get_text(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> str:
        def _wrapped() -> str:
            response = self._send("GET", url, params=params, headers=headers, timeout=timeout)
            self._raise_for_status(response, url)
            if not response.encoding or response.encoding.lower() == "iso-8859-1":
                response.encoding = response.apparent_encoding
            return response.text

        return self._with_retry(_wrapped)()

    def download(
        self,
        url: str,
        target_path: Path,
        *,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> Path:
        def _wrapped() -> Path:
            merged = {"Accept": "*/*"}
            if headers:
                merged.update(headers)
            response = self._send("GET", url, headers=merged, timeout=timeout, stream=True)
            try:
                self._raise_for_status(response, url)
                ensure_dir(target_path.parent)
                try:
                    with target_path.open("wb") as f:
                        for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                            if chunk:
                                f.write(chunk)
                except requests.exceptions.RequestException as exc:
                    target_path.unlink(missing_ok=True)
                    if _is_read_timeout(exc):
                        raise FetchTimeoutError(f"Timed out downloading {url}", url=url) from exc
                    raise FetchError(f"Download interrupted for {url}: {exc}", url=url) from exc
            finally:
                response.close()
            return target_path

        return self._with_retry(_wrapped)()


def _is_read_timeout(exc: BaseException) -> bool:
    # Streaming reads surface urllib3's ReadTimeoutError wrapped in a requests ConnectionError.
    pending: list[Any] = [exc]
    seen: set[int] = set()
    while pending:
        current = pending.pop()
        if not isinstance(current, BaseException) or id(current) in seen:
            continue
        seen.add(id(current))
        if isinstance(current, (requests.exceptions.Timeout, urllib3.exceptions.ReadTimeoutError)):
            return True
        pending.extend(current.args)
        pending.extend([current.__cause__, current.__context__])
    return False
