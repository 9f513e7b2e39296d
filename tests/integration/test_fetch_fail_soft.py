from __future__ import annotations

import json
from pathlib import Path

import pytest

from amenity_parser.common.errors import FetchStatusError, FetchTlsError, StageError
from amenity_parser.common.models import DocumentLink
from amenity_parser.common.http import RetryConfig
from amenity_parser.harvest import runner
from amenity_parser.harvest.document_fetch import DocumentFetcher

SOURCE_CONFIG = {"name": "test_source", "verify_tls": False, "document_timeout_seconds": 30}


class FakeFetcher:
    def __init__(self, download_dir: Path, failures: dict[str, Exception]):
        self.download_dir = download_dir
        self.failures = failures
        self.fetched: list[str] = []

    def fetch(self, url: str, filename: str | None = None) -> Path:
        if url in self.failures:
            raise self.failures[url]
        path = self.download_dir / (filename or "doc.pdf")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"%PDF-1.4")
        self.fetched.append(url)
        return path

    def close(self):
        return None


LINKS = [
    DocumentLink(url="https://example.org/a.pdf", title="Объекты A"),
    DocumentLink(url="https://example.org/b.pdf", title="Объекты B"),
    DocumentLink(url="https://example.org/c.pdf", title="Объекты C"),
]


@pytest.mark.integration
def test_fetch_continues_after_single_document_failure(tmp_path: Path):
    fetcher = FakeFetcher(
        runner.documents_dir(tmp_path),
        {"https://example.org/b.pdf": FetchStatusError("HTTP 404", url="https://example.org/b.pdf", status_code=404)},
    )

    result = runner.run_fetch(SOURCE_CONFIG, tmp_path, "run-1", fetcher=fetcher, links=LINKS)

    assert fetcher.fetched == ["https://example.org/a.pdf", "https://example.org/c.pdf"]
    assert result["failed_count"] == 1
    failed = [entry for entry in result["documents"] if entry["status"] == "error"]
    assert failed[0]["error_code"] == "FETCH_STATUS"
    manifest = json.loads(runner.manifest_path(tmp_path, "test_source").read_text(encoding="utf-8"))
    assert manifest["document_count"] == 3


@pytest.mark.integration
def test_fetch_fails_when_every_document_fails(tmp_path: Path):
    failures = {link.url: FetchTlsError("bad chain", url=link.url) for link in LINKS}
    fetcher = FakeFetcher(runner.documents_dir(tmp_path), failures)

    with pytest.raises(StageError):
        runner.run_fetch(SOURCE_CONFIG, tmp_path, "run-2", fetcher=fetcher, links=LINKS)
    assert runner.manifest_path(tmp_path, "test_source").exists()


@pytest.mark.integration
def test_fetch_reads_links_from_discovery_output(tmp_path: Path):
    discovery = tmp_path / "raw" / "discovery" / "test_source_discovery.json"
    discovery.parent.mkdir(parents=True)
    discovery.write_text(json.dumps({"links": [LINKS[0].to_dict()]}), encoding="utf-8")
    fetcher = FakeFetcher(runner.documents_dir(tmp_path), {})

    result = runner.run_fetch(SOURCE_CONFIG, tmp_path, "run-3", fetcher=fetcher)

    assert result["documents"][0]["path"].endswith(".pdf")
    assert fetcher.fetched == ["https://example.org/a.pdf"]


def test_fetch_without_discovery_output_is_a_stage_error(tmp_path: Path):
    with pytest.raises(StageError):
        runner.run_fetch(SOURCE_CONFIG, tmp_path, "run-4", fetcher=FakeFetcher(tmp_path, {}))


def test_document_fetcher_takes_retry_settings_from_source_config(tmp_path: Path):
    with DocumentFetcher.from_config(dict(SOURCE_CONFIG), tmp_path) as single:
        assert single.client.retry == RetryConfig()

    configured = dict(SOURCE_CONFIG, retry={"max_attempts": 3, "max_wait": 4})
    with DocumentFetcher.from_config(configured, tmp_path) as fetcher:
        assert fetcher.client.retry.max_attempts == 3
        assert fetcher.client.retry.max_wait == 4.0
        assert fetcher.client.session.verify is False
