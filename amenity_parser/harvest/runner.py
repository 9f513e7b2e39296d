"""Fetch orchestration with fail-soft semantics."""

from __future__ import annotations

import logging
from pathlib import Path

from amenity_parser.common.errors import FetchError, StageError
from amenity_parser.common.fs import read_json, write_json
from amenity_parser.common.logging import log_event
from amenity_parser.common.models import DocumentLink
from amenity_parser.harvest.document_fetch import DocumentFetcher, document_filename

logger = logging.getLogger(__name__)


def documents_dir(data_dir: Path) -> Path:
    return data_dir / "raw" / "documents"


def manifest_path(data_dir: Path, source_name: str) -> Path:
    return documents_dir(data_dir) / f"{source_name}_manifest.json"


def load_discovered_links(data_dir: Path, source_name: str) -> list[DocumentLink]:
    path = data_dir / "raw" / "discovery" / f"{source_name}_discovery.json"
    if not path.exists():
        raise StageError(f"Missing discovery output: {path}")
    payload = read_json(path)
    return [DocumentLink(url=link["url"], title=link.get("title", "")) for link in payload.get("links", [])]


def fetch_documents(links: list[DocumentLink], fetcher: DocumentFetcher) -> list[dict]:
    """Download each link; a failure is recorded and never stops the others."""
    entries: list[dict] = []
    for link in links:
        entry = {"url": link.url, "title": link.title, "path": None, "status": "ok", "error_code": None, "error": None}
        try:
            path = fetcher.fetch(link.url, document_filename(link.url, link.title))
            entry["path"] = str(path)
        except FetchError as exc:
            entry["status"] = "error"
            entry["error_code"] = exc.error_code
            entry["error"] = str(exc)
            log_event(
                logger,
                f"fetch failed: {exc}",
                level=logging.WARNING,
                stage="fetch",
                document=link.url,
                event="FETCH_FAIL",
                status="error",
                error_code=exc.error_code,
            )
        entries.append(entry)
    return entries


def run_fetch(
    source_config: dict,
    data_dir: Path,
    run_id: str,
    fetcher: DocumentFetcher | None = None,
    links: list[DocumentLink] | None = None,
) -> dict:
    source_name = source_config["name"]
    if links is None:
        links = load_discovered_links(data_dir, source_name)

    owns_fetcher = fetcher is None
    fetcher = fetcher or DocumentFetcher.from_config(source_config, documents_dir(data_dir))
    try:
        entries = fetch_documents(links, fetcher)
    finally:
        if owns_fetcher:
            fetcher.close()

    failed = [entry for entry in entries if entry["status"] != "ok"]
    payload = {
        "source": source_name,
        "run_id": run_id,
        "document_count": len(entries),
        "failed_count": len(failed),
        "documents": entries,
    }
    write_json(manifest_path(data_dir, source_name), payload)

    if entries and len(failed) == len(entries):
        raise StageError(f"All {len(entries)} documents failed to fetch for source {source_name}")
    return payload
