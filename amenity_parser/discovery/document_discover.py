"""Source discovery: find candidate document links on a listing page."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urljoin, urlparse

from bs4 import BeautifulSoup

from amenity_parser.common.fs import write_json
from amenity_parser.common.http import HttpClient, RetryConfig, TimeoutConfig
from amenity_parser.common.logging import log_event
from amenity_parser.common.models import DocumentLink

logger = logging.getLogger(__name__)

_SKIPPED_SCHEMES = ("mailto:", "javascript:", "tel:", "#")


@dataclass(frozen=True)
class DiscoverySettings:
    base_url: str
    document_extensions: tuple[str, ...]
    keywords: tuple[str, ...]
    domain_keywords: tuple[str, ...]

    @classmethod
    def from_config(cls, source_config: dict) -> "DiscoverySettings":
        return cls(
            base_url=source_config["base_url"],
            document_extensions=tuple(ext.lower() for ext in source_config["document_extensions"]),
            keywords=tuple(k.lower() for k in source_config["keywords"]),
            domain_keywords=tuple(k.lower() for k in source_config["domain_keywords"]),
        )


def _absolute_url(base_url: str, href: str) -> str:
    base = base_url if base_url.endswith("/") else f"{base_url}/"
    return urljoin(base, href).split("#")[0]


def _is_relevant(title: str, path: str, settings: DiscoverySettings) -> bool:
    text = title.lower()
    lowered_path = path.lower()
    if lowered_path.endswith(settings.document_extensions):
        haystack = f"{text} {lowered_path}"
        if any(keyword in haystack for keyword in settings.keywords):
            return True
    return any(keyword in text for keyword in settings.domain_keywords)


def link_from_url(url: str) -> DocumentLink:
    return DocumentLink(url=url, title=unquote(Path(urlparse(url).path).stem))


def discover_document_links(html: str, settings: DiscoverySettings) -> list[DocumentLink]:
    soup = BeautifulSoup(html, "html.parser")
    links: list[DocumentLink] = []
    seen: set[str] = set()

    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href or href.lower().startswith(_SKIPPED_SCHEMES):
            continue
        title = anchor.get_text(" ", strip=True) or anchor.get("title", "").strip()
        url = _absolute_url(settings.base_url, href)
        path = unquote(urlparse(url).path)
        if not _is_relevant(title, path, settings):
            continue
        if url in seen:
            continue
        seen.add(url)
        links.append(DocumentLink(url=url, title=title))

    return links


def run_discovery(
    source_config: dict,
    data_dir: Path,
    run_id: str,
    http_client: HttpClient | None = None,
) -> dict:
    settings = DiscoverySettings.from_config(source_config)
    page_url = source_config["page_url"]

    owns_client = http_client is None
    client = http_client or HttpClient(
        verify_tls=bool(source_config["verify_tls"]),
        retry=RetryConfig.from_config(source_config.get("retry")),
    )
    try:
        html = client.get_text(
            page_url,
            timeout=TimeoutConfig(connect=10, read=float(source_config.get("page_timeout_seconds", 10))),
        )
    finally:
        if owns_client:
            client.close()

    links = discover_document_links(html, settings)
    fallback_used = False
    if not links and source_config.get("direct_urls"):
        fallback_used = True
        links = [link_from_url(url) for url in source_config["direct_urls"]]

    return write_discovery(source_config, data_dir, run_id, links, page_url=page_url, fallback_used=fallback_used)


def write_discovery(
    source_config: dict,
    data_dir: Path,
    run_id: str,
    links: list[DocumentLink],
    *,
    page_url: str | None,
    fallback_used: bool = False,
) -> dict:
    log_event(
        logger,
        f"discovered {len(links)} document links",
        stage="discover",
        event="LINKS_DISCOVERED",
        status="ok",
        rows_out=len(links),
    )

    payload = {
        "source": source_config["name"],
        "run_id": run_id,
        "page_url": page_url,
        "fallback_used": fallback_used,
        "links": [link.to_dict() for link in links],
    }
    write_json(data_dir / "raw" / "discovery" / f"{source_config['name']}_discovery.json", payload)
    return payload


def record_single_document(source_config: dict, data_dir: Path, run_id: str, url: str) -> dict:
    """Discovery output for one explicitly requested document."""
    return write_discovery(source_config, data_dir, run_id, [link_from_url(url)], page_url=None)
