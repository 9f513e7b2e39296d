"""Client for the catalog store REST API (`/api/objects`)."""

from __future__ import annotations

import os
from typing import Any

import requests

from amenity_parser.common.errors import FetchError, StoreConflictError, StoreError, StoreUnavailableError
from amenity_parser.common.http import HttpClient, TimeoutConfig
from amenity_parser.common.models import AmenityRecord

_CONFLICT_MARKERS = ("already exists", "уже существует")


def _error_detail(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text.strip() or f"HTTP {response.status_code}"
    if isinstance(payload, dict):
        detail = payload.get("error") or payload.get("message")
        if detail:
            return str(detail)
    return str(payload)


class CatalogStoreClient:
    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        timeout: TimeoutConfig | None = None,
        probe_timeout: TimeoutConfig | None = None,
        http_client: HttpClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout or TimeoutConfig(connect=10, read=10)
        self.probe_timeout = probe_timeout or TimeoutConfig(connect=5, read=5)
        self._owns_client = http_client is None
        self.headers = {"Accept": "application/json"}
        if api_key:
            self.headers["Authorization"] = f"Bearer {api_key}"
        self.client = http_client or HttpClient(timeout=self.timeout)

    @classmethod
    def from_config(cls, store_config: dict, http_client: HttpClient | None = None) -> "CatalogStoreClient":
        api_key_env = store_config.get("api_key_env")
        timeout = float(store_config.get("timeout_seconds", 10))
        probe = float(store_config.get("probe_timeout_seconds", 5))
        return cls(
            store_config["base_url"],
            api_key=os.environ.get(api_key_env) if api_key_env else None,
            timeout=TimeoutConfig(connect=timeout, read=timeout),
            probe_timeout=TimeoutConfig(connect=probe, read=probe),
            http_client=http_client,
        )

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "CatalogStoreClient":
        return self

    def __exit__(self, *_exc) -> None:
        self.close()

    def _call(self, method: str, path: str, *, timeout: TimeoutConfig | None = None, **kwargs: Any) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            return self.client.request(method, url, timeout=timeout or self.timeout, headers=self.headers, **kwargs)
        except FetchError as exc:
            raise StoreUnavailableError(f"Catalog store unreachable: {exc}", detail=str(exc)) from exc

    def probe(self) -> None:
        """Raise StoreUnavailableError unless the store answers its root with 200."""
        response = self._call("GET", "/", timeout=self.probe_timeout)
        if response.status_code != 200:
            raise StoreUnavailableError(
                f"Catalog store probe returned HTTP {response.status_code}",
                status_code=response.status_code,
                detail=_error_detail(response),
            )

    def create(self, record: AmenityRecord) -> str | None:
        response = self._call("POST", "/api/objects", json=record.to_dict())
        if 200 <= response.status_code < 300:
            try:
                data = (response.json() or {}).get("data") or {}
            except ValueError:
                return None
            identifier = data.get("id") if isinstance(data, dict) else None
            return str(identifier) if identifier is not None else None

        detail = _error_detail(response)
        if response.status_code == 409 or any(marker in detail.lower() for marker in _CONFLICT_MARKERS):
            raise StoreConflictError(
                f"Record already exists: {record.name} / {record.address}",
                status_code=response.status_code,
                detail=detail,
            )
        raise StoreError(
            f"Catalog store rejected {record.name}: HTTP {response.status_code}",
            status_code=response.status_code,
            detail=detail,
        )

    def list_objects(self, *, limit: int = 1000) -> list[dict]:
        response = self._call("GET", "/api/objects", params={"limit": limit})
        if response.status_code != 200:
            raise StoreError(
                f"Listing catalog failed: HTTP {response.status_code}",
                status_code=response.status_code,
                detail=_error_detail(response),
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise StoreError("Catalog listing is not valid JSON") from exc
        if isinstance(payload, dict):
            return list(payload.get("data") or [])
        return list(payload or [])

    def delete(self, identifier: str) -> None:
        response = self._call("DELETE", f"/api/objects/{identifier}")
        if not 200 <= response.status_code < 300:
            raise StoreError(
                f"Deleting {identifier} failed: HTTP {response.status_code}",
                status_code=response.status_code,
                detail=_error_detail(response),
            )
