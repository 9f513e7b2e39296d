from __future__ import annotations

import pytest

from amenity_parser.common.catalog_store import CatalogStoreClient
from amenity_parser.common.errors import (
    FetchError,
    StoreConflictError,
    StoreError,
    StoreUnavailableError,
)
from amenity_parser.common.models import AmenityRecord, Coordinates


class FakeResponse:
    def __init__(self, status_code: int, payload=None, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeHttpClient:
    def __init__(self, responses: list):
        self.responses = responses
        self.calls: list[tuple[str, str, dict]] = []

    def request(self, method: str, url: str, **kwargs):
        self.calls.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self):
        return None


RECORD = AmenityRecord(
    name="Сквер Дружбы народов",
    source_label="objects.pdf",
    coordinates=Coordinates(lat=48.708, lng=44.5133),
    address="ул. Мира, 15",
)


def test_create_posts_record_and_returns_id():
    client = FakeHttpClient([FakeResponse(201, {"success": True, "data": {"id": 42}})])
    store = CatalogStoreClient("http://catalog.test/", api_key="secret", http_client=client)

    assert store.create(RECORD) == "42"

    method, url, kwargs = client.calls[0]
    assert (method, url) == ("POST", "http://catalog.test/api/objects")
    assert kwargs["json"]["name"] == "Сквер Дружбы народов"
    assert kwargs["headers"]["Authorization"] == "Bearer secret"


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(409, {"success": False, "error": "Conflict"}),
        FakeResponse(400, {"success": False, "error": "Object already exists"}),
    ],
)
def test_create_conflict_is_typed(response):
    store = CatalogStoreClient("http://catalog.test", http_client=FakeHttpClient([response]))

    with pytest.raises(StoreConflictError):
        store.create(RECORD)


def test_create_other_failure_carries_detail():
    response = FakeResponse(400, {"success": False, "error": "Не все обязательные поля заполнены"})
    store = CatalogStoreClient("http://catalog.test", http_client=FakeHttpClient([response]))

    with pytest.raises(StoreError) as excinfo:
        store.create(RECORD)
    assert not isinstance(excinfo.value, StoreConflictError)
    assert excinfo.value.status_code == 400
    assert excinfo.value.detail == "Не все обязательные поля заполнены"


def test_probe_raises_when_store_unreachable():
    client = FakeHttpClient([FetchError("refused", url="http://catalog.test/")])
    store = CatalogStoreClient("http://catalog.test", http_client=client)

    with pytest.raises(StoreUnavailableError):
        store.probe()


def test_probe_raises_on_error_status():
    store = CatalogStoreClient("http://catalog.test", http_client=FakeHttpClient([FakeResponse(503, text="down")]))

    with pytest.raises(StoreUnavailableError) as excinfo:
        store.probe()
    assert excinfo.value.detail == "down"


def test_list_and_delete():
    client = FakeHttpClient(
        [
            FakeResponse(200, {"success": True, "data": [{"id": 1, "name": "a"}, {"id": 2, "name": "b"}]}),
            FakeResponse(200, {"success": True}),
        ]
    )
    store = CatalogStoreClient("http://catalog.test", http_client=client)

    assert [item["id"] for item in store.list_objects(limit=1000)] == [1, 2]
    store.delete("1")

    assert client.calls[0][2]["params"] == {"limit": 1000}
    assert client.calls[1][:2] == ("DELETE", "http://catalog.test/api/objects/1")


def test_from_config_reads_api_key_from_environment(monkeypatch):
    monkeypatch.setenv("CATALOG_API_KEY", "from-env")
    store = CatalogStoreClient.from_config(
        {"base_url": "http://catalog.test", "api_key_env": "CATALOG_API_KEY", "timeout_seconds": 10},
        http_client=FakeHttpClient([]),
    )
    assert store.headers["Authorization"] == "Bearer from-env"
    assert store.timeout.read == 10.0
