from __future__ import annotations

import httpx
import pytest

from lead_finder.engine import SearchClient
from lead_finder.errors import ApiError, SearchClientError


def _client(sample_global_config, handler) -> SearchClient:
    return SearchClient(sample_global_config, transport=httpx.MockTransport(handler))


def test_search_sends_query_params_and_headers(sample_global_config) -> None:
    captured: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = request.url
        captured["headers"] = request.headers
        return httpx.Response(
            200,
            json={
                "status": "ok",
                "data": [
                    {
                        "name": "Sweet Bakery",
                        "rating": 4.7,
                        "review_count": 120,
                        "types": ["bakery", "cafe"],
                        "latitude": 30.26,
                        "longitude": -97.74,
                        "extra_field": "kept",
                    }
                ],
            },
        )

    with _client(sample_global_config, handler) as client:
        results = client.search("secret", "bakery in Austin, TX", 500, "US")

    url = captured["url"]
    assert url.host == "maps-data.p.rapidapi.com"
    assert url.path == "/search"
    assert url.params["query"] == "bakery in Austin, TX"
    assert url.params["limit"] == "500"
    assert url.params["country"] == "US"
    assert url.params["lang"] == "en"
    assert captured["headers"]["X-RapidAPI-Key"] == "secret"
    assert captured["headers"]["X-RapidAPI-Host"] == "maps-data.p.rapidapi.com"
    assert len(results) == 1
    assert results[0].name == "Sweet Bakery"
    assert results[0].types == ["bakery", "cafe"]
    assert results[0].model_extra["extra_field"] == "kept"


def test_non_success_status_raises_api_error_with_server_message(sample_global_config) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"message": "You are not subscribed to this API."})

    with _client(sample_global_config, handler) as client:
        with pytest.raises(ApiError) as excinfo:
            client.search("bad", "gym in Austin", 500, "US")

    assert excinfo.value.status_code == 403
    assert excinfo.value.message == "You are not subscribed to this API."
    assert "403" in str(excinfo.value)


def test_non_success_without_json_body_uses_unknown_error(sample_global_config) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="<html>bad gateway</html>")

    with _client(sample_global_config, handler) as client:
        with pytest.raises(ApiError) as excinfo:
            client.search("key", "gym in Austin", 500, "US")

    assert excinfo.value.status_code == 502
    assert excinfo.value.message == "Unknown error"


@pytest.mark.parametrize(
    "payload",
    [
        {"status": "error", "data": []},
        {"status": "ok", "data": {"name": "not a list"}},
        {"status": "ok"},
        ["unexpected", "list"],
    ],
)
def test_unexpected_success_payload_returns_empty(sample_global_config, payload) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload)

    with _client(sample_global_config, handler) as client:
        assert client.search("key", "gym in Austin", 500, "US") == []


def test_transport_error_becomes_search_client_error(sample_global_config) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with _client(sample_global_config, handler) as client:
        with pytest.raises(SearchClientError) as excinfo:
            client.search("key", "gym in Austin", 500, "US")

    assert isinstance(excinfo.value, ApiError)
    assert excinfo.value.status_code is None
    assert "connection refused" in str(excinfo.value)


def test_invalid_json_on_success_is_an_error(sample_global_config) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="not json")

    with _client(sample_global_config, handler) as client:
        with pytest.raises(ApiError):
            client.search("key", "gym in Austin", 500, "US")


def test_malformed_record_is_skipped_and_the_rest_kept(sample_global_config) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "status": "ok",
                "data": [
                    "just a string",
                    {"name": "Bad Rating", "rating": "n/a"},
                    {"name": "Good Gym", "rating": 4.1},
                ],
            },
        )

    with _client(sample_global_config, handler) as client:
        results = client.search("key", "gym in Austin", 500, "US")

    assert [result.name for result in results] == ["Good Gym"]


def test_numeric_ids_and_plain_description_are_accepted(sample_global_config) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "status": "ok",
                "data": [
                    {
                        "name": "Family Bakery",
                        "business_id": 123,
                        "place_id": 456,
                        "phone_number": 15125550100,
                        "description": "Family bakery",
                    },
                    {"name": "Second", "description": ["Fresh bread", None]},
                ],
            },
        )

    with _client(sample_global_config, handler) as client:
        results = client.search("key", "bakery in Austin", 500, "US")

    assert len(results) == 2
    assert results[0].business_id == "123"
    assert results[0].place_id == "456"
    assert results[0].phone_number == "15125550100"
    assert results[0].description == ["Family bakery"]
    assert results[1].description == ["Fresh bread", None]


def test_language_and_host_follow_config(sample_global_config) -> None:
    config = sample_global_config.model_copy(update={"language": "de", "api_host": "example.test"})
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        return httpx.Response(200, json={"status": "ok", "data": []})

    with _client(config, handler) as client:
        client.search("key", "cafe in Berlin", 10, "DE")

    assert seen["url"].host == "example.test"
    assert seen["url"].params["lang"] == "de"
    assert seen["url"].params["limit"] == "10"
