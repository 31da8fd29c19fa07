"""Tests for the content provider: local catalog, API fetch and fallback."""

import json

import httpx
import pytest

from travelguide.services.content_provider import ContentProvider, parse_pois

LOCAL = [
    {"id": "local-1", "name": "Local One", "latitude": 59.33, "longitude": 18.07, "radius": 150, "fact": "Local fact."},
]


@pytest.fixture
def catalog_path(tmp_path):
    path = tmp_path / "pois.json"
    path.write_text(json.dumps(LOCAL), encoding="utf-8")
    return str(path)


def _provider(catalog_path, handler) -> ContentProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ContentProvider(api_url="https://pois.example.com/", catalog_path=catalog_path, client=client)


class TestParsePois:
    def test_defaults_are_applied(self) -> None:
        pois = parse_pois([{"id": 7, "title": "Old Town", "latitude": "59.32", "longitude": 18.07}], default_category="wikipedia")
        assert len(pois) == 1
        poi = pois[0]
        assert poi.id == "7"
        assert poi.name == "Old Town"
        assert poi.latitude == 59.32
        assert poi.radius == 200
        assert poi.fact == "Old Town is an interesting location."
        assert poi.category == "wikipedia"

    def test_zero_radius_gets_default(self) -> None:
        pois = parse_pois([{"id": "z", "name": "Zero", "latitude": 59.0, "longitude": 18.0, "radius": 0}])
        assert [p.radius for p in pois] == [200]

    @pytest.mark.parametrize(
        "raw",
        [
            {"id": "x", "name": "n", "latitude": None, "longitude": 18.0},
            {"id": "x", "name": "n", "latitude": "abc", "longitude": 18.0},
            {"id": "x", "name": "n", "latitude": float("nan"), "longitude": 18.0},
            {"id": "x", "name": "n", "latitude": 91.0, "longitude": 18.0},
            {"id": "x", "name": "n", "latitude": 59.0, "longitude": 181.0},
            {"id": "x", "name": "n", "latitude": 59.0, "longitude": 18.0, "radius": -5},
            {"id": "x", "name": "n", "latitude": 59.0, "longitude": 18.0, "radius": float("inf")},
            {"name": "no id", "latitude": 59.0, "longitude": 18.0},
            {"id": "x", "latitude": 59.0, "longitude": 18.0},
            "not a dict",
        ],
    )
    def test_malformed_entries_are_dropped(self, raw) -> None:
        assert parse_pois([raw]) == []


class TestLocalCatalog:
    def test_get_all_pois_loads_file(self, catalog_path) -> None:
        provider = ContentProvider(catalog_path=catalog_path)
        pois = provider.get_all_pois()
        assert [p.id for p in pois] == ["local-1"]
        assert provider.get_poi_by_id("local-1").name == "Local One"
        assert provider.get_poi_by_id("missing") is None

    def test_object_with_pois_key_is_accepted(self, tmp_path) -> None:
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({"pois": LOCAL}), encoding="utf-8")
        assert len(ContentProvider(catalog_path=str(path)).get_all_pois()) == 1

    def test_missing_file_gives_empty_catalog(self, tmp_path) -> None:
        provider = ContentProvider(catalog_path=str(tmp_path / "nope.json"))
        assert provider.get_all_pois() == []

    def test_invalid_json_gives_empty_catalog(self, tmp_path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        assert ContentProvider(catalog_path=str(path)).get_all_pois() == []

    def test_bundled_catalog_loads(self) -> None:
        pois = ContentProvider().get_all_pois()
        assert pois
        assert all(p.radius > 0 for p in pois)


class TestFetchFromApi:
    @pytest.mark.asyncio
    async def test_fetch_pois_from_api(self, catalog_path) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = request.url
            return httpx.Response(200, json={"pois": [
                {"id": "api-1", "name": "Api One", "latitude": 59.33, "longitude": 18.07, "fact": "Api fact.", "category": "museum"},
            ]})

        provider = _provider(catalog_path, handler)
        pois = await provider.fetch_pois_from_api(59.33, 18.07, radius=1000)

        assert seen["url"].path == "/api/pois"
        assert seen["url"].params["lat"] == "59.33"
        assert seen["url"].params["radius"] == "1000"
        assert [(p.id, p.radius, p.category) for p in pois] == [("api-1", 200, "museum")]
        assert provider.get_poi_by_id("api-1") is not None

    @pytest.mark.asyncio
    async def test_http_error_falls_back_to_local(self, catalog_path) -> None:
        provider = _provider(catalog_path, lambda request: httpx.Response(500, text="down"))
        pois = await provider.fetch_pois_from_api(59.33, 18.07)
        assert [p.id for p in pois] == ["local-1"]

    @pytest.mark.asyncio
    async def test_network_error_falls_back_to_local(self, catalog_path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        provider = _provider(catalog_path, handler)
        assert [p.id for p in await provider.fetch_pois_from_api(59.33, 18.07)] == ["local-1"]

    @pytest.mark.asyncio
    async def test_fetch_all_pois_filters_invalid(self, catalog_path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/all-pois"
            return httpx.Response(200, json={"success": True, "pois": [
                {"id": "w-1", "title": "Wiki One", "latitude": 59.3, "longitude": 18.0},
                {"id": "w-2", "name": "Broken", "latitude": None, "longitude": 18.0},
            ]})

        pois = await _provider(catalog_path, handler).fetch_all_pois()
        assert [(p.id, p.name, p.category) for p in pois] == [("w-1", "Wiki One", "wikipedia")]

    @pytest.mark.asyncio
    async def test_fetch_all_pois_unexpected_format_falls_back(self, catalog_path) -> None:
        provider = _provider(catalog_path, lambda request: httpx.Response(200, json={"success": False}))
        assert [p.id for p in await provider.fetch_all_pois()] == ["local-1"]

    @pytest.mark.asyncio
    async def test_non_json_body_falls_back(self, catalog_path) -> None:
        provider = _provider(catalog_path, lambda request: httpx.Response(200, text="<html>"))
        assert [p.id for p in await provider.fetch_all_pois()] == ["local-1"]
