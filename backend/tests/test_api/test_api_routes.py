"""API route tests (in-memory store, no lifespan)."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from land_auctions.api import deps
from land_auctions.api.v1 import discovery
from land_auctions.main import app
from land_auctions.services.detail_enricher import AuctionDetailEnricher
from land_auctions.services.field_boundary_service import FieldBoundaryService
from land_auctions.utils.ttl_cache import TTLCache


@pytest.fixture
def extraction_client(fake_extraction_client):
    return fake_extraction_client()


@pytest.fixture
def client(memory_store, extraction_client):
    async def detail_enricher():
        yield AuctionDetailEnricher(extraction_client, memory_store, poll_interval=0)

    app.dependency_overrides[deps.get_auction_store] = lambda: memory_store
    app.dependency_overrides[deps.get_detail_enricher] = detail_enricher
    app.dependency_overrides[deps.get_field_boundary_service] = lambda: FieldBoundaryService(TTLCache(60))
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seeded(memory_store):
    async def seed():
        story = await memory_store.create_auction(
            {"url": "https://a.com/lot/1", "title": "Farm", "acreage": 80.0, "county": "Story", "state": "Iowa"}
        )
        await memory_store.update_auction_enrichment(
            story.id, {"enrichment_status": "completed", "latitude": 42.03, "longitude": -93.46}
        )
        await memory_store.create_auction({"url": "https://a.com/lot/2", "title": "Pasture", "county": "Boone"})
        await memory_store.create_auction({"url": "https://b.com/lot/3", "title": "Timber", "state": "Missouri"})

    asyncio.run(seed())
    return memory_store


class TestAuctionRoutes:
    def test_list(self, client, seeded):
        response = client.get("/api/v1/auctions")
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 3
        assert body["pages"] == 1
        assert body["items"][0]["title"] == "80 Acres Story County"

    def test_list_filters_and_pagination(self, client, seeded):
        assert client.get("/api/v1/auctions", params={"county": "story"}).json()["total"] == 1
        assert client.get("/api/v1/auctions", params={"geocoded": True}).json()["total"] == 1
        assert client.get("/api/v1/auctions", params={"enrichment_status": "pending"}).json()["total"] == 2

        page = client.get("/api/v1/auctions", params={"per_page": 2, "page": 2}).json()
        assert page["pages"] == 2
        assert len(page["items"]) == 1

    def test_invalid_status_filter(self, client, seeded):
        assert client.get("/api/v1/auctions", params={"enrichment_status": "processing"}).status_code == 422

    def test_detail(self, client, seeded):
        body = client.get("/api/v1/auctions/1").json()
        assert body["url"] == "https://a.com/lot/1"
        assert body["coordinates"] == {"latitude": 42.03, "longitude": -93.46}

    def test_detail_not_found(self, client, seeded):
        assert client.get("/api/v1/auctions/999").status_code == 404

    def test_stats(self, client, seeded):
        body = client.get("/api/v1/auctions/enrichment/stats").json()
        assert body["total"] == 3
        assert body["completed"] == 1
        assert body["pending_ids"] == [2, 3]

    def test_enrich(self, client, seeded, extraction_client):
        extraction_client.extract_responses = [
            {"data": {"enriched_title": "Boone County Pasture", "drainage": "Tiled"}}
        ]
        response = client.post("/api/v1/auctions/2/enrich")
        assert response.status_code == 200
        assert response.json()["enrichment"]["status"] == "completed"
        assert extraction_client.called("extract") == ["https://a.com/lot/2"]

    def test_enrich_failure_is_recorded(self, client, seeded, extraction_client):
        extraction_client.extract_responses = [{"success": False, "status": "failed", "error": "blocked"}]
        response = client.post("/api/v1/auctions/2/enrich")
        assert response.status_code == 200
        enrichment = response.json()["enrichment"]
        assert enrichment["status"] == "failed"
        assert "blocked" in enrichment["error"]

    def test_enrich_not_found(self, client, seeded):
        assert client.post("/api/v1/auctions/999/enrich").status_code == 404


class TestDiscoveryRoutes:
    def test_sources(self, client):
        sources = client.get("/api/v1/discovery/sources").json()
        assert len(sources) == 24
        assert {"id", "display_name", "seed_url"} <= set(sources[0])

    def test_create_run(self, client, monkeypatch):
        dispatched = []

        def fake_dispatch(source_ids=None, urls=None, force=False):
            dispatched.append((source_ids, urls, force))
            return "run-1"

        monkeypatch.setattr(discovery, "dispatch_discovery_run", fake_dispatch)
        response = client.post("/api/v1/discovery/runs", json={"source_ids": ["steffes-group"], "force": True})
        assert response.status_code == 202
        assert response.json()["id"] == "run-1"
        assert dispatched == [(["steffes-group"], None, True)]

    def test_create_run_unknown_source(self, client):
        response = client.post("/api/v1/discovery/runs", json={"source_ids": ["nope"]})
        assert response.status_code == 404

    def test_run_not_found(self, client):
        assert client.get("/api/v1/discovery/runs/missing").status_code == 404


class TestFieldRoutes:
    def test_search_unavailable(self, client):
        params = {"min_lat": 41.9, "max_lat": 42.1, "min_lon": -93.7, "max_lon": -93.5}
        body = client.get("/api/v1/fields/search", params=params).json()
        assert body["available"] is False
        assert body["fields"] == []

    def test_invalid_bbox(self, client):
        params = {"min_lat": 42.1, "max_lat": 41.9, "min_lon": -93.7, "max_lon": -93.5}
        assert client.get("/api/v1/fields/search", params=params).status_code == 400

    def test_field_not_found(self, client):
        assert client.get("/api/v1/fields/abc").status_code == 404
