"""Test configuration and fixtures."""

from types import SimpleNamespace

import httpx
import pytest

from land_auctions.clients.firecrawl import FirecrawlClient
from land_auctions.services.auction_store import MemoryAuctionStore
from land_auctions.services.geocoding_service import GeocodingService
from land_auctions.utils.ttl_cache import TTLCache


class FakeGeocoder:
    """Stands in for geopy's Nominatim: answers from a dict, records queries."""

    def __init__(self, answers: dict[str, tuple[float, float]] | None = None, error: Exception | None = None):
        self.answers = answers or {}
        self.error = error
        self.queries: list[str] = []

    def geocode(self, query, exactly_one=True, country_codes=None):
        self.queries.append(query)
        if self.error:
            raise self.error
        coords = self.answers.get(query)
        if coords is None:
            return None
        return SimpleNamespace(latitude=coords[0], longitude=coords[1], address=query)


class FakeExtractionClient:
    """
    In-memory stand-in for FirecrawlClient used by pipeline tests.

    ``pages`` maps URL -> scrape_with_json result (None means provider failure).
    ``link_pages`` maps URL -> number of outbound links; ``listing_pages``
    maps URL -> listing URLs returned by scrape_listing_urls.
    """

    def __init__(
        self,
        map_links=None,
        search_urls=None,
        pages=None,
        link_pages=None,
        listing_pages=None,
        map_error: Exception | None = None,
        search_error: Exception | None = None,
        extract_responses=None,
    ):
        self.map_links = map_links or []
        self.search_urls = search_urls or []
        self.pages = pages or {}
        self.link_pages = link_pages or {}
        self.listing_pages = listing_pages or {}
        self.map_error = map_error
        self.search_error = search_error
        self.extract_responses = list(extract_responses or [])
        self.calls: list[tuple[str, str]] = []

    async def map(self, url, search=None):
        self.calls.append(("map", url))
        if self.map_error:
            raise self.map_error
        return {"success": True, "links": self.map_links}

    async def search(self, query, limit=10):
        self.calls.append(("search", query))
        if self.search_error:
            raise self.search_error
        return {"success": True, "data": [{"url": u} for u in self.search_urls]}

    async def scrape_with_json(self, url):
        self.calls.append(("scrape_with_json", url))
        return self.pages.get(url)

    async def scrape_with_links(self, url):
        self.calls.append(("scrape_with_links", url))
        count = self.link_pages.get(url, 0)
        return {"links": [f"{url}/link-{i}" for i in range(count)], "markdown": ""}

    async def scrape_listing_urls(self, url):
        self.calls.append(("scrape_listing_urls", url))
        return {"listing_urls": list(self.listing_pages.get(url, []))}

    async def extract(self, urls, prompt, schema, allow_external_links=False):
        self.calls.append(("extract", urls[0]))
        response = self.extract_responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def get_extract_status(self, job_id):
        self.calls.append(("get_extract_status", job_id))
        response = self.extract_responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def called(self, name: str) -> list[str]:
        return [arg for op, arg in self.calls if op == name]


@pytest.fixture
def memory_store():
    return MemoryAuctionStore()


@pytest.fixture
def fake_geocoder():
    return FakeGeocoder()


@pytest.fixture
def geocoding_service(fake_geocoder):
    return GeocodingService(geocoder=fake_geocoder, cache=TTLCache(3600), delay_seconds=0)


@pytest.fixture
def make_firecrawl():
    """Build a FirecrawlClient whose HTTP traffic goes to ``handler``."""
    def _make(handler, max_attempts=1):
        client = FirecrawlClient(
            api_key="test-key",
            base_url="https://firecrawl.test/v2",
            max_attempts=max_attempts,
            backoff_min=0,
            transport=httpx.MockTransport(handler),
        )
        return client

    return _make


@pytest.fixture
def fake_extraction_client():
    """The FakeExtractionClient class, for tests to configure per case."""
    return FakeExtractionClient
