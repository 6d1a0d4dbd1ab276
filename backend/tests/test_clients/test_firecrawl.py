"""Tests for the Firecrawl extraction client (HTTP mocked with httpx.MockTransport)."""

import asyncio
import json

import httpx
import pytest

from land_auctions.clients.firecrawl import FirecrawlClient, map_result_urls, search_result_urls
from land_auctions.config import ConfigurationError


def run(client, coro):
    async def _run():
        try:
            return await coro
        finally:
            await client.close()

    return asyncio.run(_run())


class TestConstruction:
    def test_missing_api_key_raises(self):
        with pytest.raises(ConfigurationError):
            FirecrawlClient(api_key="")

    def test_bearer_token_sent(self, make_firecrawl):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers["authorization"]
            seen["path"] = request.url.path
            return httpx.Response(200, json={"data": {"json": {"title": "80 Acres"}}})

        client = make_firecrawl(handler)
        run(client, client.scrape_with_json("https://example.com/lot/1"))
        assert seen["auth"] == "Bearer test-key"
        assert seen["path"] == "/v2/scrape"


class TestScrapeWithJson:
    def test_unwraps_data_json(self, make_firecrawl):
        def handler(request):
            body = json.loads(request.content)
            assert body["formats"][0]["type"] == "json"
            assert "acreage" in body["formats"][0]["schema"]["properties"]
            return httpx.Response(200, json={"success": True, "data": {"json": {"title": "Farm", "acres": 80}}})

        client = make_firecrawl(handler)
        assert run(client, client.scrape_with_json("https://example.com/a")) == {"title": "Farm", "acres": 80}

    def test_unwraps_top_level_json(self, make_firecrawl):
        client = make_firecrawl(lambda r: httpx.Response(200, json={"json": {"title": "Farm"}}))
        assert run(client, client.scrape_with_json("https://example.com/a")) == {"title": "Farm"}

    def test_provider_500_returns_none(self, make_firecrawl):
        client = make_firecrawl(lambda r: httpx.Response(500, json={"error": "boom"}))
        assert run(client, client.scrape_with_json("https://example.com/a")) is None

    def test_timeout_returns_none(self, make_firecrawl):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = make_firecrawl(handler)
        assert run(client, client.scrape_with_json("https://example.com/a")) is None

    def test_non_object_result_returns_none(self, make_firecrawl):
        client = make_firecrawl(lambda r: httpx.Response(200, json={"data": {"json": ["not", "a", "dict"]}}))
        assert run(client, client.scrape_with_json("https://example.com/a")) is None


class TestRetryPolicy:
    def test_transient_error_retried(self, make_firecrawl):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(503)
            return httpx.Response(200, json={"data": {"json": {"title": "Farm"}}})

        client = make_firecrawl(handler, max_attempts=2)
        assert run(client, client.scrape_with_json("https://example.com/a")) == {"title": "Farm"}
        assert len(calls) == 2

    def test_rate_limit_retried(self, make_firecrawl):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(429)
            return httpx.Response(200, json={"links": ["https://example.com/a"]})

        client = make_firecrawl(handler, max_attempts=2)
        run(client, client.map("https://example.com"))
        assert len(calls) == 2

    def test_client_error_not_retried(self, make_firecrawl):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(400, json={"error": "bad schema"})

        client = make_firecrawl(handler, max_attempts=3)
        assert run(client, client.scrape_with_json("https://example.com/a")) is None
        assert len(calls) == 1

    def test_attempts_are_bounded(self, make_firecrawl):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(502)

        client = make_firecrawl(handler, max_attempts=2)
        with pytest.raises(httpx.HTTPStatusError):
            run(client, client.map("https://example.com"))
        assert len(calls) == 2


class TestBatchSafeOperations:
    def test_scrape_with_links_filters_non_strings(self, make_firecrawl):
        payload = {"data": {"links": ["https://a.com/1", {"url": "x"}, None], "markdown": "# Lots"}}
        client = make_firecrawl(lambda r: httpx.Response(200, json=payload))
        result = run(client, client.scrape_with_links("https://a.com"))
        assert result == {"links": ["https://a.com/1"], "markdown": "# Lots"}

    def test_scrape_with_links_failure_is_empty(self, make_firecrawl):
        client = make_firecrawl(lambda r: httpx.Response(500))
        assert run(client, client.scrape_with_links("https://a.com")) == {"links": [], "markdown": ""}

    def test_scrape_listing_urls(self, make_firecrawl):
        def handler(request):
            body = json.loads(request.content)
            assert body["formats"][0]["schema"]["required"] == ["listing_urls"]
            return httpx.Response(
                200, json={"data": {"json": {"listing_urls": ["https://a.com/lot/1", "", 7]}}}
            )

        client = make_firecrawl(handler)
        assert run(client, client.scrape_listing_urls("https://a.com/auctions")) == {
            "listing_urls": ["https://a.com/lot/1"]
        }

    def test_scrape_listing_urls_failure_is_empty(self, make_firecrawl):
        client = make_firecrawl(lambda r: httpx.Response(404))
        assert run(client, client.scrape_listing_urls("https://a.com/auctions")) == {"listing_urls": []}


class TestSingleShotOperations:
    def test_map_sends_search_and_limit(self, make_firecrawl):
        seen = {}

        def handler(request):
            seen.update(json.loads(request.content))
            return httpx.Response(200, json={"links": [{"url": "https://a.com/lot/1"}, "https://a.com/lot/2"]})

        client = make_firecrawl(handler)
        payload = run(client, client.map("https://a.com", search="auction"))
        assert seen["search"] == "auction"
        assert seen["limit"] == 100
        assert map_result_urls(payload) == ["https://a.com/lot/1", "https://a.com/lot/2"]

    def test_map_error_propagates(self, make_firecrawl):
        client = make_firecrawl(lambda r: httpx.Response(401))
        with pytest.raises(httpx.HTTPStatusError):
            run(client, client.map("https://a.com"))

    def test_scrape_timeout_propagates(self, make_firecrawl):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        client = make_firecrawl(handler)
        with pytest.raises(httpx.TimeoutException):
            run(client, client.scrape("https://a.com"))

    def test_scrape_returns_markdown_and_html(self, make_firecrawl):
        payload = {"data": {"markdown": "# Farm", "html": "<h1>Farm</h1>"}}
        client = make_firecrawl(lambda r: httpx.Response(200, json=payload))
        assert run(client, client.scrape("https://a.com")) == {"markdown": "# Farm", "html": "<h1>Farm</h1>"}

    def test_extract_error_propagates(self, make_firecrawl):
        client = make_firecrawl(lambda r: httpx.Response(422, text="invalid schema"))
        with pytest.raises(httpx.HTTPStatusError):
            run(client, client.extract(["https://a.com/lot/1"], "prompt", {"type": "object"}))


class TestResultParsing:
    def test_search_result_list(self):
        payload = {"data": [{"url": "https://a.com/1"}, {"title": "no url"}]}
        assert search_result_urls(payload) == ["https://a.com/1"]

    def test_search_result_web_bucket(self):
        payload = {"data": {"web": [{"url": "https://a.com/1"}]}}
        assert search_result_urls(payload) == ["https://a.com/1"]

    def test_map_result_urls_key(self):
        assert map_result_urls({"urls": ["https://a.com/1"]}) == ["https://a.com/1"]

    def test_malformed_payloads(self):
        assert map_result_urls(None) == []
        assert search_result_urls({"data": "oops"}) == []
