"""
Firecrawl v2 API client.

API Documentation: https://docs.firecrawl.dev/api-reference
Authentication: Bearer token

Endpoints used:
- /map: discover URLs on a site
- /search: web search with markdown scrape of results
- /scrape: single page scrape (markdown, html, links or schema-driven JSON)
- /extract: LLM extraction over one or more URLs

scrape_with_json, scrape_with_links and scrape_listing_urls feed batch
discovery and return a neutral value on any failure. scrape, map, search and
extract raise so the caller can react to rate limits, auth or schema errors.
"""

from typing import Any

import httpx
import structlog

from land_auctions.clients.base_client import BaseAPIClient
from land_auctions.config import ConfigurationError, settings

logger = structlog.get_logger()

SCRAPE_TIMEOUT = 20.0
SCRAPE_JSON_TIMEOUT = 30.0
SCRAPE_LINKS_TIMEOUT = 30.0
LISTING_URLS_TIMEOUT = 45.0  # listing pages are larger
MAP_TIMEOUT = 30.0
SEARCH_TIMEOUT = 30.0
EXTRACT_TIMEOUT = 120.0  # batches URLs and runs an LLM

MAP_LIMIT = 100

AUCTION_FIELDS_PROMPT = (
    "Extract land auction details including title, description, auction date, "
    "address/location, acreage/acres, land type/property type, county, and state. "
    "Return null for missing fields."
)

AUCTION_FIELDS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "description": {"type": "string"},
        "auction_date": {"type": "string"},
        "date": {"type": "string"},
        "address": {"type": "string"},
        "location": {"type": "string"},
        "acreage": {"type": "number"},
        "acres": {"type": "number"},
        "land_type": {"type": "string"},
        "property_type": {"type": "string"},
        "county": {"type": "string"},
        "state": {"type": "string"},
    },
}

LISTING_URLS_PROMPT = (
    "Extract all individual land/property listing URLs from this page. Look for "
    "links to individual property details pages. Return an array of complete URLs."
)

LISTING_URLS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "listing_urls": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["listing_urls"],
}


def short_url(url: str, limit: int = 50) -> str:
    """Truncate a URL for log output."""
    return url if len(url) <= limit else url[:limit] + "..."


def _unwrap(payload: Any, key: str) -> Any:
    """Read ``key`` from ``payload["data"]`` or from the payload itself."""
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    if isinstance(data, dict) and data.get(key) is not None:
        return data[key]
    return payload.get(key)


class FirecrawlClient(BaseAPIClient):
    """Firecrawl scraping/extraction API client."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        max_attempts: int | None = None,
        backoff_min: float = 2.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        key = api_key if api_key is not None else settings.firecrawl_api_key
        if not key:
            raise ConfigurationError("FIRECRAWL_API_KEY is not configured")
        super().__init__(
            base_url=base_url or settings.firecrawl_base_url,
            headers={
                "Authorization": f"Bearer {key}",
                "Content-Type": "application/json",
            },
            timeout=SCRAPE_JSON_TIMEOUT,
            max_attempts=max_attempts if max_attempts is not None else settings.provider_max_attempts,
            backoff_min=backoff_min,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Single-shot operations (errors propagate)
    # ------------------------------------------------------------------

    async def scrape(self, url: str) -> dict[str, str]:
        """Scrape one page and return its main-content markdown and html."""
        payload = await self.post(
            "/scrape",
            json={"url": url, "formats": ["markdown", "html"], "onlyMainContent": True},
            timeout=SCRAPE_TIMEOUT,
        )
        return {
            "markdown": _unwrap(payload, "markdown") or "",
            "html": _unwrap(payload, "html") or "",
        }

    async def map(self, url: str, search: str | None = None) -> dict[str, Any]:
        """Discover URLs on a site. Response carries ``links`` (strings or objects)."""
        body: dict[str, Any] = {"url": url, "limit": MAP_LIMIT, "includeSubdomains": False}
        if search:
            body["search"] = search
        return await self.post("/map", json=body, timeout=MAP_TIMEOUT)

    async def search(self, query: str, limit: int = 10) -> dict[str, Any]:
        """Web search; results are in ``data`` (list, or ``data.web`` in newer responses)."""
        return await self.post(
            "/search",
            json={
                "query": query,
                "limit": limit,
                "sources": [{"type": "web"}],
                "scrapeOptions": {"formats": ["markdown"], "onlyMainContent": True},
            },
            timeout=SEARCH_TIMEOUT,
        )

    async def extract(
        self,
        urls: list[str],
        prompt: str,
        schema: dict[str, Any],
        allow_external_links: bool = False,
    ) -> dict[str, Any]:
        """Run LLM extraction over ``urls`` with a JSON schema."""
        try:
            return await self.post(
                "/extract",
                json={
                    "urls": urls,
                    "prompt": prompt,
                    "schema": schema,
                    "allowExternalLinks": allow_external_links,
                    "enableWebSearch": False,
                    "includeSubdomains": False,
                },
                timeout=EXTRACT_TIMEOUT,
            )
        except httpx.HTTPStatusError as e:
            logger.error(
                "Extract API error",
                status=e.response.status_code,
                body=e.response.text[:500],
                urls=len(urls),
            )
            raise

    async def get_extract_status(self, job_id: str) -> dict[str, Any]:
        """Poll an asynchronous extract job started by ``extract``."""
        return await self.get(f"/extract/{job_id}", timeout=SEARCH_TIMEOUT)

    # ------------------------------------------------------------------
    # Batch-safe operations (errors degrade to a neutral result)
    # ------------------------------------------------------------------

    async def scrape_with_json(self, url: str) -> dict[str, Any] | None:
        """
        Scrape one property page into the auction-field schema.

        Returns ``None`` when extraction is unavailable (network, non-2xx,
        malformed response). Callers must not read ``None`` as "no data".
        """
        try:
            payload = await self.post(
                "/scrape",
                json={
                    "url": url,
                    "formats": [
                        {
                            "type": "json",
                            "prompt": AUCTION_FIELDS_PROMPT,
                            "schema": AUCTION_FIELDS_SCHEMA,
                        }
                    ],
                    "onlyMainContent": True,
                },
                timeout=SCRAPE_JSON_TIMEOUT,
            )
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Scrape JSON error",
                url=short_url(url),
                status=e.response.status_code,
            )
            return None
        except Exception as e:
            logger.warning("Scrape JSON failed", url=short_url(url), error=str(e))
            return None

        extracted = _unwrap(payload, "json")
        if not isinstance(extracted, dict):
            logger.warning("Scrape JSON returned no object", url=short_url(url))
            return None
        return extracted

    async def scrape_with_links(self, url: str) -> dict[str, Any]:
        """Scrape a whole page (not just main content) for its links and markdown."""
        try:
            payload = await self.post(
                "/scrape",
                json={"url": url, "formats": ["links", "markdown"], "onlyMainContent": False},
                timeout=SCRAPE_LINKS_TIMEOUT,
            )
        except Exception as e:
            logger.warning("Scrape links failed", url=short_url(url), error=str(e))
            return {"links": [], "markdown": ""}

        links = _unwrap(payload, "links")
        markdown = _unwrap(payload, "markdown")
        return {
            "links": [link for link in links if isinstance(link, str)] if isinstance(links, list) else [],
            "markdown": markdown if isinstance(markdown, str) else "",
        }

    async def scrape_listing_urls(self, url: str) -> dict[str, list[str]]:
        """Extract individual property URLs from a listing/index page."""
        try:
            payload = await self.post(
                "/scrape",
                json={
                    "url": url,
                    "formats": [
                        {
                            "type": "json",
                            "prompt": LISTING_URLS_PROMPT,
                            "schema": LISTING_URLS_SCHEMA,
                        }
                    ],
                    "onlyMainContent": False,
                },
                timeout=LISTING_URLS_TIMEOUT,
            )
        except Exception as e:
            logger.warning("Scrape listing URLs failed", url=short_url(url), error=str(e))
            return {"listing_urls": []}

        extracted = _unwrap(payload, "json")
        urls = extracted.get("listing_urls") if isinstance(extracted, dict) else None
        if not isinstance(urls, list):
            return {"listing_urls": []}
        return {"listing_urls": [u for u in urls if isinstance(u, str) and u.strip()]}


def map_result_urls(payload: Any) -> list[str]:
    """Flatten a /map response into URL strings."""
    if not isinstance(payload, dict):
        return []
    items = payload.get("links") or payload.get("urls") or []
    urls = []
    for item in items:
        if isinstance(item, str):
            urls.append(item)
        elif isinstance(item, dict) and item.get("url"):
            urls.append(item["url"])
    return urls


def search_result_urls(payload: Any) -> list[str]:
    """Flatten a /search response into URL strings."""
    if not isinstance(payload, dict):
        return []
    data = payload.get("data")
    if isinstance(data, dict):
        data = data.get("web") or []
    if not isinstance(data, list):
        return []
    return [r["url"] for r in data if isinstance(r, dict) and r.get("url")]
