"""
Detail enrichment through the provider's LLM ``/extract`` endpoint.

Pulls the long tail of listing details (soil, improvements, utilities,
CRP, rights, possession, highlights, legal description) plus standardized
title/date/location fields for one auction URL.
"""

import asyncio
from typing import Any

import httpx
import structlog

from land_auctions.clients.firecrawl import FirecrawlClient, short_url
from land_auctions.models.auction import Auction
from land_auctions.services.auction_store import AuctionNotFoundError, AuctionStore
from land_auctions.services.enrichment import EnrichmentTracker
from land_auctions.utils.date_helpers import parse_auction_date
from land_auctions.utils.field_reconciliation import is_empty

logger = structlog.get_logger()

DETAIL_PROMPT = (
    "You are an agricultural land auction analyst. Extract every available detail "
    "from this auction listing. enriched_title must follow the format "
    "'{Acreage} Acres {County} County' (append ', {State}' outside Iowa, or use "
    "'{County} County Land Auction' without acreage). enriched_auction_date is the "
    "auction, sale or bid deadline date in YYYY-MM-DD. Distinguish where the auction "
    "is held (enriched_auction_location) from where the land is "
    "(enriched_property_location). Copy legal descriptions exactly as written. "
    "key_highlights lists 3-10 of the most important selling points. Use null when "
    "information is not found."
)

_STRING = {"type": ["string", "null"]}

DETAIL_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "enriched_title": _STRING,
        "enriched_description": _STRING,
        "enriched_auction_house": _STRING,
        "enriched_auction_date": _STRING,
        "enriched_auction_location": _STRING,
        "enriched_property_location": _STRING,
        "legal_description": _STRING,
        "soil_mentions": _STRING,
        "crop_history": _STRING,
        "improvements": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {"type": {"type": "string"}, "description": {"type": "string"}},
            },
        },
        "utilities": {
            "type": ["object", "null"],
            "properties": {
                "electric": {"type": "boolean"},
                "water": {"type": "boolean"},
                "gas": {"type": "boolean"},
                "description": {"type": "string"},
            },
        },
        "road_access": _STRING,
        "drainage": _STRING,
        "tillable_percent": {"type": ["number", "null"]},
        "crp_details": _STRING,
        "water_rights": _STRING,
        "mineral_rights": _STRING,
        "zoning_info": _STRING,
        "tax_info": _STRING,
        "seller_motivation": _STRING,
        "financing_options": _STRING,
        "possession": _STRING,
        "key_highlights": {"type": "array", "items": {"type": "string"}},
    },
}

_TEXT_FIELDS = (
    "enriched_title",
    "enriched_description",
    "enriched_auction_house",
    "enriched_auction_location",
    "enriched_property_location",
    "legal_description",
    "soil_mentions",
    "crop_history",
    "road_access",
    "drainage",
    "crp_details",
    "water_rights",
    "mineral_rights",
    "zoning_info",
    "tax_info",
    "seller_motivation",
    "financing_options",
    "possession",
)


class ExtractionError(RuntimeError):
    """The extract job finished without usable data."""


def build_detail_patch(data: dict[str, Any]) -> dict[str, Any]:
    """Map an extract payload onto Auction columns, dropping empty values."""
    patch: dict[str, Any] = {}
    for name in _TEXT_FIELDS:
        value = data.get(name)
        if isinstance(value, str) and value.strip():
            patch[name] = value.strip()

    auction_date = data.get("enriched_auction_date")
    if isinstance(auction_date, str):
        parsed = parse_auction_date(auction_date)
        if parsed:
            patch["enriched_auction_date"] = parsed

    tillable = data.get("tillable_percent")
    if isinstance(tillable, (int, float)) and not isinstance(tillable, bool) and 0 <= tillable <= 100:
        patch["tillable_percent"] = float(tillable)

    improvements = data.get("improvements")
    if isinstance(improvements, list) and improvements:
        patch["improvements"] = [i for i in improvements if isinstance(i, dict)]

    utilities = data.get("utilities")
    if isinstance(utilities, dict) and utilities:
        patch["utilities"] = utilities

    highlights = data.get("key_highlights")
    if isinstance(highlights, list):
        cleaned = [h.strip() for h in highlights if isinstance(h, str) and h.strip()]
        if cleaned:
            patch["key_highlights"] = cleaned

    return patch


class AuctionDetailEnricher:
    def __init__(
        self,
        client: FirecrawlClient,
        store: AuctionStore,
        tracker: EnrichmentTracker | None = None,
        poll_interval: float = 2.0,
        max_polls: int = 30,
    ):
        self.client = client
        self.store = store
        self.tracker = tracker or EnrichmentTracker(store)
        self.poll_interval = poll_interval
        self.max_polls = max_polls

    async def extract_details(self, url: str) -> dict[str, Any]:
        """
        Run ``/extract`` for one URL and return the Auction patch.

        Provider errors propagate; an extract job that fails or times out
        raises ``ExtractionError``.
        """
        response = await self.client.extract([url], DETAIL_PROMPT, DETAIL_SCHEMA)

        polls = 0
        while isinstance(response, dict) and not isinstance(response.get("data"), dict):
            job_id = response.get("id")
            status = response.get("status")
            if status == "failed" or not job_id:
                raise ExtractionError(response.get("error") or "extract returned no data")
            if polls >= self.max_polls:
                raise ExtractionError(f"extract job {job_id} did not finish")
            polls += 1
            await asyncio.sleep(self.poll_interval)
            response = await self.client.get_extract_status(job_id)

        data = response.get("data") if isinstance(response, dict) else None
        if not isinstance(data, dict):
            raise ExtractionError("extract returned no data")
        return build_detail_patch(data)

    async def enrich_auction(self, auction_id: int, force: bool = False) -> Auction:
        """Enrich a stored auction; failures are recorded, never raised."""
        auction = await self.store.get_auction_by_id(auction_id)
        if auction is None:
            raise AuctionNotFoundError(f"Auction {auction_id} not found")
        if not self.tracker.should_enrich(auction, force):
            return auction

        try:
            patch = await self.extract_details(auction.url)
        except (httpx.HTTPError, ExtractionError) as e:
            logger.warning("Detail extraction failed", url=short_url(auction.url), error=str(e))
            return await self.tracker.record_failure(auction, f"detail extraction failed: {e}", force)

        if is_empty(patch.get("enriched_title")) and is_empty(auction.enriched_title):
            return await self.tracker.record_failure(auction, "no usable fields extracted", force)

        return await self.tracker.record_success(auction, patch, force)
