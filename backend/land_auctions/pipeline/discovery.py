"""
Auction discovery pipeline.

Walks one auction-house seed URL through:
- SEEDED: map the site (search="auction"), fall back to web search, then to
  the seed itself
- MAPPED: probe index-looking pages and expand real listing pages into
  property URLs
- CANDIDATES_FOUND: dedupe by normalized URL, Iowa first, cap per source
- EXTRACTED: schema extraction per property URL, bounded concurrency
- DONE

EMPTY is set as soon as a stage yields nothing.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from urllib.parse import urljoin, urlsplit

import httpx
import structlog

from land_auctions.clients.firecrawl import FirecrawlClient, map_result_urls, search_result_urls, short_url
from land_auctions.config import settings
from land_auctions.models.auction import Auction
from land_auctions.seed.auction_sources import AuctionSource, enabled_sources, source_for_url
from land_auctions.services.auction_display import generate_standardized_title
from land_auctions.services.auction_store import AuctionStore
from land_auctions.services.county_centroids import normalize_county_name
from land_auctions.services.detail_enricher import AuctionDetailEnricher, ExtractionError
from land_auctions.services.enrichment import EnrichmentTracker
from land_auctions.services.geocoding_service import LOCATION_FIELDS, GeocodingService, get_geocoding_service
from land_auctions.utils.date_helpers import extract_date_from_text, parse_auction_date
from land_auctions.utils.field_reconciliation import is_empty, parse_acreage, reconcile_fields
from land_auctions.utils.urls import domain_of, is_iowa_url, looks_like_listing_page, normalize_url

logger = structlog.get_logger()

DEFAULT_STATE = "Iowa"
UNKNOWN_SOURCE = "Unknown Source"


class DiscoveryStage(str, Enum):
    SEEDED = "seeded"
    MAPPED = "mapped"
    CANDIDATES_FOUND = "candidates_found"
    EXTRACTED = "extracted"
    DONE = "done"
    EMPTY = "empty"


class UrlOutcome(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    ALREADY_ENRICHED = "already_enriched"
    ERROR = "error"


@dataclass
class DiscoveryResult:
    """Result summary of one discovery run."""

    source_name: str
    seed_url: str
    stage: DiscoveryStage = DiscoveryStage.SEEDED
    discovered_urls: int = 0
    iowa_urls: int = 0
    processed_urls: int = 0
    completed: int = 0
    failed: int = 0
    errored: int = 0
    already_enriched: int = 0
    skipped_urls: list[str] = field(default_factory=list)
    outcomes: dict[str, str] = field(default_factory=dict)
    auction_ids: list[int] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None

    def record(self, url: str, outcome: UrlOutcome) -> None:
        self.outcomes[normalize_url(url)] = outcome.value
        if outcome == UrlOutcome.COMPLETED:
            self.completed += 1
        elif outcome == UrlOutcome.ALREADY_ENRICHED:
            self.already_enriched += 1
        elif outcome == UrlOutcome.ERROR:
            self.errored += 1
        else:
            self.failed += 1

    def finish(self, stage: DiscoveryStage) -> "DiscoveryResult":
        self.stage = stage
        self.completed_at = datetime.now(timezone.utc)
        return self

    def as_dict(self) -> dict[str, Any]:
        return {
            "source_name": self.source_name,
            "seed_url": self.seed_url,
            "stage": self.stage.value,
            "discovered_urls": self.discovered_urls,
            "iowa_urls": self.iowa_urls,
            "processed_urls": self.processed_urls,
            "completed": self.completed,
            "failed": self.failed,
            "errored": self.errored,
            "already_enriched": self.already_enriched,
            "skipped_urls": list(self.skipped_urls),
            "auction_ids": list(self.auction_ids),
            "errors": list(self.errors),
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


def _is_http(url: str) -> bool:
    return urlsplit(url).scheme in ("http", "https")


class DiscoveryPipeline:
    def __init__(
        self,
        client: FirecrawlClient,
        store: AuctionStore,
        geocoder: GeocodingService | None = None,
        tracker: EnrichmentTracker | None = None,
        detail_enricher: AuctionDetailEnricher | None = None,
        concurrency: int | None = None,
        max_urls: int | None = None,
        listing_link_threshold: int | None = None,
        drain_timeout: float | None = None,
    ):
        self.client = client
        self.store = store
        self.geocoder = geocoder if geocoder is not None else get_geocoding_service()
        self.tracker = tracker or EnrichmentTracker(store)
        self.detail_enricher = detail_enricher
        self.concurrency = concurrency or settings.discovery_concurrency
        self.max_urls = max_urls or settings.max_urls_per_source
        self.listing_link_threshold = listing_link_threshold or settings.listing_link_threshold
        self.drain_timeout = settings.discovery_drain_timeout if drain_timeout is None else drain_timeout

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def run(self, seed_url: str, source_name: str | None = None, force: bool = False) -> DiscoveryResult:
        """Discover and extract every property listing reachable from ``seed_url``."""
        source_name = source_name or domain_of(seed_url) or UNKNOWN_SOURCE
        result = DiscoveryResult(source_name=source_name, seed_url=seed_url)
        semaphore = asyncio.Semaphore(self.concurrency)
        logger.info("Starting discovery", source=source_name, seed=short_url(seed_url))

        candidates = await self._resolve_seed(seed_url, result)
        result.stage = DiscoveryStage.MAPPED

        property_urls = await self._expand_listings(seed_url, candidates, semaphore)
        result.discovered_urls = len(property_urls)
        if not property_urls:
            logger.info("No property URLs found", source=source_name)
            return result.finish(DiscoveryStage.EMPTY)
        result.stage = DiscoveryStage.CANDIDATES_FOUND

        selected = self._prioritize(property_urls, result)
        logger.info(
            "Candidates selected",
            source=source_name,
            discovered=result.discovered_urls,
            iowa=result.iowa_urls,
            processing=len(selected),
            skipped=len(result.skipped_urls),
        )

        await self._process_all(selected, source_name, force, result, semaphore)
        result.stage = DiscoveryStage.EXTRACTED

        logger.info(
            "Discovery complete",
            source=source_name,
            completed=result.completed,
            failed=result.failed,
            errored=result.errored,
            already_enriched=result.already_enriched,
        )
        if result.completed == 0 and result.already_enriched == 0:
            return result.finish(DiscoveryStage.EMPTY)
        return result.finish(DiscoveryStage.DONE)

    async def ingest_url(self, url: str, source_name: str | None = None, force: bool = False) -> DiscoveryResult:
        """Extract a single known property URL (no seed resolution or expansion)."""
        url = normalize_url(url)
        if not source_name:
            source = source_for_url(url)
            source_name = source.display_name if source else UNKNOWN_SOURCE

        result = DiscoveryResult(source_name=source_name, seed_url=url, discovered_urls=1)
        result.stage = DiscoveryStage.CANDIDATES_FOUND
        await self._process_all([url], source_name, force, result, asyncio.Semaphore(1))
        if result.completed == 0 and result.already_enriched == 0:
            return result.finish(DiscoveryStage.EMPTY)
        return result.finish(DiscoveryStage.DONE)

    async def run_sources(
        self, sources: list[AuctionSource] | None = None, force: bool = False
    ) -> list[DiscoveryResult]:
        """Run each source in turn; a failing source never stops the others."""
        sources = enabled_sources() if sources is None else sources
        results = []
        for source in sources:
            try:
                results.append(await self.run(source.seed_url, source.display_name, force=force))
            except Exception as e:
                logger.error("Source discovery failed", source=source.display_name, error=str(e))
                failed = DiscoveryResult(source_name=source.display_name, seed_url=source.seed_url)
                failed.errors.append(f"{type(e).__name__}: {e}")
                results.append(failed.finish(DiscoveryStage.EMPTY))

        logger.info(
            "All sources complete",
            sources=len(results),
            completed=sum(r.completed for r in results),
            failed=sum(r.failed for r in results),
            errored=sum(r.errored for r in results),
        )
        return results

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _resolve_seed(self, seed_url: str, result: DiscoveryResult) -> list[str]:
        """Map, then search, then the seed itself."""
        urls: list[str] = []
        try:
            urls = map_result_urls(await self.client.map(seed_url, search="auction"))
            logger.info("Map complete", source=result.source_name, urls=len(urls))
        except httpx.HTTPError as e:
            logger.warning("Map failed", source=result.source_name, error=str(e))
            result.errors.append(f"map: {e}")

        if not urls:
            query = domain_of(seed_url)
            try:
                urls = search_result_urls(await self.client.search(query))
                logger.info("Search complete", source=result.source_name, query=query, urls=len(urls))
            except httpx.HTTPError as e:
                logger.warning("Search failed", source=result.source_name, error=str(e))
                result.errors.append(f"search: {e}")

        if not urls:
            logger.info("Falling back to seed URL", source=result.source_name)
            urls = [seed_url]
        return urls

    async def _expand_listing_page(self, url: str, semaphore: asyncio.Semaphore) -> list[str] | None:
        """Property URLs on ``url`` if it is a listing page, else None."""
        async with semaphore:
            page = await self.client.scrape_with_links(url)
            if len(page["links"]) < self.listing_link_threshold:
                return None
            listing = await self.client.scrape_listing_urls(url)

        urls = [urljoin(url, u.strip()) for u in listing["listing_urls"]]
        logger.info("Listing page expanded", url=short_url(url), links=len(page["links"]), listings=len(urls))
        return urls

    async def _expand_listings(
        self, seed_url: str, candidates: list[str], semaphore: asyncio.Semaphore
    ) -> list[str]:
        seed_key = normalize_url(seed_url)
        to_probe = list(
            {
                normalize_url(u): u
                for u in candidates
                if normalize_url(u) == seed_key or looks_like_listing_page(u)
            }.values()
        )
        expansions = await asyncio.gather(*(self._expand_listing_page(u, semaphore) for u in to_probe))
        listings = {normalize_url(u): found for u, found in zip(to_probe, expansions) if found is not None}

        # Listing pages themselves are never property URLs.
        unique: dict[str, None] = {}
        for url in candidates:
            key = normalize_url(url)
            for found in listings.get(key, [url]):
                found_key = normalize_url(found)
                if _is_http(found_key) and found_key not in listings:
                    unique.setdefault(found_key)
        return list(unique)

    def _prioritize(self, urls: list[str], result: DiscoveryResult) -> list[str]:
        iowa = [u for u in urls if is_iowa_url(u)]
        other = [u for u in urls if not is_iowa_url(u)]
        result.iowa_urls = len(iowa)
        ordered = iowa + other
        result.skipped_urls = ordered[self.max_urls :]
        return ordered[: self.max_urls]

    async def _process_all(
        self,
        urls: list[str],
        source_name: str,
        force: bool,
        result: DiscoveryResult,
        semaphore: asyncio.Semaphore,
    ) -> None:
        stopping = asyncio.Event()

        async def worker(url: str) -> None:
            async with semaphore:
                if stopping.is_set():
                    return
                result.processed_urls += 1
                try:
                    outcome = await self._process_url(url, source_name, force, result)
                except Exception as e:
                    logger.warning("Property processing failed", url=short_url(url), error=str(e))
                    result.errors.append(f"{short_url(url)}: {e}")
                    await self._record_error(url, e, force)
                    outcome = UrlOutcome.ERROR
                result.record(url, outcome)

        tasks = [asyncio.create_task(worker(u)) for u in urls]
        try:
            await asyncio.wait(tasks)
        except asyncio.CancelledError:
            stopping.set()
            logger.warning("Discovery cancelled, draining in-flight work", source=source_name)
            _, pending = await asyncio.wait(tasks, timeout=self.drain_timeout)
            for task in pending:
                task.cancel()
            raise

    async def _record_error(self, url: str, error: Exception, force: bool) -> None:
        """Best-effort: mark the auction failed so stored state matches the run summary."""
        try:
            auction = await self.store.get_auction_by_url(url)
            if auction is not None:
                await self.tracker.record_failure(auction, f"processing error: {error}", force)
        except Exception as e:
            logger.error("Could not record processing error", url=short_url(url), error=str(e))

    async def _process_url(self, url: str, source_name: str, force: bool, result: DiscoveryResult) -> UrlOutcome:
        auction = await self.store.create_auction({"url": url, "source_website": source_name})
        result.auction_ids.append(auction.id)
        if not self.tracker.should_enrich(auction, force):
            return UrlOutcome.ALREADY_ENRICHED

        extracted = await self.client.scrape_with_json(url)
        if extracted is None:
            await self.tracker.record_failure(auction, "extraction unavailable: provider returned no data", force)
            return UrlOutcome.FAILED

        fields = reconcile_fields(extracted)
        if is_empty(fields["title"]):
            await self.tracker.record_failure(auction, "schema mismatch: no title in extraction result", force)
            return UrlOutcome.FAILED

        patch = self._build_patch(auction, fields, extracted, source_name)

        if self.detail_enricher is not None and settings.detail_extraction_enabled:
            try:
                patch.update(await self.detail_enricher.extract_details(url))
            except (httpx.HTTPError, ExtractionError) as e:
                await self.tracker.record_failure(auction, f"detail extraction failed: {e}", force)
                return UrlOutcome.FAILED

        located = await self.geocoder.resolve(self._location_view(auction, patch))
        if located:
            patch.update(located.as_patch())

        await self.tracker.record_success(auction, patch, force)
        logger.info("Auction extracted", url=short_url(url), title=str(fields["title"])[:50])
        return UrlOutcome.COMPLETED

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _build_patch(
        auction: Auction, fields: dict[str, Any], extracted: dict[str, Any], source_name: str
    ) -> dict[str, Any]:
        """Raw fields fill only what is empty; enriched fields always refresh."""
        raw_date = fields["auction_date"]
        auction_date = parse_auction_date(raw_date) if isinstance(raw_date, str) else None
        if auction_date is None:
            auction_date = extract_date_from_text(fields["title"], fields["description"])

        county = normalize_county_name(fields["county"]) if isinstance(fields["county"], str) else None
        state = fields["state"] if isinstance(fields["state"], str) else DEFAULT_STATE
        acreage = parse_acreage(fields["acreage"])

        raw = {
            "title": fields["title"],
            "description": fields["description"],
            "auction_date": auction_date,
            "address": fields["address"],
            "county": county or None,
            "state": state,
            "acreage": acreage,
            "land_type": fields["land_type"],
            "source_website": source_name,
        }
        patch = {k: v for k, v in raw.items() if v is not None and is_empty(getattr(auction, k))}
        patch["raw_data"] = extracted

        title_source = Auction(acreage=acreage, county=county or None, state=state)
        if acreage or county:
            patch["enriched_title"] = generate_standardized_title(title_source)
        else:
            patch["enriched_title"] = str(fields["title"]).strip()
        if not is_empty(fields["description"]):
            patch["enriched_description"] = fields["description"]
        if auction_date is not None:
            patch["enriched_auction_date"] = auction_date
        if isinstance(fields["address"], str):
            patch["enriched_property_location"] = fields["address"]
        return patch

    @staticmethod
    def _location_view(auction: Auction, patch: dict[str, Any]) -> Auction:
        """Unsaved Auction carrying the location fields the update will write."""
        values = {name: patch.get(name, getattr(auction, name)) for name in (*LOCATION_FIELDS, "county", "state")}
        return Auction(id=auction.id, **values)
