"""Scrape one auction listing URL and save it.

Usage (from backend/): python3 scripts/add_auction_by_url.py <url> [source name] [--force]
"""
import asyncio
import sys

from land_auctions.clients.firecrawl import FirecrawlClient
from land_auctions.config import settings
from land_auctions.database import async_session, create_all_tables
from land_auctions.pipeline.discovery import DiscoveryPipeline
from land_auctions.services.auction_display import get_comprehensive_auction_data
from land_auctions.services.auction_store import SqlAuctionStore
from land_auctions.services.detail_enricher import AuctionDetailEnricher


async def main(url: str, source_name: str | None, force: bool) -> int:
    settings.require_extraction_credentials()
    await create_all_tables()

    client = FirecrawlClient()
    store = SqlAuctionStore(async_session)
    try:
        pipeline = DiscoveryPipeline(client, store, detail_enricher=AuctionDetailEnricher(client, store))
        result = await pipeline.ingest_url(url, source_name=source_name, force=force)
    finally:
        await client.close()

    print(f"Source: {result.source_name}")
    if result.completed == 0 and result.already_enriched == 0:
        print(f"No data could be extracted from {url}")
        for error in result.errors:
            print(f"  {error}")
        return 1

    auction = await store.get_auction_by_id(result.auction_ids[0])
    view = get_comprehensive_auction_data(auction)
    print(f"Saved auction {view.id}: {view.title}")
    print(f"  County: {view.county or 'N/A'}")
    print(f"  State: {view.state or 'N/A'}")
    print(f"  Acreage: {view.acreage or 'N/A'}")
    print(f"  Date: {view.formatted_date}")
    if view.coordinates:
        print(f"  Coordinates: {view.coordinates.latitude}, {view.coordinates.longitude} ({view.geocoding.method})")
    return 0


if __name__ == "__main__":
    args = [a for a in sys.argv[1:] if a != "--force"]
    if not args:
        print(__doc__)
        sys.exit(2)
    sys.exit(asyncio.run(main(args[0], args[1] if len(args) > 1 else None, "--force" in sys.argv)))
