from collections.abc import AsyncGenerator

from land_auctions.clients.firecrawl import FirecrawlClient
from land_auctions.database import async_session
from land_auctions.services.auction_store import AuctionStore, SqlAuctionStore
from land_auctions.services.detail_enricher import AuctionDetailEnricher
from land_auctions.services.field_boundary_service import FieldBoundaryService

_field_boundary_service: FieldBoundaryService | None = None


def get_auction_store() -> AuctionStore:
    return SqlAuctionStore(async_session)


async def get_detail_enricher() -> AsyncGenerator[AuctionDetailEnricher, None]:
    client = FirecrawlClient()
    try:
        yield AuctionDetailEnricher(client, get_auction_store())
    finally:
        await client.close()


def get_field_boundary_service() -> FieldBoundaryService:
    global _field_boundary_service
    if _field_boundary_service is None:
        _field_boundary_service = FieldBoundaryService()
    return _field_boundary_service
