from fastapi import APIRouter, Depends, HTTPException, Query

from land_auctions.api.deps import get_auction_store, get_detail_enricher
from land_auctions.models.auction import EnrichmentStatus
from land_auctions.services.auction_display import AuctionDisplayView, get_comprehensive_auction_data
from land_auctions.services.auction_store import AuctionNotFoundError, AuctionStore
from land_auctions.services.detail_enricher import AuctionDetailEnricher
from land_auctions.services.enrichment import enrichment_stats

router = APIRouter()


@router.get("")
async def list_auctions(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    enrichment_status: EnrichmentStatus | None = None,
    county: str | None = None,
    state: str | None = None,
    geocoded: bool | None = None,
    store: AuctionStore = Depends(get_auction_store),
):
    auctions = await store.list_auctions(
        enrichment_status=enrichment_status.value if enrichment_status else None
    )
    views = [get_comprehensive_auction_data(a) for a in auctions]

    if county:
        views = [v for v in views if (v.county or "").lower() == county.strip().lower()]
    if state:
        views = [v for v in views if (v.state or "").lower() == state.strip().lower()]
    if geocoded is not None:
        views = [v for v in views if (v.coordinates is not None) == geocoded]

    total = len(views)
    start = (page - 1) * per_page
    return {
        "items": views[start : start + per_page],
        "total": total,
        "page": page,
        "per_page": per_page,
        "pages": (total + per_page - 1) // per_page,
    }


@router.get("/enrichment/stats")
async def get_enrichment_stats(store: AuctionStore = Depends(get_auction_store)):
    return await enrichment_stats(store)


@router.get("/{auction_id}", response_model=AuctionDisplayView)
async def get_auction(auction_id: int, store: AuctionStore = Depends(get_auction_store)):
    auction = await store.get_auction_by_id(auction_id)
    if not auction:
        raise HTTPException(status_code=404, detail="Auction not found")
    return get_comprehensive_auction_data(auction)


@router.post("/{auction_id}/enrich", response_model=AuctionDisplayView)
async def enrich_auction(
    auction_id: int,
    force: bool = False,
    enricher: AuctionDetailEnricher = Depends(get_detail_enricher),
):
    """Run detail extraction for one auction; ``force`` re-enriches a completed record."""
    try:
        auction = await enricher.enrich_auction(auction_id, force=force)
    except AuctionNotFoundError:
        raise HTTPException(status_code=404, detail="Auction not found")
    return get_comprehensive_auction_data(auction)
