"""Per-auction enrichment lifecycle: pending -> completed | failed.

Every transition is a single store update, so readers only ever see
``pending`` or a terminal state. ``completed`` is sticky: recording another
outcome on it is a no-op unless the caller passes ``force=True`` or first
calls ``request_reenrichment``.
"""

from datetime import datetime, timezone
from typing import Any

import structlog

from land_auctions.models.auction import Auction, EnrichmentStatus
from land_auctions.services.auction_store import AuctionStore

logger = structlog.get_logger()

MAX_ERROR_LENGTH = 500


class EnrichmentTracker:
    def __init__(self, store: AuctionStore):
        self.store = store

    @staticmethod
    def should_enrich(auction: Auction, force: bool = False) -> bool:
        status = auction.enrichment_status or EnrichmentStatus.PENDING.value
        return force or status != EnrichmentStatus.COMPLETED.value

    async def record_success(
        self, auction: Auction, patch: dict[str, Any], force: bool = False
    ) -> Auction:
        """Promote to ``completed`` with the enriched fields in ``patch``."""
        if not self.should_enrich(auction, force):
            logger.debug("Enrichment already completed, skipping", auction_id=auction.id)
            return auction

        update = dict(patch)
        update.update(
            enrichment_status=EnrichmentStatus.COMPLETED.value,
            enrichment_error=None,
            enriched_at=datetime.now(timezone.utc),
        )
        updated = await self.store.update_auction_enrichment(auction.id, update)
        logger.info("Auction enriched", auction_id=auction.id)
        return updated

    async def record_failure(self, auction: Auction, reason: str, force: bool = False) -> Auction:
        """Move to ``failed`` with a short diagnostic; a previous error is replaced."""
        if not self.should_enrich(auction, force):
            logger.debug("Enrichment already completed, ignoring failure", auction_id=auction.id)
            return auction

        message = (reason or "unknown enrichment error").strip()[:MAX_ERROR_LENGTH]
        updated = await self.store.update_auction_enrichment(
            auction.id,
            {
                "enrichment_status": EnrichmentStatus.FAILED.value,
                "enrichment_error": message,
            },
        )
        logger.warning("Auction enrichment failed", auction_id=auction.id, error=message)
        return updated

    async def request_reenrichment(self, auction_id: int) -> Auction:
        """Explicitly send an auction back to ``pending``."""
        return await self.store.update_auction_enrichment(
            auction_id,
            {"enrichment_status": EnrichmentStatus.PENDING.value, "enrichment_error": None},
        )


async def enrichment_stats(store: AuctionStore) -> dict[str, Any]:
    """Totals per status plus the ids that still need work."""
    stats: dict[str, Any] = {
        "total": 0,
        "pending": 0,
        "completed": 0,
        "failed": 0,
        "pending_ids": [],
        "failed_ids": [],
    }
    for auction in await store.list_auctions():
        status = auction.enrichment_status or EnrichmentStatus.PENDING.value
        stats["total"] += 1
        if status in ("pending", "completed", "failed"):
            stats[status] += 1
        if status == EnrichmentStatus.PENDING.value:
            stats["pending_ids"].append(auction.id)
        elif status == EnrichmentStatus.FAILED.value:
            stats["failed_ids"].append(auction.id)
    return stats
