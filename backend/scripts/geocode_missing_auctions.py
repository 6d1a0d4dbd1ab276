"""Geocode all auctions missing coordinates in batches.

Run from backend/: python3 scripts/geocode_missing_auctions.py
"""
import asyncio

from land_auctions.database import async_session, create_all_tables
from land_auctions.services.auction_store import SqlAuctionStore
from land_auctions.services.geocoding_service import get_geocoding_service

BATCH_SIZE = 100


async def main():
    await create_all_tables()
    service = get_geocoding_service()
    store = SqlAuctionStore(async_session)
    total_success = 0
    total_failed = 0
    batch_num = 0

    while True:
        batch_num += 1
        stats = await service.geocode_auctions_batch(store, limit=BATCH_SIZE)

        print(
            f"Batch {batch_num}: {stats['success']} success, "
            f"{stats['failed']} failed, {stats['skipped']} skipped "
            f"(total in batch: {stats['total']})"
        )
        total_success += stats["success"]
        total_failed += stats["failed"]

        # Failed and skipped rows stay ungeocoded, so stop once a batch makes no progress.
        if stats["total"] == 0 or stats["success"] == 0:
            print(f"\nDone! Total: {total_success} geocoded, {total_failed} failed")
            break

        await asyncio.sleep(2)


if __name__ == "__main__":
    asyncio.run(main())
