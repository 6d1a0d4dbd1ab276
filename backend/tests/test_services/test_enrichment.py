"""Tests for the enrichment state machine."""

import asyncio

import pytest

from land_auctions.services.enrichment import EnrichmentTracker, enrichment_stats


@pytest.fixture
def tracker(memory_store):
    return EnrichmentTracker(memory_store)


def create(store, url="https://example.com/lot/1"):
    return asyncio.run(store.create_auction({"url": url}))


class TestTransitions:
    def test_created_pending(self, memory_store):
        assert create(memory_store).enrichment_status == "pending"

    def test_pending_to_completed(self, tracker, memory_store):
        auction = create(memory_store)
        updated = asyncio.run(tracker.record_success(auction, {"enriched_title": "80 Acres Story County"}))
        assert updated.enrichment_status == "completed"
        assert updated.enriched_title == "80 Acres Story County"
        assert updated.enriched_at is not None
        assert updated.enrichment_error is None

    def test_pending_to_failed(self, tracker, memory_store):
        auction = create(memory_store)
        updated = asyncio.run(tracker.record_failure(auction, "extraction unavailable"))
        assert updated.enrichment_status == "failed"
        assert updated.enrichment_error == "extraction unavailable"

    def test_failed_can_complete_and_clears_error(self, tracker, memory_store):
        auction = create(memory_store)

        async def scenario():
            failed = await tracker.record_failure(auction, "timeout")
            return await tracker.record_success(failed, {"enriched_title": "Farm"})

        updated = asyncio.run(scenario())
        assert updated.enrichment_status == "completed"
        assert updated.enrichment_error is None

    def test_failure_replaces_previous_error(self, tracker, memory_store):
        auction = create(memory_store)

        async def scenario():
            await tracker.record_failure(auction, "first")
            return await tracker.record_failure(auction, "second")

        assert asyncio.run(scenario()).enrichment_error == "second"

    def test_error_truncated(self, tracker, memory_store):
        auction = create(memory_store)
        updated = asyncio.run(tracker.record_failure(auction, "x" * 2000))
        assert len(updated.enrichment_error) == 500


class TestCompletedIsSticky:
    def test_failure_ignored_on_completed(self, tracker, memory_store):
        auction = create(memory_store)

        async def scenario():
            done = await tracker.record_success(auction, {"enriched_title": "Farm"})
            return await tracker.record_failure(done, "late failure")

        updated = asyncio.run(scenario())
        assert updated.enrichment_status == "completed"
        assert updated.enrichment_error is None

    def test_success_ignored_on_completed_without_force(self, tracker, memory_store):
        auction = create(memory_store)

        async def scenario():
            done = await tracker.record_success(auction, {"enriched_title": "First"})
            return await tracker.record_success(done, {"enriched_title": "Second"})

        assert asyncio.run(scenario()).enriched_title == "First"

    def test_force_overwrites(self, tracker, memory_store):
        auction = create(memory_store)

        async def scenario():
            done = await tracker.record_success(auction, {"enriched_title": "First"})
            return await tracker.record_success(done, {"enriched_title": "Second"}, force=True)

        assert asyncio.run(scenario()).enriched_title == "Second"

    def test_request_reenrichment(self, tracker, memory_store):
        auction = create(memory_store)

        async def scenario():
            await tracker.record_success(auction, {"enriched_title": "First"})
            return await tracker.request_reenrichment(auction.id)

        updated = asyncio.run(scenario())
        assert updated.enrichment_status == "pending"
        assert tracker.should_enrich(updated) is True

    def test_should_enrich(self, memory_store):
        auction = create(memory_store)
        assert EnrichmentTracker.should_enrich(auction) is True
        auction.enrichment_status = "failed"
        assert EnrichmentTracker.should_enrich(auction) is True
        auction.enrichment_status = "completed"
        assert EnrichmentTracker.should_enrich(auction) is False
        assert EnrichmentTracker.should_enrich(auction, force=True) is True


class TestStats:
    def test_enrichment_stats(self, tracker, memory_store):
        async def scenario():
            a = await memory_store.create_auction({"url": "https://a.com/1"})
            b = await memory_store.create_auction({"url": "https://a.com/2"})
            await memory_store.create_auction({"url": "https://a.com/3"})
            await tracker.record_success(a, {})
            await tracker.record_failure(b, "no title")
            return await enrichment_stats(memory_store)

        stats = asyncio.run(scenario())
        assert stats["total"] == 3
        assert stats["completed"] == 1
        assert stats["failed"] == 1
        assert stats["pending"] == 1
        assert stats["pending_ids"] == [3]
        assert stats["failed_ids"] == [2]
