"""Tests for the field boundary service."""

import asyncio

from land_auctions.services.field_boundary_service import FieldBoundaryService, FieldSearchResult
from land_auctions.utils.ttl_cache import TTLCache


class TestFieldBoundaryService:
    def test_not_available(self):
        assert FieldBoundaryService().is_available is False

    def test_search_reports_unavailable(self):
        result = asyncio.run(FieldBoundaryService().search_fields(41.9, 42.1, -93.7, -93.5))
        assert result == FieldSearchResult()
        assert result.fields == []
        assert result.total == 0
        assert result.available is False
        assert result.reason

    def test_near_point_reports_unavailable(self):
        result = asyncio.run(FieldBoundaryService().find_fields_near_point(42.03, -93.62))
        assert result.available is False

    def test_results_cached_by_query(self):
        cache = TTLCache(3600)
        service = FieldBoundaryService(cache=cache)

        async def scenario():
            await service.search_fields(41.9, 42.1, -93.7, -93.5)
            await service.search_fields(41.9, 42.1, -93.7, -93.5)
            await service.find_fields_near_point(42.03, -93.62, radius_meters=250)

        asyncio.run(scenario())
        assert len(cache) == 2
        assert "fields:41.9,42.1,-93.7,-93.5,50" in cache
        assert "near:42.03,-93.62,250" in cache

    def test_lookup_by_id(self):
        assert asyncio.run(FieldBoundaryService().get_field_by_id("IA-123")) is None
