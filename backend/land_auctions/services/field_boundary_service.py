"""
Iowa field boundaries (USDA/ARS ACPF field boundary dataset).

No spatial store backs this service yet, so every query reports itself as
unavailable and returns no fields. Results are still cached under
deterministic keys so callers see the same contract once a store exists.
"""

from dataclasses import dataclass, field

import structlog

from land_auctions.config import settings
from land_auctions.utils.ttl_cache import TTLCache, make_cache_key

logger = structlog.get_logger()

UNAVAILABLE_REASON = "Field boundary database not configured"


@dataclass(frozen=True)
class FieldBounds:
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float


@dataclass(frozen=True)
class FieldBoundary:
    field_id: str
    acres: float
    is_agriculture: bool
    geometry_wkt: str
    bounds: FieldBounds


@dataclass(frozen=True)
class FieldSearchResult:
    fields: list[FieldBoundary] = field(default_factory=list)
    total: int = 0
    available: bool = False
    reason: str | None = UNAVAILABLE_REASON


class FieldBoundaryService:
    def __init__(self, cache: TTLCache | None = None):
        self._cache = cache or TTLCache(settings.field_boundary_cache_ttl_seconds)

    @property
    def is_available(self) -> bool:
        return False

    async def search_fields(
        self,
        min_lat: float,
        max_lat: float,
        min_lon: float,
        max_lon: float,
        limit: int = 50,
    ) -> FieldSearchResult:
        """Fields intersecting a bounding box."""
        key = make_cache_key("fields", min_lat, max_lat, min_lon, max_lon, limit)
        return await self._cache.get_or_compute(key, self._unavailable)

    async def find_fields_near_point(
        self, latitude: float, longitude: float, radius_meters: float = 100
    ) -> FieldSearchResult:
        key = make_cache_key("near", latitude, longitude, radius_meters)
        return await self._cache.get_or_compute(key, self._unavailable)

    async def get_field_by_id(self, field_id: str) -> FieldBoundary | None:
        logger.debug("Field lookup skipped", field_id=field_id, reason=UNAVAILABLE_REASON)
        return None

    async def _unavailable(self) -> FieldSearchResult:
        logger.debug("Field boundary search skipped", reason=UNAVAILABLE_REASON)
        return FieldSearchResult()
