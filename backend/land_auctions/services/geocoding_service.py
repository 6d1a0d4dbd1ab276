"""Geocoding service resolving auction locations to coordinates."""

import asyncio
import re
import time
from dataclasses import dataclass
from typing import Any

import structlog
from geopy.exc import GeocoderServiceError, GeocoderTimedOut
from geopy.geocoders import Nominatim

from land_auctions.config import settings
from land_auctions.models.auction import Auction, GeocodingMethod
from land_auctions.services.auction_store import AuctionStore
from land_auctions.services.county_centroids import county_centroid
from land_auctions.utils.ttl_cache import TTLCache

logger = structlog.get_logger()

PRECISE_CONFIDENCE = 0.9
COUNTY_CENTROID_CONFIDENCE = 0.3
COUNTY_CENTROID_SOURCE = "iowa-county-centroids"

# Location fields tried in order before falling back to the county centroid.
LOCATION_FIELDS = (
    "enriched_property_location",
    "enriched_auction_location",
    "address",
)

_IOWA_STATE_NAMES = {"iowa", "ia"}


@dataclass(frozen=True)
class GeocodeResult:
    latitude: float
    longitude: float
    method: str
    confidence: float
    source: str

    def as_patch(self) -> dict[str, Any]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "geocoding_method": self.method,
            "geocoding_confidence": self.confidence,
            "geocoding_source": self.source,
        }


def _centroid_applies(state: str | None) -> bool:
    """The centroid table only covers Iowa; an unknown state is assumed Iowa."""
    return not state or state.strip().lower() in _IOWA_STATE_NAMES


class GeocodingService:
    """Geocode US addresses using Nominatim (OpenStreetMap), with county fallback."""

    def __init__(
        self,
        geocoder: Any | None = None,
        cache: TTLCache | None = None,
        delay_seconds: float | None = None,
    ):
        self.geocoder = geocoder or Nominatim(
            user_agent=settings.geocoder_user_agent,
            timeout=10,
        )
        self._cache = cache or TTLCache(settings.geocode_cache_ttl_seconds)
        self._delay = settings.geocode_delay_seconds if delay_seconds is None else delay_seconds
        self._rate_lock = asyncio.Lock()
        self._last_request = 0.0

    async def geocode_address(self, address: str) -> tuple[float, float] | None:
        """
        Geocode a single address.

        Returns (latitude, longitude) or None if geocoding failed. Only
        answers from the geocoder are cached; provider errors are not.
        """
        if not address or not address.strip():
            return None
        key = address.strip()
        try:
            return await self._cache.get_or_compute(key, lambda: self._lookup(key))
        except (GeocoderTimedOut, GeocoderServiceError) as e:
            logger.warning("Geocoding error", address=key[:50], error=str(e))
            return None
        except Exception as e:
            logger.error("Unexpected geocoding error", address=key[:50], error=str(e))
            return None

    async def _lookup(self, address: str) -> tuple[float, float] | None:
        location = await self._geocode(address)
        if location is None:
            simplified = self._simplify_address(address)
            if simplified and simplified != address:
                location = await self._geocode(simplified)

        if location is None:
            logger.info("Geocoding returned no results", address=address[:50])
            return None

        logger.info(
            "Geocoded address",
            address=address[:50],
            lat=location.latitude,
            lng=location.longitude,
        )
        return (location.latitude, location.longitude)

    async def _geocode(self, query: str):
        # Nominatim usage policy: at most one request per second.
        async with self._rate_lock:
            wait = self._delay - (time.monotonic() - self._last_request)
            if wait > 0:
                await asyncio.sleep(wait)
            try:
                return await asyncio.to_thread(
                    self.geocoder.geocode,
                    query,
                    exactly_one=True,
                    country_codes="us",
                )
            finally:
                self._last_request = time.monotonic()

    async def resolve(self, auction: Auction) -> GeocodeResult | None:
        """
        Resolve an auction's coordinates.

        Order: enriched property location, enriched auction location, raw
        address, then the county centroid. Returns None when nothing matches.
        """
        for field_name in LOCATION_FIELDS:
            value = getattr(auction, field_name, None)
            if not value:
                continue
            coords = await self.geocode_address(value)
            if coords:
                return GeocodeResult(
                    latitude=coords[0],
                    longitude=coords[1],
                    method=GeocodingMethod.PRECISE.value,
                    confidence=PRECISE_CONFIDENCE,
                    source=field_name,
                )

        if auction.county and _centroid_applies(auction.state):
            centroid = county_centroid(auction.county)
            if centroid:
                logger.info("Using county centroid", auction_id=auction.id, county=centroid.county)
                return GeocodeResult(
                    latitude=centroid.latitude,
                    longitude=centroid.longitude,
                    method=GeocodingMethod.COUNTY_CENTROID.value,
                    confidence=COUNTY_CENTROID_CONFIDENCE,
                    source=COUNTY_CENTROID_SOURCE,
                )
            logger.info("County not in centroid table", auction_id=auction.id, county=auction.county)

        return None

    async def geocode_auctions_batch(self, store: AuctionStore, limit: int = 100) -> dict[str, int]:
        """
        Geocode auctions that don't have coordinates yet.

        Returns stats dict with counts of success/failure/skipped.
        """
        auctions = await store.list_auctions(ungeocoded=True, limit=limit)
        stats = {"total": len(auctions), "success": 0, "failed": 0, "skipped": 0}

        for auction in auctions:
            has_location = auction.county or any(getattr(auction, f) for f in LOCATION_FIELDS)
            if not has_location:
                stats["skipped"] += 1
                continue

            result = await self.resolve(auction)
            if result:
                await store.update_auction_enrichment(auction.id, result.as_patch())
                stats["success"] += 1
            else:
                stats["failed"] += 1

        logger.info("Batch geocoding complete", **stats)
        return stats

    @staticmethod
    def _simplify_address(address: str) -> str:
        """
        Simplify a listing address for better geocoding results.

        Removes parenthetical notes, "+/-" markers and leading phrases like
        "Located at" that confuse geocoders.
        """
        address = re.sub(r"\(.*?\)", "", address)
        address = address.replace("+/-", "")
        address = re.sub(r"^(?:property\s+)?(?:located\s+)?(?:at|near)\s+", "", address.strip(), flags=re.I)
        address = re.sub(r"\s{2,}", " ", address)
        return address.strip(" ,")


# Singleton instance
_geocoding_service: GeocodingService | None = None


def get_geocoding_service() -> GeocodingService:
    """Get or create the singleton geocoding service."""
    global _geocoding_service
    if _geocoding_service is None:
        _geocoding_service = GeocodingService()
    return _geocoding_service
