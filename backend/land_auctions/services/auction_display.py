"""
Display helpers for auctions.

Every displayed attribute prefers the enriched value, falls back to the raw
scraped value, and finally to a documented default. All functions are pure:
the same Auction always produces the same view.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel

from land_auctions.models.auction import Auction, EnrichmentStatus
from land_auctions.utils.date_helpers import format_auction_date
from land_auctions.utils.field_reconciliation import is_empty

DEFAULT_TITLE = "Land Auction"


class GeocodingInfo(BaseModel):
    method: str | None = None
    confidence: float | None = None
    source: str | None = None


class Coordinates(BaseModel):
    latitude: float
    longitude: float


class EnrichmentInfo(BaseModel):
    status: str
    is_enriched: bool
    is_pending: bool
    is_failed: bool
    error: str | None = None


class PropertyDetails(BaseModel):
    tillable_percent: float | None = None
    soil_mentions: str | None = None
    crop_history: str | None = None
    improvements: list[Any] = []
    utilities: dict[str, Any] | None = None
    road_access: str | None = None
    drainage: str | None = None
    crp_details: str | None = None
    water_rights: str | None = None
    mineral_rights: str | None = None
    zoning_info: str | None = None
    tax_info: str | None = None
    seller_motivation: str | None = None
    financing_options: str | None = None
    possession: str | None = None


class AuctionDisplayView(BaseModel):
    id: int | None = None
    title: str
    description: str
    auction_house: str | None = None
    auction_date: datetime | None = None
    formatted_date: str

    auction_location: str | None = None
    property_location: str | None = None
    legal_description: str | None = None

    acreage: float | None = None
    land_type: str | None = None
    county: str | None = None
    state: str | None = None

    key_highlights: list[str] = []
    property_details: PropertyDetails

    geocoding: GeocodingInfo
    coordinates: Coordinates | None = None

    enrichment: EnrichmentInfo

    source_website: str | None = None
    url: str | None = None
    status: str = "active"


def _first(*values: Any) -> Any:
    """First value that is not None/blank, else None."""
    for value in values:
        if not is_empty(value):
            return value
    return None


def _is_iowa(state: str | None) -> bool:
    return (state or "").strip().lower() in ("iowa", "ia")


def format_acreage(acreage: float) -> str:
    """
    Integers render without decimals; fractions with up to 2 decimals.

    Examples:
        150.0 -> "150"
        150.25 -> "150.25"
        80.50 -> "80.5"
    """
    if float(acreage).is_integer():
        return str(int(acreage))
    return f"{acreage:.2f}".rstrip("0").rstrip(".")


def generate_standardized_title(auction: Auction) -> str:
    """Build "{acreage} Acres {county} County[, {state}]" from the raw fields."""
    acreage = auction.acreage
    county = (auction.county or "").strip()
    state = (auction.state or "").strip()

    if acreage and county:
        title = f"{format_acreage(acreage)} Acres {county} County"
        if state and not _is_iowa(state):
            title += f", {state}"
        return title

    if county:
        return f"{county} County Land Auction"

    return DEFAULT_TITLE


def get_auction_title(auction: Auction) -> str:
    if not is_empty(auction.enriched_title):
        return auction.enriched_title.strip()

    if auction.acreage or not is_empty(auction.county):
        return generate_standardized_title(auction)

    if not is_empty(auction.title):
        return auction.title.strip()

    return DEFAULT_TITLE


def get_auction_description(auction: Auction) -> str:
    return _first(auction.enriched_description, auction.description) or ""


def get_auction_house(auction: Auction) -> str | None:
    return _first(auction.enriched_auction_house, auction.auctioneer, auction.source_website)


def get_auction_date(auction: Auction) -> datetime | None:
    value = auction.enriched_auction_date or auction.auction_date
    if value is None:
        return None
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def get_formatted_auction_date(auction: Auction) -> str:
    return format_auction_date(get_auction_date(auction))


def get_auction_location(auction: Auction) -> str | None:
    return _first(auction.enriched_auction_location)


def get_property_location(auction: Auction) -> str | None:
    return _first(auction.enriched_property_location, auction.address)


def _as_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, list) else []


def get_property_details(auction: Auction) -> PropertyDetails:
    return PropertyDetails(
        tillable_percent=auction.tillable_percent,
        soil_mentions=_first(auction.soil_mentions),
        crop_history=_first(auction.crop_history),
        improvements=_as_list(auction.improvements),
        utilities=auction.utilities if isinstance(auction.utilities, dict) and auction.utilities else None,
        road_access=_first(auction.road_access),
        drainage=_first(auction.drainage),
        crp_details=_first(auction.crp_details),
        water_rights=_first(auction.water_rights),
        mineral_rights=_first(auction.mineral_rights),
        zoning_info=_first(auction.zoning_info),
        tax_info=_first(auction.tax_info),
        seller_motivation=_first(auction.seller_motivation),
        financing_options=_first(auction.financing_options),
        possession=_first(auction.possession),
    )


def get_enrichment_info(auction: Auction) -> EnrichmentInfo:
    status = auction.enrichment_status or EnrichmentStatus.PENDING.value
    return EnrichmentInfo(
        status=status,
        is_enriched=status == EnrichmentStatus.COMPLETED.value,
        is_pending=status == EnrichmentStatus.PENDING.value,
        is_failed=status == EnrichmentStatus.FAILED.value,
        error=auction.enrichment_error or None,
    )


def is_enriched(auction: Auction) -> bool:
    return auction.enrichment_status == EnrichmentStatus.COMPLETED.value


def get_comprehensive_auction_data(auction: Auction) -> AuctionDisplayView:
    """Single aggregation entry point used by all rendering code."""
    has_coordinates = auction.latitude is not None and auction.longitude is not None
    return AuctionDisplayView(
        id=auction.id,
        title=get_auction_title(auction),
        description=get_auction_description(auction),
        auction_house=get_auction_house(auction),
        auction_date=get_auction_date(auction),
        formatted_date=get_formatted_auction_date(auction),
        auction_location=get_auction_location(auction),
        property_location=get_property_location(auction),
        legal_description=_first(auction.legal_description),
        acreage=auction.acreage,
        land_type=_first(auction.land_type),
        county=_first(auction.county),
        state=_first(auction.state),
        key_highlights=[str(h) for h in _as_list(auction.key_highlights)],
        property_details=get_property_details(auction),
        geocoding=GeocodingInfo(
            method=auction.geocoding_method,
            confidence=auction.geocoding_confidence,
            source=auction.geocoding_source,
        ),
        coordinates=(
            Coordinates(latitude=auction.latitude, longitude=auction.longitude)
            if has_coordinates
            else None
        ),
        enrichment=get_enrichment_info(auction),
        source_website=auction.source_website,
        url=auction.url,
        status=auction.status or "active",
    )
