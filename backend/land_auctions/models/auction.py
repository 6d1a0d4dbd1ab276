from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import JSON, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from land_auctions.database import Base


def _now() -> datetime:
    return datetime.now(timezone.utc)


class EnrichmentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class GeocodingMethod(str, Enum):
    PRECISE = "precise"
    COUNTY_CENTROID = "county-centroid"


class Auction(Base):
    __tablename__ = "auctions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Raw scraped fields (never overwritten after ingestion)
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    url: Mapped[str] = mapped_column(Text, unique=True)
    source_website: Mapped[str | None] = mapped_column(String(100), nullable=True)
    auctioneer: Mapped[str | None] = mapped_column(String(200), nullable=True)
    auction_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    county: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(50), nullable=True)
    acreage: Mapped[float | None] = mapped_column(Float, nullable=True)
    land_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    raw_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # Enriched fields (take precedence in every display view)
    enriched_title: Mapped[str | None] = mapped_column(Text, nullable=True)
    enriched_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    enriched_auction_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    enriched_auction_house: Mapped[str | None] = mapped_column(String(200), nullable=True)
    enriched_auction_location: Mapped[str | None] = mapped_column(Text, nullable=True)
    enriched_property_location: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Property details
    tillable_percent: Mapped[float | None] = mapped_column(Float, nullable=True)
    soil_mentions: Mapped[str | None] = mapped_column(Text, nullable=True)
    crop_history: Mapped[str | None] = mapped_column(Text, nullable=True)
    improvements: Mapped[list | None] = mapped_column(JSON, nullable=True)
    utilities: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    road_access: Mapped[str | None] = mapped_column(Text, nullable=True)
    drainage: Mapped[str | None] = mapped_column(Text, nullable=True)
    crp_details: Mapped[str | None] = mapped_column(Text, nullable=True)
    water_rights: Mapped[str | None] = mapped_column(Text, nullable=True)
    mineral_rights: Mapped[str | None] = mapped_column(Text, nullable=True)
    zoning_info: Mapped[str | None] = mapped_column(Text, nullable=True)
    tax_info: Mapped[str | None] = mapped_column(Text, nullable=True)
    seller_motivation: Mapped[str | None] = mapped_column(Text, nullable=True)
    financing_options: Mapped[str | None] = mapped_column(Text, nullable=True)
    possession: Mapped[str | None] = mapped_column(Text, nullable=True)
    key_highlights: Mapped[list | None] = mapped_column(JSON, nullable=True)
    legal_description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Geocoding
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    geocoding_method: Mapped[str | None] = mapped_column(String(30), nullable=True)
    geocoding_confidence: Mapped[float | None] = mapped_column(Float, nullable=True)
    geocoding_source: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Enrichment tracking
    enrichment_status: Mapped[str] = mapped_column(
        String(20), default=EnrichmentStatus.PENDING.value, index=True
    )
    enrichment_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    enriched_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    status: Mapped[str] = mapped_column(String(20), default="active", index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, onupdate=_now
    )

    __table_args__ = (
        Index("idx_auctions_county_state", county, state),
    )
