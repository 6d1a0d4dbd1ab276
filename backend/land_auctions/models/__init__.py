from land_auctions.models.auction import Auction, EnrichmentStatus, GeocodingMethod

__all__ = [
    "Auction",
    "EnrichmentStatus",
    "GeocodingMethod",
]
