"""Default auction-house source configurations."""

from dataclasses import dataclass

from land_auctions.utils.urls import domain_of


@dataclass(frozen=True)
class AuctionSource:
    id: str
    display_name: str
    base_url: str
    search_path: str | None = None
    is_enabled: bool = True

    @property
    def seed_url(self) -> str:
        """Listing-index URL discovery starts from."""
        if not self.search_path:
            return self.base_url
        return self.base_url.rstrip("/") + self.search_path


AUCTION_SOURCES: tuple[AuctionSource, ...] = (
    AuctionSource(
        "farmers-national",
        "Farmers National",
        "https://www.farmersnational.com",
        "/real-estate/auctions?fncRealEstate_properties%5BsortBy%5D=fncRealEstate_properties"
        "%3AauctionDate%3Aasc&fncRealEstate_properties%5Brange%5D%5BtotalAcres%5D=0%3A",
    ),
    AuctionSource("midwest-ag-services", "Midwest Ag Services", "https://midwestagservices.com", "/farm-auctions/"),
    AuctionSource("iowa-land-company", "Iowa Land Company", "https://iowalandcompany.com", "/auctions/"),
    AuctionSource("peoples-company", "Peoples Company", "https://peoplescompany.com", "/listings?type=auctions"),
    AuctionSource(
        "high-point-land", "High Point Land", "https://www.highpointlandcompany.com", "/land/?places=state%3DIA"
    ),
    AuctionSource(
        "zomer-company", "Zomer Company", "https://zomercompany.com", "/site/auctions/current-land-real-estate/"
    ),
    AuctionSource(
        "land-search", "Land Search", "https://www.landsearch.com", "/properties/iowa/filter/format=auctions"
    ),
    AuctionSource("dreamdirt", "DreamDirt", "https://bid.dreamdirt.com"),
    AuctionSource("landwatch", "LandWatch", "https://landwatch.com"),
    AuctionSource("steffes", "Steffes", "https://steffes-website-production.azurewebsites.net"),
    AuctionSource("steffes-group", "Steffes Group", "https://steffesgroup.com", "/auctions/land"),
    AuctionSource("mccall-auctions", "McCall Auctions", "https://www.mccallauctions.com", "/mccall-listings?cat=17"),
    AuctionSource("midwest-land-management", "Midwest Land Management", "https://www.midwestlandmanagement.com/"),
    AuctionSource(
        "randy-pryor", "Randy Pryor Real Estate", "https://randypryorrealestate.com", "/farm-land-auctions/"
    ),
    AuctionSource("jim-schaben", "Jim Schaben Real Estate", "https://jimschabenrealestate.com", "/land-listings"),
    AuctionSource("denison-livestock", "Denison Livestock", "https://www.denisonlivestock.com/"),
    AuctionSource("spencer-auction-group", "Spencer Auction Group", "https://spencerauctiongroup.com", "/auctions/"),
    AuctionSource(
        "sieren-auction-sales", "Sieren Auction Sales", "https://www.sierenauctionsales.com", "/current-auctions"
    ),
    AuctionSource(
        "green-real-estate",
        "Green Real Estate & Auction",
        "https://www.greenrealestate-auction.com",
        "/#auctions-start",
    ),
    AuctionSource("iowa-land-sales", "Iowa Land Sales", "https://iowalandsales.com", "/iowa-farm-real-estate/"),
    AuctionSource("sullivan-auctioneers", "Sullivan Auctioneers", "https://www.sullivanauctioneers.com"),
    AuctionSource(
        "bigiron",
        "BigIron",
        "https://www.bigiron.com",
        "/Lots?distance=500&filter=Open&industry=RealEstate&provider=BigIron%7CSullivan"
        "&categories=Real+Estate+%3A+Farmland+Property%7CReal+Estate+%3A+Acreage+Property",
    ),
    AuctionSource(
        "central-states",
        "Central States Real Estate",
        "https://centralstatesrealestate.com",
        "/properties/land-auctions/",
    ),
    AuctionSource("the-acre-co", "The Acre Co", "https://theacreco.com"),
)


def enabled_sources() -> list[AuctionSource]:
    return [s for s in AUCTION_SOURCES if s.is_enabled]


def get_source(source_id: str) -> AuctionSource | None:
    for source in AUCTION_SOURCES:
        if source.id == source_id:
            return source
    return None


def source_for_url(url: str) -> AuctionSource | None:
    """Match a listing URL to the auction house whose domain it lives on."""
    domain = domain_of(url)
    if not domain:
        return None
    for source in AUCTION_SOURCES:
        source_domain = domain_of(source.base_url)
        if domain == source_domain or domain.endswith("." + source_domain):
            return source
    return None
