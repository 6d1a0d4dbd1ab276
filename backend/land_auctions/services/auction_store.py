"""Auction persistence.

The pipeline only talks to an ``AuctionStore``: create, patch and fetch by
id or URL. ``SqlAuctionStore`` opens one session per call so concurrent
discovery tasks never share a session; ``MemoryAuctionStore`` keeps rows in
a dict for local runs and tests.
"""

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, Protocol

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from land_auctions.models.auction import Auction, EnrichmentStatus

logger = structlog.get_logger()


class AuctionNotFoundError(LookupError):
    pass


class AuctionStore(Protocol):
    async def create_auction(self, fields: dict[str, Any]) -> Auction: ...

    async def update_auction_enrichment(self, auction_id: int, patch: dict[str, Any]) -> Auction: ...

    async def get_auction_by_id(self, auction_id: int) -> Auction | None: ...

    async def get_auction_by_url(self, url: str) -> Auction | None: ...

    async def list_auctions(
        self,
        enrichment_status: str | None = None,
        ungeocoded: bool = False,
        limit: int | None = None,
    ) -> list[Auction]: ...


def _creation_defaults(fields: dict[str, Any]) -> dict[str, Any]:
    now = datetime.now(timezone.utc)
    values = dict(fields)
    values.setdefault("enrichment_status", EnrichmentStatus.PENDING.value)
    values.setdefault("status", "active")
    values.setdefault("created_at", now)
    values.setdefault("updated_at", now)
    return values


class SqlAuctionStore:
    """AuctionStore backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self._session_factory = session_factory

    async def create_auction(self, fields: dict[str, Any]) -> Auction:
        """Insert an auction, or return the existing row for the same URL."""
        async with self._session_factory() as session:
            existing = await session.execute(select(Auction).where(Auction.url == fields["url"]))
            auction = existing.scalar_one_or_none()
            if auction is not None:
                return auction

            auction = Auction(**_creation_defaults(fields))
            session.add(auction)
            await session.commit()
            await session.refresh(auction)
            logger.debug("Auction created", auction_id=auction.id, url=auction.url[:50])
            return auction

    async def update_auction_enrichment(self, auction_id: int, patch: dict[str, Any]) -> Auction:
        async with self._session_factory() as session:
            auction = await session.get(Auction, auction_id)
            if auction is None:
                raise AuctionNotFoundError(f"Auction {auction_id} not found")
            for key, value in patch.items():
                setattr(auction, key, value)
            auction.updated_at = datetime.now(timezone.utc)
            await session.commit()
            await session.refresh(auction)
            return auction

    async def get_auction_by_id(self, auction_id: int) -> Auction | None:
        async with self._session_factory() as session:
            return await session.get(Auction, auction_id)

    async def get_auction_by_url(self, url: str) -> Auction | None:
        async with self._session_factory() as session:
            result = await session.execute(select(Auction).where(Auction.url == url))
            return result.scalar_one_or_none()

    async def list_auctions(
        self,
        enrichment_status: str | None = None,
        ungeocoded: bool = False,
        limit: int | None = None,
    ) -> list[Auction]:
        query = select(Auction).order_by(Auction.id)
        if enrichment_status:
            query = query.where(Auction.enrichment_status == enrichment_status)
        if ungeocoded:
            query = query.where(Auction.latitude.is_(None))
        if limit:
            query = query.limit(limit)
        async with self._session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())


class MemoryAuctionStore:
    """AuctionStore kept in process memory."""

    def __init__(self):
        self._auctions: dict[int, Auction] = {}
        self._by_url: dict[str, int] = {}
        self._next_id = 1

    async def create_auction(self, fields: dict[str, Any]) -> Auction:
        existing_id = self._by_url.get(fields["url"])
        if existing_id is not None:
            return self._auctions[existing_id]

        auction = Auction(id=self._next_id, **_creation_defaults(fields))
        self._auctions[auction.id] = auction
        self._by_url[auction.url] = auction.id
        self._next_id += 1
        return auction

    async def update_auction_enrichment(self, auction_id: int, patch: dict[str, Any]) -> Auction:
        auction = self._auctions.get(auction_id)
        if auction is None:
            raise AuctionNotFoundError(f"Auction {auction_id} not found")
        for key, value in patch.items():
            setattr(auction, key, value)
        auction.updated_at = datetime.now(timezone.utc)
        return auction

    async def get_auction_by_id(self, auction_id: int) -> Auction | None:
        return self._auctions.get(auction_id)

    async def get_auction_by_url(self, url: str) -> Auction | None:
        auction_id = self._by_url.get(url)
        return self._auctions.get(auction_id) if auction_id is not None else None

    async def list_auctions(
        self,
        enrichment_status: str | None = None,
        ungeocoded: bool = False,
        limit: int | None = None,
    ) -> list[Auction]:
        auctions = [
            a
            for a in self._auctions.values()
            if (enrichment_status is None or a.enrichment_status == enrichment_status)
            and (not ungeocoded or a.latitude is None)
        ]
        return auctions[:limit] if limit else auctions
