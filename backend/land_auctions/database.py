
from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from land_auctions.config import settings

convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)


class Base(DeclarativeBase):
    metadata = metadata


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _engine_kwargs(db_url: str) -> dict:
    kwargs: dict = {"echo": settings.app_debug}
    if db_url.startswith("sqlite"):
        # SQLite dev mode - no pool size settings
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs["pool_size"] = 5
        kwargs["max_overflow"] = 5
        kwargs["pool_pre_ping"] = True
    return kwargs


def get_engine() -> AsyncEngine:
    """Create the engine on first use so importing models never needs a driver."""
    global _engine
    if _engine is None:
        db_url = settings.effective_database_url
        _engine = create_async_engine(db_url, **_engine_kwargs(db_url))
    return _engine


def async_session() -> AsyncSession:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(), class_=AsyncSession, expire_on_commit=False
        )
    return _session_factory()


async def create_all_tables():
    """Create the auctions table if it does not exist yet."""
    from land_auctions.models.auction import Auction

    async with get_engine().begin() as conn:
        await conn.run_sync(
            lambda sync_conn: Auction.__table__.create(sync_conn, checkfirst=True)
        )
