from typing import AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from app.core.config import settings


def _pool_options(database_url: str) -> Dict:
    if database_url.startswith("sqlite"):
        return {}
    # pool_pre_ping: drop connections the server closed while idle.
    # pool_recycle: discard connections older than this many seconds.
    return {"pool_pre_ping": True, "pool_recycle": 300}


engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    future=True,
    **_pool_options(settings.database_url),
)

# expire_on_commit=False: services build responses from ORM objects after committing
SessionFactory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request; the transaction is controlled by the service."""
    async with SessionFactory() as session:
        yield session
