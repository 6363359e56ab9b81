from contextlib import asynccontextmanager
from typing import AsyncIterator
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.orm import sessionmaker
from jobline.core.config import settings

# asyncpg behind pgbouncer cannot use prepared statement caching
_connect_args = {"statement_cache_size": 0} if "+asyncpg" in settings.DATABASE_URL else {}

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DATABASE_ECHO,
    future=True,
    connect_args=_connect_args,
    pool_pre_ping=True,
    pool_recycle=1800
)

async_session_factory = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session_factory() as session:
        yield session

@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    One atomic unit of work: commit when the block finishes, roll back
    everything written inside it when anything raises.
    """
    try:
        yield session
        await session.commit()
    except BaseException:
        await session.rollback()
        raise
