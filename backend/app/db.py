from __future__ import annotations
from typing import Any
import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from app.errors import ServiceNotConfigured

log = structlog.get_logger()

class Base(DeclarativeBase):
    pass


class Database:
    """
    Process-wide store handle.

    Built once at startup and handed to requests through app.state. The engine
    (and its connection pool) is created on first use and shared by every
    request; dispose() drops it so the next use builds a fresh one.
    """

    def __init__(self, url: str, **engine_kwargs: Any):
        self.url = url
        self._engine_kwargs = engine_kwargs
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None

    @property
    def configured(self) -> bool:
        return bool(self.url)

    @property
    def engine(self) -> AsyncEngine:
        if not self.url:
            raise ServiceNotConfigured("Database not configured")
        if self._engine is None:
            self._engine = create_async_engine(self.url, future=True, echo=False, pool_pre_ping=True, **self._engine_kwargs)
            self._sessionmaker = async_sessionmaker(self._engine, expire_on_commit=False)
        return self._engine

    def session(self) -> AsyncSession:
        self.engine  # noqa: B018  (builds the engine on first use)
        return self._sessionmaker()

    async def ping(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except ServiceNotConfigured:
            return False
        except Exception as e:
            log.warning("database_ping_failed", error=str(e))
            await self.dispose()
            return False

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        if self._engine is not None:
            engine, self._engine, self._sessionmaker = self._engine, None, None
            await engine.dispose()
