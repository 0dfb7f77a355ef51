"""Database session management for the FastAPI backend."""
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .config import Settings


class Database:
    """Owns the async engine and the session factory for one application."""

    def __init__(self, database_url: str, echo: bool = False) -> None:
        connect_args = {"check_same_thread": False} if database_url.startswith("sqlite+") else {}
        self.engine: AsyncEngine = create_async_engine(
            database_url, future=True, echo=echo, connect_args=connect_args
        )
        self.sessionmaker = async_sessionmaker(self.engine, expire_on_commit=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(settings.database_url)

    async def create_all(self) -> None:
        """Create any missing tables."""
        from .models import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        from .models import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()

    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide an async SQLAlchemy session per request."""

        async with self.sessionmaker() as session:
            yield session
