"""Database engine, session factory and declarative base."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


class Database:
    """
    Storage handle owning one async engine and its session factory.

    Constructed explicitly, opened with ``create_all`` and closed with
    ``dispose``. Request handlers reach it through ``app.state.database``.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        engine_kwargs = {"echo": echo}
        if url.startswith("sqlite") and ":memory:" in url:
            # One shared connection, otherwise each session sees an empty database
            engine_kwargs["poolclass"] = StaticPool
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        self.engine = create_async_engine(url, **engine_kwargs)
        self.sessionmaker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_all(self) -> None:
        """Create all tables registered on ``Base``."""
        # Registers models on Base.metadata
        from backend.app import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"[DB] Tables ready on {self.engine.url.render_as_string(hide_password=True)}")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Open a session outside of a request (background tasks)."""
        async with self.sessionmaker() as session:
            yield session

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("[DB] Engine disposed")


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """Dependency that yields an async DB session from the app's database."""
    database: Database = request.app.state.database
    async with database.sessionmaker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
