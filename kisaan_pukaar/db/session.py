# kisaan_pukaar/db/session.py
from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from kisaan_pukaar import config
from .models import *  # ensure models are imported for metadata


# -------------------------
# Engine
# -------------------------

def make_engine(url: Optional[str] = None) -> AsyncEngine:
    """
    Build an async engine for the local store.
    - In-memory SQLite (default) shares one connection through StaticPool,
      otherwise every session would see its own empty database.
    - Any other DATABASE_URL is passed through unchanged.
    """
    url = url or config.DATABASE_URL
    if url.startswith("sqlite") and (":memory:" in url or url.endswith("://")):
        return create_async_engine(
            url,
            echo=config.SQL_ECHO,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(url, echo=config.SQL_ECHO, pool_pre_ping=True)


# -------------------------
# Session factory (async)
# -------------------------

def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


# -------------------------
# Schema management
# -------------------------

async def init_db(engine: AsyncEngine) -> None:
    """Create all tables if they do not exist."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
