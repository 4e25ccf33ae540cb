"""
Database Configuration and Session Management

SQLite (default) and PostgreSQL through async drivers
"""

import os
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from fiera.db.models import Base

# Get database URL from environment
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./fiera.db")


def to_async_url(url: str) -> str:
    """Convert sync driver URLs to async equivalents"""
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    return url


def build_engine(url: str) -> AsyncEngine:
    url = to_async_url(url)
    engine_kwargs: dict = {
        "echo": os.getenv("DEBUG", "false").lower() == "true",
    }
    if not url.startswith("sqlite"):
        # PostgreSQL connection pool settings
        engine_kwargs.update({
            "pool_size": 5,
            "max_overflow": 10,
            "pool_pre_ping": True,
        })
    return create_async_engine(url, **engine_kwargs)


def build_session_factory(engine: AsyncEngine) -> sessionmaker:
    return sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


DATABASE_URL = to_async_url(DATABASE_URL)

# Create async engine
engine = build_engine(DATABASE_URL)

# Create async session factory
AsyncSessionLocal = build_session_factory(engine)


async def create_tables(target: Optional[AsyncEngine] = None):
    """Create all database tables"""
    async with (target or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
