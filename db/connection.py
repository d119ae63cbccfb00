"""Async engine and session factory for the CRM database.

Provides:
- engine / AsyncSessionLocal: shared by the API process and the reminder job
- get_db(): async context manager, commit on success, rollback on error
- database_url(): DATABASE_URL normalized to the asyncpg driver

Hosted Postgres dashboards hand out plain ``postgres://`` URLs; those are
rewritten to ``postgresql+asyncpg://``. Any other driver is rejected at
import time. When connecting through a transaction-mode pooler (PgBouncer,
port 6543 on hosted projects) asyncpg's prepared statement cache must be off.
"""
import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from dotenv import load_dotenv
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

logger = logging.getLogger(__name__)

load_dotenv()

ASYNC_DRIVER = "postgresql+asyncpg"
POOLER_PORT = 6543


def database_url(raw: str) -> URL:
    """Parse DATABASE_URL, upgrading bare postgres URLs to the asyncpg driver.

    Raises:
        RuntimeError: the URL names a driver other than asyncpg.
    """
    url = make_url(raw)
    if url.drivername in ("postgres", "postgresql"):
        url = url.set(drivername=ASYNC_DRIVER)
    if url.drivername != ASYNC_DRIVER:
        raise RuntimeError(
            f"DATABASE_URL must use the '{ASYNC_DRIVER}' driver. "
            f"Got: '{url.drivername}'. "
            f"Example: {ASYNC_DRIVER}://crm:password@localhost:5432/crm"
        )
    return url


def uses_pooler(url: URL) -> bool:
    return url.port == POOLER_PORT or os.environ.get("DB_PGBOUNCER", "").lower() in ("1", "true")


_raw_url = os.environ.get("DATABASE_URL")
if not _raw_url:
    raise RuntimeError(
        "DATABASE_URL environment variable is not set. "
        "Copy .env.example to .env and point it at the CRM database."
    )
_url = database_url(_raw_url)

_connect_args = {"server_settings": {"application_name": "crm-dashboard"}}
if uses_pooler(_url):
    _connect_args["statement_cache_size"] = 0

engine = create_async_engine(
    _url,
    echo=os.environ.get("DB_ECHO", "").lower() in ("1", "true"),
    pool_pre_ping=True,
    pool_size=int(os.environ.get("DB_POOL_SIZE", "5")),
    max_overflow=int(os.environ.get("DB_MAX_OVERFLOW", "10")),
    pool_timeout=int(os.environ.get("DB_POOL_TIMEOUT", "30")),
    connect_args=_connect_args,
)

AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@asynccontextmanager
async def get_db() -> AsyncIterator[AsyncSession]:
    """Yield a session; commit when the block exits cleanly, roll back and re-raise otherwise.

    Handlers that commit themselves (to report per-step failures) can still
    use it: the final commit is then a no-op.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            logger.exception("Database session rolled back due to exception")
            raise


async def dispose_engine() -> None:
    """Close pooled connections (API shutdown, end of a reminder pass)."""
    await engine.dispose()
