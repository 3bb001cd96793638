"""asyncpg pool for the subscribers table.

Tasks never touch PostgreSQL; only the billing functions do. The pool is
optional: without DATABASE_URL the app keeps subscribers in memory.
"""

import logging
import pathlib
from contextlib import asynccontextmanager
from typing import Optional

import asyncpg

logger = logging.getLogger(__name__)

SCHEMA_PATH = pathlib.Path(__file__).parent / "schema.sql"

_pool: Optional[asyncpg.Pool] = None


async def init_db_pool(
    dsn: str,
    min_size: int = 1,
    max_size: int = 5,
    command_timeout: float = 30.0,
) -> asyncpg.Pool:
    """Open the shared pool. A second call returns the pool already open."""
    global _pool
    if _pool is not None:
        return _pool

    try:
        _pool = await asyncpg.create_pool(
            dsn, min_size=min_size, max_size=max_size, command_timeout=command_timeout
        )
    except Exception as e:
        logger.error(f"Could not connect to subscriber database: {e}")
        raise
    logger.info(f"Subscriber database pool ready ({min_size}-{max_size} connections)")
    return _pool


async def close_db_pool() -> None:
    global _pool
    if _pool is None:
        return
    await _pool.close()
    _pool = None
    logger.info("Subscriber database pool closed")


def get_pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("Subscriber database is not configured (set DATABASE_URL)")
    return _pool


@asynccontextmanager
async def get_connection():
    async with get_pool().acquire() as conn:
        yield conn


async def init_schema(path: pathlib.Path = SCHEMA_PATH) -> None:
    """Run schema.sql; every statement in it is idempotent."""
    if not path.exists():
        raise FileNotFoundError(f"Schema file not found: {path}")
    async with get_connection() as conn:
        await conn.execute(path.read_text())
    logger.info(f"Applied subscriber schema from {path.name}")


async def health_check() -> dict:
    if _pool is None:
        return {"status": "disabled"}
    try:
        async with get_connection() as conn:
            await conn.fetchval("SELECT 1")
    except Exception as e:
        logger.error(f"Subscriber database health check failed: {e}")
        return {"status": "unhealthy", "error": str(e)}
    return {"status": "healthy", "pool_size": _pool.get_size(), "pool_free": _pool.get_idle_size()}
