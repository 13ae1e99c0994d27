# ============================================================================
# DATABASE CONNECTION POOL
# ============================================================================
# EPOCH: 1 - SEQUENTIAL WORKFLOWS
# STATUS: Core - Async PostgreSQL connection management
# PURPOSE: Provide connection pooling for psycopg3 async and schema setup
# CREATED: 19 OCT 2026
# ============================================================================
"""
Database Connection Pool

Manages async PostgreSQL connections using psycopg3 and psycopg_pool.
Singleton pattern ensures one pool per application.

Connection settings come from DATABASE_URL, or from the individual
POSTGRES_* variables.

Usage:
    from repositories.database import get_pool, ensure_schema

    pool = await get_pool()
    await ensure_schema(pool)
"""

import os
import logging
from typing import Optional
from contextlib import asynccontextmanager

from psycopg import sql
from psycopg_pool import AsyncConnectionPool

from core.config import get_defaults

logger = logging.getLogger(__name__)

# Global pool instance
_pool: Optional[AsyncConnectionPool] = None


def get_connection_string() -> str:
    """
    Get database connection string from environment.

    Priority:
    1. DATABASE_URL environment variable
    2. Individual POSTGRES_* components

    Returns:
        PostgreSQL connection string
    """
    if url := os.environ.get("DATABASE_URL"):
        return url

    host = os.environ.get("POSTGRES_HOST", "localhost")
    port = os.environ.get("POSTGRES_PORT", "5432")
    name = os.environ.get("POSTGRES_DB", "postgres")
    user = os.environ.get("POSTGRES_USER", "postgres")
    password = os.environ.get("POSTGRES_PASSWORD", "")
    sslmode = os.environ.get("POSTGRES_SSLMODE", "prefer")

    return f"postgresql://{user}:{password}@{host}:{port}/{name}?sslmode={sslmode}"


async def init_pool(
    min_size: Optional[int] = None,
    max_size: Optional[int] = None,
    connection_string: Optional[str] = None,
) -> AsyncConnectionPool:
    """
    Initialize the global connection pool.

    Args:
        min_size: Minimum connections to maintain (defaults to DB_POOL_MIN_SIZE)
        max_size: Maximum connections allowed (defaults to DB_POOL_MAX_SIZE)
        connection_string: Override connection string (defaults to env)

    Returns:
        AsyncConnectionPool instance
    """
    global _pool

    if _pool is not None:
        logger.warning("Pool already initialized, returning existing pool")
        return _pool

    storage = get_defaults().storage
    min_size = min_size if min_size is not None else storage.pool_min_size
    max_size = max_size if max_size is not None else storage.pool_max_size
    conninfo = connection_string or get_connection_string()

    # Mask credentials in logs
    safe_conninfo = conninfo.split("@")[-1] if "@" in conninfo else "<conninfo>"
    logger.info(f"Initializing connection pool: {safe_conninfo}")

    _pool = AsyncConnectionPool(
        conninfo=conninfo,
        min_size=min_size,
        max_size=max_size,
        open=False,  # We'll open it explicitly
    )

    await _pool.open()
    logger.info(f"Connection pool opened (min={min_size}, max={max_size})")

    return _pool


async def get_pool() -> AsyncConnectionPool:
    """Get the global connection pool, initializing if needed."""
    global _pool

    if _pool is None:
        await init_pool()

    return _pool


async def close_pool() -> None:
    """Close the global connection pool."""
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("Connection pool closed")


@asynccontextmanager
async def get_connection():
    """
    Get a connection from the pool.

    Usage:
        async with get_connection() as conn:
            await conn.execute(...)
    """
    pool = await get_pool()
    async with pool.connection() as conn:
        yield conn


class DatabasePool:
    """
    Context manager for pool lifecycle.

    Usage:
        async with DatabasePool() as pool:
            async with pool.connection() as conn:
                ...
    """

    def __init__(
        self,
        min_size: Optional[int] = None,
        max_size: Optional[int] = None,
        connection_string: Optional[str] = None,
    ):
        self.min_size = min_size
        self.max_size = max_size
        self.connection_string = connection_string

    async def __aenter__(self) -> AsyncConnectionPool:
        return await init_pool(
            min_size=self.min_size,
            max_size=self.max_size,
            connection_string=self.connection_string,
        )

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await close_pool()


# ============================================================================
# SCHEMA
# ============================================================================

SCHEMA = get_defaults().storage.db_schema

# Table identifiers - use with sql.SQL().format() for injection-safe queries
TABLE_WORKFLOWS = sql.Identifier(SCHEMA, "workflow_definitions")
TABLE_RUNS = sql.Identifier(SCHEMA, "workflow_runs")

_DDL = [
    sql.SQL("CREATE SCHEMA IF NOT EXISTS {}").format(sql.Identifier(SCHEMA)),
    sql.SQL("""
    CREATE TABLE IF NOT EXISTS {} (
        workflow_id VARCHAR(64) PRIMARY KEY,
        version INTEGER NOT NULL DEFAULT 1,
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        definition JSONB NOT NULL,
        created_at TIMESTAMPTZ NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL
    )
    """).format(TABLE_WORKFLOWS),
    sql.SQL("""
    CREATE TABLE IF NOT EXISTS {} (
        run_id VARCHAR(64) PRIMARY KEY,
        workflow_id VARCHAR(64) NOT NULL,
        workflow_version INTEGER NOT NULL DEFAULT 1,
        status VARCHAR(16) NOT NULL,
        total_steps INTEGER NOT NULL DEFAULT 0,
        input JSONB,
        output JSONB,
        error TEXT,
        step_results JSONB NOT NULL DEFAULT '[]'::jsonb,
        triggered_by VARCHAR(16) NOT NULL DEFAULT 'manual',
        correlation_id VARCHAR(64),
        start_time TIMESTAMPTZ NOT NULL,
        end_time TIMESTAMPTZ
    )
    """).format(TABLE_RUNS),
    sql.SQL("CREATE INDEX IF NOT EXISTS {} ON {} (workflow_id, start_time DESC)").format(
        sql.Identifier("idx_workflow_runs_workflow_start"), TABLE_RUNS
    ),
]


async def ensure_schema(pool: AsyncConnectionPool) -> None:
    """Create the schema and tables if they do not exist."""
    async with pool.connection() as conn:
        for statement in _DDL:
            await conn.execute(statement)
    logger.info(f"Schema '{SCHEMA}' ready")
