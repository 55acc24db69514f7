import json
import logging

import asyncpg
from asyncpg import Connection
from asyncpg.pool import Pool

from app.core.config import Settings

logger = logging.getLogger(__name__)


async def _init_connection(conn: Connection):
    # JSONB columns (preferences, messages) round-trip as Python objects
    await conn.set_type_codec(
        "jsonb",
        encoder=json.dumps,
        decoder=json.loads,
        schema="pg_catalog",
    )


async def create_db_pool(settings: Settings) -> Pool:
    try:
        pool = await asyncpg.create_pool(
            dsn=settings.asyncpg_url,
            min_size=settings.DB_POOL_MIN_SIZE,
            max_size=settings.DB_POOL_MAX_SIZE,
            timeout=30,
            init=_init_connection,
        )
    except (OSError, asyncpg.PostgresError) as e:
        logger.error("Error connecting to database at %s:%s: %s", settings.DB_HOST, settings.DB_PORT, e)
        raise
    logger.info("AsyncPG connection pool created (%s-%s connections).",
                settings.DB_POOL_MIN_SIZE, settings.DB_POOL_MAX_SIZE)
    return pool


async def close_db_pool(pool: Pool | None):
    if pool:
        await pool.close()
        logger.info("AsyncPG connection pool closed.")
