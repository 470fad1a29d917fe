"""Create the LearnHub keyspace and tables without starting the API.

Every statement is ``IF NOT EXISTS``, so the script can be re-run after new
tables or indexes are added.

Usage:
    cd api && python -m scripts.init_schema
"""

import asyncio

import structlog

from src.config.settings import get_settings
from src.core.database import (
    AsyncCassandraConnection,
    init_async_keyspace,
    init_async_tables,
)
from src.core.logging import configure_structlog


logger = structlog.get_logger(__name__)


async def run() -> None:
    settings = get_settings()
    keyspace = settings.cassandra_keyspace

    logger.info(
        "schema_init_starting",
        keyspace=keyspace,
        hosts=settings.cassandra_hosts,
    )

    session = AsyncCassandraConnection.connect()
    try:
        await init_async_keyspace(session, keyspace)
        session.set_keyspace(keyspace)
        await init_async_tables(session, keyspace)
        logger.info("schema_init_completed", keyspace=keyspace)
    finally:
        AsyncCassandraConnection.disconnect()


if __name__ == "__main__":
    configure_structlog(get_settings())
    asyncio.run(run())
