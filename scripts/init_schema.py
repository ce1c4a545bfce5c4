"""Create the EduTrack keyspace and tables.

Same schema the API creates on startup, for environments where the API user
cannot run DDL.

Usage:
    python -m scripts.init_schema
"""

import asyncio

import structlog

from edutrack.config.settings import get_settings
from edutrack.core.database import build_cluster, create_keyspace, create_tables


logger = structlog.get_logger(__name__)


async def run() -> None:
    settings = get_settings()
    keyspace = settings.cassandra_keyspace
    logger.info("schema_init_starting", keyspace=keyspace, hosts=settings.cassandra_hosts)

    cluster = build_cluster(settings)
    session = cluster.connect()
    try:
        await create_keyspace(session, settings)
        session.set_keyspace(keyspace)
        created = await create_tables(session, keyspace)
        logger.info("schema_init_completed", keyspace=keyspace, statements=created)
    finally:
        cluster.shutdown()


if __name__ == "__main__":
    asyncio.run(run())
