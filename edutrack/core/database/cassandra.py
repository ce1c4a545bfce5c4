"""Cassandra cluster, session and schema for EduTrack.

Sessions come from cassandra-asyncio-driver, which adds ``session.aexecute()``
to the regular driver. Progress writes are lightweight transactions
(``IF NOT EXISTS`` / ``IF completed = ?``), so the default execution profile
also pins the serial consistency used by their Paxos round.
"""

import structlog
from cassandra import ConsistencyLevel
from cassandra.auth import PlainTextAuthProvider
from cassandra.cluster import EXEC_PROFILE_DEFAULT, ExecutionProfile
from cassandra.policies import DCAwareRoundRobinPolicy, TokenAwarePolicy
from cassandra_asyncio.cluster import Cluster

from edutrack.bookmarks.models import BOOKMARK_TABLES_CQL
from edutrack.catalog.models import CATALOG_TABLES_CQL
from edutrack.config.settings import Settings, get_settings
from edutrack.progress.models import PROGRESS_TABLES_CQL


logger = structlog.get_logger(__name__)

# Creation order matters only for readability of the logs
SCHEMA: dict[str, list[str]] = {
    "catalog": CATALOG_TABLES_CQL,
    "progress": PROGRESS_TABLES_CQL,
    "bookmarks": BOOKMARK_TABLES_CQL,
}


def build_cluster(settings: Settings) -> Cluster:
    """Cluster configured from settings (not yet connected)."""
    auth_provider = None
    if settings.cassandra_username and settings.cassandra_password:
        auth_provider = PlainTextAuthProvider(
            username=settings.cassandra_username,
            password=settings.cassandra_password,
        )

    profile = ExecutionProfile(
        load_balancing_policy=TokenAwarePolicy(
            DCAwareRoundRobinPolicy(local_dc=settings.cassandra_local_dc)
        ),
        consistency_level=ConsistencyLevel.LOCAL_QUORUM,
        serial_consistency_level=ConsistencyLevel.LOCAL_SERIAL,
        request_timeout=settings.cassandra_request_timeout,
    )

    return Cluster(
        contact_points=settings.cassandra_hosts,
        port=settings.cassandra_port,
        auth_provider=auth_provider,
        protocol_version=settings.cassandra_protocol_version,
        connect_timeout=settings.cassandra_connect_timeout,
        execution_profiles={EXEC_PROFILE_DEFAULT: profile},
    )


class CassandraConnection:
    """Process-wide cluster and session holder."""

    _cluster: Cluster | None = None
    _session = None

    @classmethod
    def connect(cls, settings: Settings | None = None):
        """Connect once and return the shared session.

        Raises:
            ConnectionError: If no contact point answers
        """
        if cls._session is not None:
            return cls._session

        settings = settings or get_settings()
        cls._cluster = build_cluster(settings)

        try:
            cls._session = cls._cluster.connect()
        except Exception as e:
            logger.error("cassandra_connection_failed", error=str(e))
            cls._cluster.shutdown()
            cls._cluster = None
            raise ConnectionError(f"Failed to connect to Cassandra: {e}") from e

        logger.info(
            "cassandra_connected",
            hosts=settings.cassandra_hosts,
            port=settings.cassandra_port,
            local_dc=settings.cassandra_local_dc,
        )
        return cls._session

    @classmethod
    def disconnect(cls) -> None:
        if cls._session is not None:
            cls._session.shutdown()
            cls._session = None
        if cls._cluster is not None:
            cls._cluster.shutdown()
            cls._cluster = None
            logger.info("cassandra_disconnected")

    @classmethod
    def is_connected(cls) -> bool:
        return cls._session is not None and not cls._session.is_shutdown


async def create_keyspace(session, settings: Settings) -> None:
    """Create the keyspace if missing.

    Production replicates per datacenter, everything else uses a single
    SimpleStrategy replica set.
    """
    keyspace = settings.cassandra_keyspace
    factor = settings.cassandra_replication_factor

    if settings.is_production:
        datacenter = settings.cassandra_local_dc or "datacenter1"
        replication = f"'class': 'NetworkTopologyStrategy', '{datacenter}': {factor}"
    else:
        replication = f"'class': 'SimpleStrategy', 'replication_factor': {factor}"

    await session.aexecute(
        f"CREATE KEYSPACE IF NOT EXISTS {keyspace} "
        f"WITH replication = {{{replication}}} AND durable_writes = true"
    )
    logger.info("cassandra_keyspace_ready", keyspace=keyspace, replication_factor=factor)


async def create_tables(session, keyspace: str) -> int:
    """Create every table of every module. Returns the number of statements."""
    created = 0
    for group, statements in SCHEMA.items():
        for cql in statements:
            await session.aexecute(cql.format(keyspace=keyspace))
            created += 1
        logger.info("cassandra_tables_ready", keyspace=keyspace, group=group)
    return created


async def init_cassandra(settings: Settings | None = None):
    """Connect, then make sure keyspace and tables exist."""
    settings = settings or get_settings()

    session = CassandraConnection.connect(settings)
    await create_keyspace(session, settings)
    session.set_keyspace(settings.cassandra_keyspace)
    await create_tables(session, settings.cassandra_keyspace)

    return session


async def shutdown_cassandra() -> None:
    CassandraConnection.disconnect()
