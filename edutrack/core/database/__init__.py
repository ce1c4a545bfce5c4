"""Cassandra access for EduTrack."""

from edutrack.core.database.cassandra import (
    SCHEMA,
    CassandraConnection,
    build_cluster,
    create_keyspace,
    create_tables,
    init_cassandra,
    shutdown_cassandra,
)


__all__ = [
    "SCHEMA",
    "CassandraConnection",
    "build_cluster",
    "create_keyspace",
    "create_tables",
    "init_cassandra",
    "shutdown_cassandra",
]
