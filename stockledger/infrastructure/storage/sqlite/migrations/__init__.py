"""Database migrations module."""

from stockledger.infrastructure.storage.sqlite.migrations.migrator import (
    MigrationInfo,
    MigrationResult,
    discover_migrations,
    get_current_version,
    initialize_database,
    pending_migrations,
)

__all__ = [
    "MigrationInfo",
    "MigrationResult",
    "discover_migrations",
    "get_current_version",
    "initialize_database",
    "pending_migrations",
]
