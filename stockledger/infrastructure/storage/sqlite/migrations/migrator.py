"""
Schema migrations for the stock ledger database.

Migrations are ``vNNN_name.sql`` files next to this module. They are applied
in version order and recorded in ``schema_migrations`` with a checksum of
the file. A recorded migration whose file has changed since it ran stops
startup with a ConfigurationError.

When something is pending, the database file is copied aside first and put
back if a migration fails.
"""

import asyncio
import hashlib
import re
import shutil
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import aiosqlite

from stockledger.config import get_logger, get_settings
from stockledger.core.exceptions import ConfigurationError, DatabaseError

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent

_FILENAME = re.compile(r"v(\d+)_(\w+)\.sql")


@dataclass(frozen=True)
class MigrationInfo:
    """One migration file."""

    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "MigrationInfo":
        match = _FILENAME.fullmatch(path.name)
        if not match:
            raise ValueError(f"Invalid migration filename: {path.name}")
        checksum = hashlib.sha256(path.read_bytes()).hexdigest()[:16]
        return cls(version=match.group(1), name=match.group(2), path=path, checksum=checksum)


@dataclass
class MigrationResult:
    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None


def discover_migrations() -> list[MigrationInfo]:
    """Migration files in version order; badly named files are skipped."""
    migrations = []
    for path in sorted(MIGRATIONS_DIR.glob("v*.sql")):
        try:
            migrations.append(MigrationInfo.from_file(path))
        except ValueError as e:
            logger.warning("skipping_invalid_migration", path=str(path), error=str(e))
    return migrations


async def get_applied_migrations(conn: aiosqlite.Connection) -> dict[str, str]:
    """Applied versions mapped to their recorded checksums."""
    try:
        cursor = await conn.execute("SELECT version, checksum FROM schema_migrations")
    except aiosqlite.OperationalError:
        return {}
    return {row[0]: row[1] for row in await cursor.fetchall()}


async def get_current_version(conn: aiosqlite.Connection) -> str | None:
    applied = await get_applied_migrations(conn)
    return max(applied) if applied else None


async def pending_migrations(conn: aiosqlite.Connection) -> list[MigrationInfo]:
    """
    Migrations not yet applied.

    Raises:
        ConfigurationError: an applied migration's file no longer matches
            the checksum recorded when it ran.
    """
    applied = await get_applied_migrations(conn)
    pending = []
    for migration in discover_migrations():
        recorded = applied.get(migration.version)
        if recorded is None:
            pending.append(migration)
        elif recorded != migration.checksum:
            raise ConfigurationError(
                f"Migration v{migration.version}_{migration.name} changed after it was "
                f"applied (recorded {recorded}, file {migration.checksum})"
            )
    return pending


async def apply_migration(
    conn: aiosqlite.Connection,
    migration: MigrationInfo,
) -> MigrationResult:
    """Run one migration script and record it."""
    logger.info("applying_migration", version=migration.version, name=migration.name)
    start = time.monotonic()

    try:
        await conn.executescript(migration.path.read_text(encoding="utf-8"))

        cursor = await conn.execute("PRAGMA foreign_key_check")
        violations = await cursor.fetchall()
        if violations:
            raise DatabaseError(
                f"migration v{migration.version}",
                f"{len(violations)} foreign key violations",
            )

        elapsed = int((time.monotonic() - start) * 1000)
        await conn.execute(
            """
            INSERT INTO schema_migrations (version, name, checksum, execution_time_ms)
            VALUES (?, ?, ?, ?)
            """,
            (migration.version, migration.name, migration.checksum, elapsed),
        )
        await conn.commit()

    except Exception as e:
        await conn.rollback()
        logger.error(
            "migration_failed",
            version=migration.version,
            name=migration.name,
            error=str(e),
        )
        return MigrationResult(
            version=migration.version,
            name=migration.name,
            success=False,
            execution_time_ms=int((time.monotonic() - start) * 1000),
            error=str(e),
        )

    logger.info("migration_applied", version=migration.version, execution_time_ms=elapsed)
    return MigrationResult(
        version=migration.version,
        name=migration.name,
        success=True,
        execution_time_ms=elapsed,
    )


def _backup(db_path: Path) -> Path:
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = db_path.with_suffix(f".backup_{stamp}.db")
    shutil.copy2(db_path, backup_path)
    logger.info("database_backup_created", backup_path=str(backup_path))
    return backup_path


async def initialize_database(
    db_path: Path | None = None,
    create_backup_before: bool = True,
) -> list[MigrationResult]:
    """
    Bring the database up to the latest schema.

    Args:
        db_path: Database file (default from settings)
        create_backup_before: Copy an existing file aside before migrating

    Returns:
        Results of the migrations that ran, empty when nothing was pending.

    Raises:
        ConfigurationError: an applied migration file was edited.
        DatabaseError: a migration failed; the backup, if any, is restored.
    """
    db_path = db_path or get_settings().storage.db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    existed = db_path.exists()

    async with aiosqlite.connect(db_path) as conn:
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA foreign_keys=ON")

        pending = await pending_migrations(conn)
        if not pending:
            logger.info("database_schema_current", db_path=str(db_path))
            return []

        backup_path = None
        if create_backup_before and existed:
            await conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")
            backup_path = _backup(db_path)

        results: list[MigrationResult] = []
        for migration in pending:
            result = await apply_migration(conn, migration)
            results.append(result)
            if not result.success:
                break

    failed = next((r for r in results if not r.success), None)
    if failed is not None:
        if backup_path is not None:
            shutil.copy2(backup_path, db_path)
            logger.warning("database_restored_from_backup", backup_path=str(backup_path))
        raise DatabaseError(f"migration v{failed.version}_{failed.name}", failed.error or "")

    if backup_path is not None:
        backup_path.unlink()

    logger.info(
        "database_migrated",
        db_path=str(db_path),
        applied=[r.version for r in results],
    )
    return results


def main() -> None:
    """CLI entry point: migrate the ledger database or report its version."""
    import argparse

    parser = argparse.ArgumentParser(description="Stock ledger database migrator")
    parser.add_argument("--db-path", type=Path, help="Database path (default from settings)")
    parser.add_argument("--status", action="store_true", help="Show current and pending versions")
    parser.add_argument("--no-backup", action="store_true", help="Skip backup before migrating")
    args = parser.parse_args()

    async def status() -> None:
        db_path = args.db_path or get_settings().storage.db_path
        if not db_path.exists():
            print(f"No database at {db_path}")
            return
        async with aiosqlite.connect(db_path) as conn:
            current = await get_current_version(conn)
            pending = await pending_migrations(conn)
        print(f"Current version: {current or 'none'}")
        print(f"Pending: {', '.join(m.version for m in pending) or 'none'}")

    async def migrate() -> None:
        results = await initialize_database(args.db_path, create_backup_before=not args.no_backup)
        if not results:
            print("Schema is up to date")
        for result in results:
            print(f"[OK] v{result.version}: {result.name} ({result.execution_time_ms}ms)")

    asyncio.run(status() if args.status else migrate())


if __name__ == "__main__":
    main()
