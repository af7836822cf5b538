#
# Imports
#

# Standard library
import hashlib
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

# Database
from toyshare_dev.db import pooled_connection

# Configure logging
logger = logging.getLogger(__name__)

#
# Constants
#

# Layout written by drizzle-kit
JOURNAL_PATH = Path("meta") / "_journal.json"
STATEMENT_BREAKPOINT = "--> statement-breakpoint"

# Bookkeeping table shared with drizzle-orm's own migrator
MIGRATIONS_SCHEMA = "drizzle"
MIGRATIONS_TABLE = "__drizzle_migrations"


#
# Types
#


class MigrationError(Exception):
    """Migrations folder is unreadable or inconsistent"""


@dataclass(frozen=True)
class Migration:
    tag: str
    folder_millis: int
    statements: tuple[str, ...]
    hash: str
    breakpoints: bool = True


#
# Helper Functions
#


def split_statements(sql: str, breakpoints: bool = True) -> tuple[str, ...]:
    """Split generated SQL into statements on drizzle-kit breakpoint markers"""
    if not breakpoints:
        return (sql,) if sql.strip() else ()
    return tuple(part.strip() for part in sql.split(STATEMENT_BREAKPOINT) if part.strip())


def read_migration_files(migrations_folder: Union[str, Path]) -> list[Migration]:
    """
    Read generated migrations in journal order.

    @param migrations_folder (str | Path): Folder holding meta/_journal.json and <tag>.sql files
    @returns list[Migration] - One entry per journal entry
    @raises MigrationError - Journal missing or malformed, or a listed SQL file missing
    """

    folder = Path(migrations_folder)
    journal_file = folder / JOURNAL_PATH

    if not journal_file.exists():
        raise MigrationError(f"Can't find meta/_journal.json file in {folder}")

    try:
        journal = json.loads(journal_file.read_text())
        entries = journal["entries"]
    except (ValueError, KeyError, TypeError) as e:
        raise MigrationError(f"Invalid migration journal {journal_file}: {e}") from e

    if not isinstance(entries, list):
        raise MigrationError(f"Invalid migration journal {journal_file}: entries must be a list")

    migrations = []
    for position, entry in enumerate(entries):
        try:
            tag = str(entry["tag"])
            folder_millis = int(entry["when"])
            breakpoints = bool(entry.get("breakpoints", True))
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise MigrationError(
                f"Invalid migration journal {journal_file}: entry {position}: {e!r}"
            ) from e

        sql_file = folder / f"{tag}.sql"
        if not sql_file.exists():
            raise MigrationError(f"No file {sql_file} found in {folder}")

        sql = sql_file.read_text()
        migrations.append(
            Migration(
                tag=tag,
                folder_millis=folder_millis,
                statements=split_statements(sql, breakpoints),
                hash=hashlib.sha256(sql.encode()).hexdigest(),
                breakpoints=breakpoints,
            )
        )

    return migrations


def ensure_migrations_table(cursor) -> None:
    """Create the bookkeeping schema and table if they are missing"""
    cursor.execute(f'CREATE SCHEMA IF NOT EXISTS "{MIGRATIONS_SCHEMA}"')
    cursor.execute(
        f"""
        CREATE TABLE IF NOT EXISTS "{MIGRATIONS_SCHEMA}"."{MIGRATIONS_TABLE}" (
            id SERIAL PRIMARY KEY,
            hash text NOT NULL,
            created_at bigint
        )
        """
    )


def last_applied_millis(cursor) -> int:
    """created_at of the newest recorded migration, 0 when none were applied"""
    cursor.execute(
        f'SELECT created_at FROM "{MIGRATIONS_SCHEMA}"."{MIGRATIONS_TABLE}" '
        "ORDER BY created_at DESC LIMIT 1"
    )
    row = cursor.fetchone()
    if not row:
        return 0
    return int(row["created_at"] or 0)


#
# Handler Functions
#


def apply_migrations(pool, migrations_folder: Union[str, Path]) -> list[str]:
    """
    Apply pending migrations from a folder in one transaction.

    A migration is pending when its journal timestamp is newer than the last
    recorded one. On any error the whole batch is rolled back.

    @param pool: Connection pool (getconn / putconn)
    @param migrations_folder (str | Path): Generated migrations folder
    @returns list[str] - Tags applied by this call, in order
    """

    migrations = read_migration_files(migrations_folder)

    with pooled_connection(pool) as conn:
        try:
            cursor = conn.cursor()
            ensure_migrations_table(cursor)
            last = last_applied_millis(cursor)

            applied = []
            for migration in migrations:
                if migration.folder_millis <= last:
                    continue

                for statement in migration.statements:
                    cursor.execute(statement)

                cursor.execute(
                    f'INSERT INTO "{MIGRATIONS_SCHEMA}"."{MIGRATIONS_TABLE}" '
                    '("hash", "created_at") VALUES (%s, %s)',
                    (migration.hash, migration.folder_millis),
                )
                applied.append(migration.tag)
                logger.info(f"Applied migration {migration.tag}")

            conn.commit()
            cursor.close()

        except Exception:
            conn.rollback()
            raise

    logger.info(f"apply_migrations completed: {len(applied)} of {len(migrations)} applied")
    return applied
