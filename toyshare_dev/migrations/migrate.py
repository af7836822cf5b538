#
# Imports
#

# Standard library
import argparse
import json
import logging
import subprocess
import sys
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

# Database
import psycopg2

# Config
from toyshare_dev import config
from toyshare_dev.db import create_pool

# Paths
from toyshare_dev.context import install_context
from toyshare_dev.paths import PathBundle

# Migrations
from toyshare_dev.migrations.migrator import MigrationError, apply_migrations

# Configure logging
logger = logging.getLogger(__name__)

#
# Helper Functions
#


def generator_command(migrations_dir: Path) -> list[str]:
    """Generator invocation writing into migrations_dir"""
    return [*config.GENERATE_MIGRATIONS_COMMAND, f"--out={migrations_dir}"]


def generate_migrations(command: Sequence[str], cwd: Path) -> Optional[str]:
    """
    Run the schema migration generator.

    @param command (Sequence[str]): Generator program and arguments
    @param cwd (Path): Project root the generator's relative paths refer to
    @returns Optional[str] - None on success, the failure message otherwise
    """

    logger.info("Generating migration files...")
    try:
        result = subprocess.run(list(command), cwd=cwd, capture_output=True, text=True)
    except OSError as e:
        return str(e)

    if result.stdout:
        logger.info(result.stdout)
    if result.stderr:
        logger.error(f"stderr: {result.stderr}")

    if result.returncode != 0:
        return f"{command[0]} exited with code {result.returncode}"

    logger.info("Migration files generated")
    return None


#
# Handler Functions
#


def run_migrations(
    paths: PathBundle,
    migrations_dir: Optional[Path] = None,
    generate_command: Optional[Sequence[str]] = None,
    pool_factory: Callable[[str], Any] = create_pool,
    migrate_fn: Callable[[Any, Path], Any] = apply_migrations,
) -> dict[str, Any]:
    """
    Generate migrations from the shared schema and apply them

    @param paths (PathBundle): Project paths
    @param migrations_dir (Optional[Path]): Folder generated into and applied from
        (defaults to paths.migrations)
    @param generate_command (Optional[Sequence[str]]): Generator override
    @param pool_factory (Callable): Builds a pool from a connection string
    @param migrate_fn (Callable): Applies migrations given (pool, folder)
    @returns Dict[str, Any] - Response with status and results
    """

    logger.info("run_migrations called")

    migrations_dir = Path(migrations_dir) if migrations_dir else paths.migrations
    migrations_dir.mkdir(parents=True, exist_ok=True)

    # Generate first, never apply stale files after a failed generation
    command = generate_command or generator_command(migrations_dir)
    error = generate_migrations(command, paths.root)
    if error is not None:
        logger.error(f"Error generating migration files: {error}")
        return {"status": "error", "message": f"Error generating migration files: {error}"}

    logger.info("Applying migrations...")

    database_url = config.get_database_url()
    if not database_url:
        logger.error("DATABASE_URL environment variable not set")
        return {"status": "error", "message": "DATABASE_URL environment variable not set"}

    pool = pool_factory(database_url)
    try:
        applied = migrate_fn(pool, migrations_dir)
        logger.info("Migrations applied successfully")
        response: dict[str, Any] = {
            "status": "success",
            "message": "Migrations applied successfully",
        }
        if isinstance(applied, list):
            response["migrations_applied"] = len(applied)
        return response

    except (psycopg2.Error, MigrationError, OSError) as e:
        logger.error(f"Error applying migrations: {e}")
        return {"status": "error", "message": f"Error applying migrations: {e}"}

    finally:
        pool.closeall()


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate and apply database migrations")
    parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    context = install_context()
    result = run_migrations(context.paths)
    print(json.dumps(result, indent=2))
    return 0 if result["status"] == "success" else 1


if __name__ == "__main__":
    sys.exit(main())
