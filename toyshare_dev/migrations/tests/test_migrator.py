#
# Imports
#

# Standard library
import hashlib
import json

# Third party
import pytest

# Module under test
from toyshare_dev.migrations.migrator import (
    MigrationError,
    apply_migrations,
    read_migration_files,
    split_statements,
)


#
# Tests for split_statements
#


def test_split_statements_on_breakpoints():
    """
    Story: Generated SQL splits on breakpoint markers

    Given SQL with a statement breakpoint
    When we split it
    Then each statement comes back trimmed and blanks are dropped
    """

    sql = "CREATE TABLE a (id int);\n--> statement-breakpoint\nCREATE TABLE b (id int);\n"

    assert split_statements(sql) == ("CREATE TABLE a (id int);", "CREATE TABLE b (id int);")


def test_split_statements_without_breakpoints():
    """
    Story: Breakpoints disabled means one statement

    Given a journal entry with breakpoints off
    When we split its SQL
    Then the whole file is a single statement
    """

    sql = "CREATE TABLE a (id int);\n--> statement-breakpoint\nSELECT 1;"

    assert split_statements(sql, breakpoints=False) == (sql,)


#
# Tests for read_migration_files
#


def test_read_migration_files_journal_order(migrations_folder):
    """
    Story: Migrations come back in journal order with stable hashes

    Given a folder with two journal entries
    When we read it
    Then both entries are returned in order with their SQL hashes
    """

    # Act
    migrations = read_migration_files(migrations_folder)

    # Assert
    assert [m.tag for m in migrations] == ["0000_create_users", "0001_add_wishes"]
    assert len(migrations[0].statements) == 2
    assert migrations[0].folder_millis == 1700000000000

    expected = hashlib.sha256((migrations_folder / "0001_add_wishes.sql").read_bytes()).hexdigest()
    assert migrations[1].hash == expected
    assert read_migration_files(migrations_folder)[1].hash == expected


def test_read_migration_files_missing_journal(tmp_path):
    """
    Story: A folder without a journal is rejected

    Given an empty migrations folder
    When we read it
    Then MigrationError names the missing journal
    """

    with pytest.raises(MigrationError, match="_journal.json"):
        read_migration_files(tmp_path)


def test_read_migration_files_missing_sql(migrations_folder):
    """
    Story: A journal entry without its SQL file is rejected

    Given a journal listing a file that was deleted
    When we read the folder
    Then MigrationError is raised
    """

    (migrations_folder / "0001_add_wishes.sql").unlink()

    with pytest.raises(MigrationError, match="0001_add_wishes.sql"):
        read_migration_files(migrations_folder)


def test_read_migration_files_bad_journal(migrations_folder):
    """
    Story: A malformed journal is rejected

    Given a journal that is not valid JSON
    When we read the folder
    Then MigrationError is raised
    """

    (migrations_folder / "meta" / "_journal.json").write_text("{not json")

    with pytest.raises(MigrationError, match="Invalid migration journal"):
        read_migration_files(migrations_folder)


def test_read_migration_files_entry_without_when(migrations_folder):
    """
    Story: A journal entry without a timestamp is rejected

    Given a journal entry that has a tag but no "when"
    When we read the folder
    Then MigrationError names the broken entry
    """

    # Arrange
    journal = {"entries": [{"idx": 0, "tag": "0000_create_users"}]}
    (migrations_folder / "meta" / "_journal.json").write_text(json.dumps(journal))

    # Act / Assert
    with pytest.raises(MigrationError, match="entry 0"):
        read_migration_files(migrations_folder)


@pytest.mark.parametrize(
    "journal",
    [
        {"entries": None},
        {"entries": {"idx": 0}},
        {"entries": [{"idx": 0, "tag": "0000_create_users", "when": "yesterday"}]},
        {"entries": ["0000_create_users"]},
    ],
)
def test_read_migration_files_malformed_entries(migrations_folder, journal):
    """
    Story: Malformed journal entries surface as MigrationError

    Given a journal whose entries are null, not a list, or badly typed
    When we read the folder
    Then MigrationError is raised instead of a bare KeyError or TypeError
    """

    (migrations_folder / "meta" / "_journal.json").write_text(json.dumps(journal))

    with pytest.raises(MigrationError, match="Invalid migration journal"):
        read_migration_files(migrations_folder)


#
# Tests for apply_migrations
#


def test_apply_migrations_fresh_database(make_pool, migrations_folder):
    """
    Story: All migrations are applied to a fresh database

    Given no recorded migrations
    When we apply the folder
    Then every statement runs, each migration is recorded and the batch commits
    """

    # Arrange
    pool = make_pool()

    # Act
    applied = apply_migrations(pool, migrations_folder)

    # Assert
    assert applied == ["0000_create_users", "0001_add_wishes"]
    executed = [sql for sql, _ in pool.conn.executed]
    assert any('CREATE TABLE "toys"' in sql for sql in executed)
    inserts = [params for sql, params in pool.conn.executed if sql.startswith("INSERT")]
    assert [millis for _, millis in inserts] == [1700000000000, 1700000100000]
    assert pool.conn.commits == 1
    assert pool.returned == [pool.conn]


def test_apply_migrations_skips_already_applied(make_pool, migrations_folder):
    """
    Story: Only migrations newer than the last recorded one run

    Given the first migration is already recorded
    When we apply the folder
    Then only the second migration runs
    """

    pool = make_pool(last_millis=1700000000000)

    applied = apply_migrations(pool, migrations_folder)

    assert applied == ["0001_add_wishes"]
    executed = [sql for sql, _ in pool.conn.executed]
    assert not any('CREATE TABLE "users"' in sql for sql in executed)


def test_apply_migrations_rolls_back_on_error(make_pool, migrations_folder):
    """
    Story: A failing statement rolls back the batch

    Given a statement that fails
    When we apply the folder
    Then the error propagates, nothing commits and the connection is returned
    """

    pool = make_pool(fail_on='"wishes"')

    with pytest.raises(RuntimeError, match="failed executing"):
        apply_migrations(pool, migrations_folder)

    assert pool.conn.commits == 0
    assert pool.conn.rollbacks == 1
    assert pool.returned == [pool.conn]


def test_apply_migrations_missing_journal_touches_no_connection(make_pool, tmp_path):
    """
    Story: An unreadable folder fails before borrowing a connection

    Given a folder without a journal
    When we apply it
    Then MigrationError is raised and no SQL runs
    """

    pool = make_pool()

    with pytest.raises(MigrationError):
        apply_migrations(pool, tmp_path)

    assert pool.conn.executed == []
