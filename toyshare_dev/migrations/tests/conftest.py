#
# Imports
#

# Standard library
import json
import sys

# Third party
import pytest

# Paths
from toyshare_dev.paths import resolve_paths

# Environment variables
from dotenv import load_dotenv
load_dotenv()


#
# Fakes
#


class FakeCursor:
    """Records executed SQL, answers the last-applied query from the connection"""

    def __init__(self, conn):
        self.conn = conn
        self.closed = False
        self._next = None

    def execute(self, sql, params=None):
        if self.conn.fail_on and self.conn.fail_on in sql:
            raise RuntimeError(f"failed executing: {sql}")
        self.conn.executed.append((sql, params))
        if "SELECT created_at" in sql:
            self._next = {"created_at": self.conn.last_millis} if self.conn.last_millis else None

    def fetchone(self):
        return self._next

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, last_millis=0, fail_on=None):
        self.last_millis = last_millis
        self.fail_on = fail_on
        self.executed = []
        self.commits = 0
        self.rollbacks = 0

    def cursor(self):
        return FakeCursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1


class FakePool:
    """Hands out one connection, counts closeall calls"""

    def __init__(self, conn=None):
        self.conn = conn or FakeConnection()
        self.close_calls = 0
        self.returned = []

    def getconn(self):
        return self.conn

    def putconn(self, conn):
        self.returned.append(conn)

    def closeall(self):
        self.close_calls += 1


#
# Fixtures
#


@pytest.fixture
def project_paths(tmp_path):
    """Path bundle rooted at tmp_path"""
    return resolve_paths(tmp_path / "toyshare_dev" / "paths.py")


@pytest.fixture
def make_pool():
    """Factory for a pool around a fake connection"""
    return lambda **kwargs: FakePool(FakeConnection(**kwargs))


@pytest.fixture
def pool_factory():
    """Pool factory that remembers every pool it built"""

    class Factory:
        def __init__(self):
            self.pools = []
            self.urls = []

        def __call__(self, database_url):
            self.urls.append(database_url)
            pool = FakePool()
            self.pools.append(pool)
            return pool

    return Factory()


@pytest.fixture
def succeeding_generator():
    return [sys.executable, "-c", "print('generated')"]


@pytest.fixture
def failing_generator():
    return [sys.executable, "-c", "import sys; sys.stderr.write('bad schema'); sys.exit(1)"]


@pytest.fixture
def migrations_folder(tmp_path):
    """Folder with two generated migrations and their journal"""
    folder = tmp_path / "migrations"
    (folder / "meta").mkdir(parents=True)

    (folder / "0000_create_users.sql").write_text(
        'CREATE TABLE "users" ("id" serial PRIMARY KEY);\n'
        "--> statement-breakpoint\n"
        'CREATE TABLE "toys" ("id" serial PRIMARY KEY);\n'
    )
    (folder / "0001_add_wishes.sql").write_text(
        'CREATE TABLE "wishes" ("id" serial PRIMARY KEY);\n'
    )

    journal = {
        "version": "5",
        "dialect": "pg",
        "entries": [
            {"idx": 0, "when": 1700000000000, "tag": "0000_create_users", "breakpoints": True},
            {"idx": 1, "when": 1700000100000, "tag": "0001_add_wishes", "breakpoints": True},
        ],
    }
    (folder / "meta" / "_journal.json").write_text(json.dumps(journal))
    return folder
