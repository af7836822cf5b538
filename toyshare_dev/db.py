#
# Imports
#

# Standard library
from contextlib import contextmanager
from typing import Iterator

# Database
import psycopg2
from psycopg2.extras import RealDictCursor
from psycopg2.pool import SimpleConnectionPool

# Environment variables
from dotenv import load_dotenv
load_dotenv()

# Logging
import logging
logger = logging.getLogger(__name__)


#
# Constants
#

# Pool sizing: nothing is opened until the first connection is requested
POOL_MIN_CONNECTIONS = 0
POOL_MAX_CONNECTIONS = 4


#
# Helper Functions
#


def create_pool(database_url: str) -> SimpleConnectionPool:
    """
    Create a connection pool for the given connection string.

    No connection is opened here; connection failures surface on first use.

    @param database_url (str): PostgreSQL connection string
    @returns SimpleConnectionPool - Pool handing out RealDictCursor connections
    """

    # Validate connection string
    if not database_url:
        raise ValueError("Database connection string cannot be empty")

    logger.debug("Creating connection pool")
    return SimpleConnectionPool(
        POOL_MIN_CONNECTIONS,
        POOL_MAX_CONNECTIONS,
        dsn=database_url,
        cursor_factory=RealDictCursor,
    )


@contextmanager
def pooled_connection(pool) -> Iterator[psycopg2.extensions.connection]:
    """
    Borrow a connection from the pool and always hand it back.

    @param pool: Pool exposing getconn() / putconn()
    @returns Iterator[connection] - The borrowed connection
    """

    conn = pool.getconn()
    try:
        yield conn
    finally:
        pool.putconn(conn)
