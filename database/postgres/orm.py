import logging
import re
import sqlite3

import psycopg2

from utils.constants import DATABASE_URL
from utils.errors import StoreError

logger = logging.getLogger(__name__)

_NAMED_PARAM = re.compile(r"%\((\w+)\)s")

# Driver errors the repositories translate into StoreError
DatabaseError = (sqlite3.Error, psycopg2.Error)
# Constraint violations, caught before the broader DatabaseError
IntegrityError = (sqlite3.IntegrityError, psycopg2.IntegrityError)


def is_sqlite() -> bool:
    return bool(DATABASE_URL) and DATABASE_URL.startswith("sqlite://")


def get_connection():
    """Get database connection - supports both PostgreSQL and SQLite for testing."""
    if not DATABASE_URL:
        raise RuntimeError("DATABASE_URL environment variable not set")

    try:
        if is_sqlite():
            # SQLite connection for testing
            db_path = DATABASE_URL.replace("sqlite://", "")
            return sqlite3.connect(db_path)
        # PostgreSQL connection for production
        return psycopg2.connect(DATABASE_URL)
    except DatabaseError as e:
        logger.error(f"Could not connect to database: {e}")
        raise StoreError() from e


def adapt_query(sql: str) -> str:
    """Rewrite psycopg2 ``%(name)s`` placeholders to sqlite3's ``:name`` style."""
    if is_sqlite():
        return _NAMED_PARAM.sub(r":\1", sql)
    return sql
