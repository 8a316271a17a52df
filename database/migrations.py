import logging
import os

from database.postgres.orm import get_connection, is_sqlite
from utils.constants import MIGRATIONS_DIR

logger = logging.getLogger(__name__)


def run_migrations_sync():
    """Apply the SQL migration files in order, converting them for SQLite when testing."""
    logger.info("Starting database migrations (sync)...")

    migration_files = sorted(
        [f for f in os.listdir(MIGRATIONS_DIR) if f.endswith(".sql")]
    )

    if not migration_files:
        logger.info("No migration files found.")
        return

    sqlite = is_sqlite()
    conn = get_connection()
    cur = conn.cursor()
    try:
        for filename in migration_files:
            logger.info(f"Executing migration: {filename}")
            with open(os.path.join(MIGRATIONS_DIR, filename), "r") as f:
                sql_code = f.read()

            if sqlite:
                sql_code = _convert_postgres_to_sqlite(sql_code)

            try:
                if sqlite:
                    # SQLite doesn't support executing multiple statements at once
                    statements = [stmt.strip() for stmt in sql_code.split(';') if stmt.strip()]
                    for statement in statements:
                        cur.execute(statement)
                else:
                    cur.execute(sql_code)
                conn.commit()
                logger.info(f"✓ Successfully executed migration: {filename}")
            except Exception as e:
                conn.rollback()
                logger.error(f"✗ Migration {filename} failed: {e}")
                raise
    finally:
        cur.close()
        conn.close()

    logger.info("Finished executing migrations (sync).")


def _convert_postgres_to_sqlite(sql_code: str) -> str:
    """Convert PostgreSQL-specific SQL to SQLite-compatible SQL."""
    sql_code = sql_code.replace("SERIAL PRIMARY KEY", "INTEGER PRIMARY KEY AUTOINCREMENT")
    sql_code = sql_code.replace("VARCHAR(255)", "TEXT")
    sql_code = sql_code.replace("VARCHAR(100)", "TEXT")
    sql_code = sql_code.replace("TIMESTAMP DEFAULT CURRENT_TIMESTAMP", "DATETIME DEFAULT CURRENT_TIMESTAMP")
    sql_code = sql_code.replace("ON DELETE CASCADE", "")
    # SQLite spells the two-argument LEAST/GREATEST as scalar min/max
    sql_code = sql_code.replace("LEAST(", "min(")
    sql_code = sql_code.replace("GREATEST(", "max(")
    return sql_code
