"""
Database Schema Management Module

This module handles database initialization and schema upgrades.
For CRUD operations, see core/database.py
"""

import sqlite3

# Import database module to use DB_FILE and get_connection dynamically
# This ensures monkeypatching in tests works correctly
import magicl10n.core.database as db

DB_VERSION = 1  # Increment when schema changes


def get_connection():
    """Get a database connection using the database module's DB_FILE."""
    return db.get_connection()


def get_db_version() -> int:
    """Get current database version."""
    try:
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT version FROM db_version LIMIT 1")
            row = cursor.fetchone()
            return row[0] if row else 0
    except sqlite3.OperationalError:
        return 0


def set_db_version(version: int):
    """Set database version."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("CREATE TABLE IF NOT EXISTS db_version (version INTEGER)")
        cursor.execute("DELETE FROM db_version")
        cursor.execute("INSERT INTO db_version (version) VALUES (?)", (version,))
        conn.commit()


def initialize_database():
    """Initializes the database and creates the tables."""
    from magicl10n.logger import get_logger
    logger = get_logger(__name__)

    db.DB_FILE.parent.mkdir(parents=True, exist_ok=True)

    with get_connection() as conn:
        cursor = conn.cursor()

        cursor.execute("""
        CREATE TABLE IF NOT EXISTS translation_jobs (
            master_job_id TEXT PRIMARY KEY,
            jobs TEXT NOT NULL,
            manifest TEXT NOT NULL,
            status TEXT NOT NULL,
            archive_path TEXT,
            created_at TIMESTAMP,
            updated_at TIMESTAMP
        )
        """)

        cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_translation_jobs_status
        ON translation_jobs (status)
        """)

        conn.commit()

    current_version = get_db_version()
    if current_version < DB_VERSION:
        logger.info(f"Database schema at version {current_version}, setting {DB_VERSION}")
        set_db_version(DB_VERSION)
