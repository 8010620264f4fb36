"""
Core module - Local job ledger database

This module provides:
- database: CRUD operations for translation job records
- schema: Database initialization
"""

from magicl10n.core.database import (
    DB_FILE,
    get_connection,
    save_translation_job,
    get_translation_job,
    update_translation_job_status,
    delete_translation_job,
)

from magicl10n.core.schema import (
    DB_VERSION,
    get_db_version,
    set_db_version,
    initialize_database,
)
