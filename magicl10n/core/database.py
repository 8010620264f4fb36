"""
Database CRUD Operations Module

Local (sqlite) storage for translation job ledger records. Used when the
ledger backend is configured as `sqlite`; the cloud deployment keeps the same
records in DynamoDB (see storage/ledger.py).

For schema management, see core/schema.py
"""

import json
import os
import sqlite3
from pathlib import Path
from typing import Optional, List, Dict, Any

DB_FILE = Path(os.environ.get("MAGICL10N_DB_FILE", Path(__file__).parent.parent / "translations.db"))


def get_connection():
    """Get a database connection."""
    return sqlite3.connect(DB_FILE)


# ============================================================
# Translation Job CRUD Operations
# ============================================================

def save_translation_job(master_job_id: str, jobs: List[Dict[str, Any]], manifest: Dict[str, Any],
                         status: str):
    """Create or replace the ledger record of a master job."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            INSERT OR REPLACE INTO translation_jobs (master_job_id, jobs, manifest, status, created_at)
            VALUES (?, ?, ?, ?, datetime('now'))
        """, (
            master_job_id,
            json.dumps(jobs, ensure_ascii=False),
            json.dumps(manifest, ensure_ascii=False),
            status,
        ))
        conn.commit()


def get_translation_job(master_job_id: str) -> Optional[Dict[str, Any]]:
    """Get the ledger record of a master job, with JSON columns decoded."""
    with get_connection() as conn:
        conn.row_factory = sqlite3.Row
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM translation_jobs WHERE master_job_id = ?", (master_job_id,))
        row = cursor.fetchone()
        if not row:
            return None

        record = dict(row)
        record["jobs"] = json.loads(record["jobs"])
        record["manifest"] = json.loads(record["manifest"])
        return record


def update_translation_job_status(master_job_id: str, status: str, archive_path: str = None):
    """Update a master job's status (and archive path once complete)."""
    with get_connection() as conn:
        cursor = conn.cursor()
        updates = ["status = ?", "updated_at = datetime('now')"]
        params = [status]

        if archive_path is not None:
            updates.append("archive_path = ?")
            params.append(archive_path)

        params.append(master_job_id)
        cursor.execute(f"UPDATE translation_jobs SET {', '.join(updates)} WHERE master_job_id = ?", params)
        conn.commit()
        return cursor.rowcount > 0


def delete_translation_job(master_job_id: str) -> bool:
    """Delete the ledger record of a master job."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("DELETE FROM translation_jobs WHERE master_job_id = ?", (master_job_id,))
        conn.commit()
        return cursor.rowcount > 0
