"""
Job ledger: the durable record linking a master job id to its child jobs
and the manifest it was submitted with. It is the only state carried from
the submit phase to the retrieve phase.
"""

import json
from typing import Any, Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from magicl10n.config import JOB_COMPLETE, JOB_PROCESSING
from magicl10n.core import database as db
from magicl10n.exceptions import NotFoundError, UpstreamError
from magicl10n.logger import get_logger
from magicl10n.translation.models import TranslationJob

logger = get_logger(__name__)

STAGE = "ledger"
RECORD_PK = "TRANSLATION_JOBS"


def _record_sk(master_job_id: str) -> str:
    return f"TRANSLATION_JOB#{master_job_id}"


def _not_found(master_job_id: str) -> NotFoundError:
    return NotFoundError(
        f"No translation job found with ID {master_job_id}",
        details={"master_job_id": master_job_id},
    )


class JobRecord:
    """A ledger entry for one master job."""

    def __init__(self, master_job_id: str, jobs: List[TranslationJob], manifest: Dict[str, Any],
                 status: str = JOB_PROCESSING, archive_path: Optional[str] = None):
        self.master_job_id = master_job_id
        self.jobs = jobs
        self.manifest = manifest
        self.status = status
        self.archive_path = archive_path

    @property
    def is_complete(self) -> bool:
        return self.status == JOB_COMPLETE and bool(self.archive_path)


class DynamoJobLedger:
    """Ledger records in a DynamoDB table (pk/sk single-table layout)."""

    def __init__(self, dynamodb_resource, table_name: str):
        self.table = dynamodb_resource.Table(table_name)

    def put_job_record(self, master_job_id: str, jobs: List[TranslationJob], manifest: Dict[str, Any]):
        item = {
            "pk": RECORD_PK,
            "sk": _record_sk(master_job_id),
            "data": {
                "ID": master_job_id,
                "Jobs": [job.to_dict() for job in jobs],
                "Manifest": json.dumps(manifest, ensure_ascii=False),
                "Status": JOB_PROCESSING,
            },
        }
        try:
            self.table.put_item(Item=item)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to save ledger record {master_job_id}: {e}")
            raise UpstreamError(f"Could not save translation job record: {e}", stage=STAGE)
        logger.info(f"Saved ledger record for master job {master_job_id} ({len(jobs)} jobs)")

    def get_job_record(self, master_job_id: str) -> JobRecord:
        try:
            response = self.table.get_item(Key={"pk": RECORD_PK, "sk": _record_sk(master_job_id)})
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to read ledger record {master_job_id}: {e}")
            raise UpstreamError(f"Could not read translation job record: {e}", stage=STAGE)

        item = response.get("Item")
        if not item:
            raise _not_found(master_job_id)

        data = item.get("data", {})
        return JobRecord(
            master_job_id=master_job_id,
            jobs=[TranslationJob.from_dict(job) for job in data.get("Jobs", [])],
            manifest=json.loads(data.get("Manifest") or "{}"),
            status=data.get("Status", JOB_PROCESSING),
            archive_path=data.get("ArchivePath"),
        )

    def complete_job_record(self, master_job_id: str, archive_path: str):
        try:
            self.table.update_item(
                Key={"pk": RECORD_PK, "sk": _record_sk(master_job_id)},
                UpdateExpression="SET #data.#status = :status, #data.#path = :path",
                ExpressionAttributeNames={"#data": "data", "#status": "Status", "#path": "ArchivePath"},
                ExpressionAttributeValues={":status": JOB_COMPLETE, ":path": archive_path},
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to complete ledger record {master_job_id}: {e}")
            raise UpstreamError(f"Could not update translation job record: {e}", stage=STAGE)


class SqliteJobLedger:
    """Ledger records in the local sqlite database."""

    def put_job_record(self, master_job_id: str, jobs: List[TranslationJob], manifest: Dict[str, Any]):
        db.save_translation_job(master_job_id, [job.to_dict() for job in jobs], manifest, JOB_PROCESSING)
        logger.info(f"Saved ledger record for master job {master_job_id} ({len(jobs)} jobs)")

    def get_job_record(self, master_job_id: str) -> JobRecord:
        record = db.get_translation_job(master_job_id)
        if not record:
            raise _not_found(master_job_id)

        return JobRecord(
            master_job_id=master_job_id,
            jobs=[TranslationJob.from_dict(job) for job in record["jobs"]],
            manifest=record["manifest"],
            status=record["status"],
            archive_path=record.get("archive_path"),
        )

    def complete_job_record(self, master_job_id: str, archive_path: str):
        if not db.update_translation_job_status(master_job_id, JOB_COMPLETE, archive_path=archive_path):
            raise _not_found(master_job_id)


def create_ledger(config: Dict[str, Any], dynamodb_resource=None):
    """Build the ledger backend named in config['ledger']['backend']."""
    ledger_config = config.get("ledger", {})
    backend = ledger_config.get("backend", "dynamodb")

    if backend == "sqlite":
        return SqliteJobLedger()
    if backend == "dynamodb":
        return DynamoJobLedger(dynamodb_resource, ledger_config.get("table_name", "FoundryMagicL10n"))

    raise ValueError(f"Unknown ledger backend: {backend}")
