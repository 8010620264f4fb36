"""
Translation job tracker.

Submits one batch translation job per target language and follows them
through the provider's job listing. All children of a master job share the
master id as their job name, so they can be listed later without storing
the provider's opaque job ids anywhere but the ledger.
"""

from typing import Any, Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from magicl10n.config import BASE_LANGUAGE_CODE, BATCH_FILES_DIR, SOURCE_BATCH_FILENAME
from magicl10n.exceptions import NotFoundError, SubmissionError, UpstreamError
from magicl10n.language_codes import to_package_code
from magicl10n.logger import get_logger
from magicl10n.storage.s3 import ObjectStorage
from magicl10n.translation.codec import encode_batch
from magicl10n.translation.models import JobStatus, TranslationJob

logger = get_logger(__name__)

STAGE = "translate"
BATCH_CONTENT_TYPE = "text/html"


def client_token(master_job_id: str, target_language_code: str) -> str:
    """Idempotency token for one child job, derived from the master id."""
    return f"{master_job_id}-{target_language_code}"[:64]


class TranslationJobTracker:
    """Submit, list and poll batch translation jobs for master jobs."""

    def __init__(self, translate_client, storage: ObjectStorage, config: Dict[str, Any]):
        self.translate = translate_client
        self.storage = storage
        self.role_arn = config.get("role_arn", "")
        self.source_language = BASE_LANGUAGE_CODE
        # master id -> listed jobs, kept for the tracker's lifetime
        self._listed_jobs: Dict[str, List[TranslationJob]] = {}

    @staticmethod
    def input_dir(master_job_id: str, target_language_code: str) -> str:
        return f"{BATCH_FILES_DIR}/{master_job_id}/{target_language_code}/input"

    @staticmethod
    def output_dir(master_job_id: str, target_language_code: str) -> str:
        return f"{BATCH_FILES_DIR}/{master_job_id}/{target_language_code}/output"

    def submit(
        self,
        master_job_id: str,
        base_table: Dict[str, Any],
        target_language_codes: List[str],
        existing_tables: Optional[Dict[str, Dict[str, Any]]] = None,
    ) -> List[TranslationJob]:
        """
        Submit one job per target language that still has untranslated strings.

        Args:
            master_job_id: Correlation id shared by every child job
            base_table: Flat base-language string table
            target_language_codes: Translation service codes, in submission order
            existing_tables: Already present tables keyed by package code

        Returns:
            The submitted jobs, in the order of `target_language_codes`.
            Languages with nothing left to translate are omitted.

        Raises:
            SubmissionError: If the provider rejects a job; carries the jobs
                already started for earlier languages
        """
        existing_tables = existing_tables or {}
        jobs = []

        for target in target_language_codes:
            target_table = existing_tables.get(to_package_code(target), {})
            document = encode_batch(base_table, target_table, target)

            if document.is_empty:
                logger.info(f"Nothing to translate for {target}, skipping job submission")
                continue

            input_dir = self.input_dir(master_job_id, target)
            output_dir = self.output_dir(master_job_id, target)
            self.storage.put_blob(
                f"{input_dir}/{SOURCE_BATCH_FILENAME}",
                document.render().encode("utf-8"),
                content_type=BATCH_CONTENT_TYPE,
            )

            params = {
                "JobName": master_job_id,
                "ClientToken": client_token(master_job_id, target),
                "DataAccessRoleArn": self.role_arn,
                "InputDataConfig": {
                    "ContentType": BATCH_CONTENT_TYPE,
                    "S3Uri": self.storage.uri(f"{input_dir}/"),
                },
                "OutputDataConfig": {
                    "S3Uri": self.storage.uri(f"{output_dir}/"),
                },
                "SourceLanguageCode": self.source_language,
                "TargetLanguageCodes": [target],
            }

            try:
                response = self.translate.start_text_translation_job(**params)
            except (ClientError, BotoCoreError) as e:
                logger.error(f"Failed to start translation job for {target}: {e}")
                raise SubmissionError(
                    f"Could not start translation job for '{target}': {e}",
                    started_jobs=jobs,
                    stage=STAGE,
                    details={"language": target, "started": [job.target_language_code for job in jobs]},
                )

            job = TranslationJob(
                master_job_id=master_job_id,
                target_language_code=target,
                source_language_code=self.source_language,
                external_job_id=response["JobId"],
                status=JobStatus.from_provider(response.get("JobStatus", JobStatus.SUBMITTED)),
                input_uri=params["InputDataConfig"]["S3Uri"],
                output_uri=params["OutputDataConfig"]["S3Uri"],
            )
            jobs.append(job)
            logger.info(
                f"Submitted job {job.external_job_id} ({self.source_language} -> {target}, "
                f"{len(document)} strings) for master job {master_job_id}"
            )

        return jobs

    def _list_jobs(self, job_filter: Dict[str, Any]) -> List[Dict[str, Any]]:
        properties = []
        params = {"Filter": job_filter}
        try:
            while True:
                response = self.translate.list_text_translation_jobs(**params)
                properties.extend(response.get("TextTranslationJobPropertiesList") or [])
                next_token = response.get("NextToken")
                if not next_token:
                    break
                params["NextToken"] = next_token
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to list translation jobs ({job_filter}): {e}")
            raise UpstreamError(f"Could not list translation jobs: {e}", stage=STAGE)
        return properties

    @staticmethod
    def _to_job(master_job_id: str, properties: Dict[str, Any]) -> TranslationJob:
        targets = properties.get("TargetLanguageCodes") or [""]
        return TranslationJob(
            master_job_id=master_job_id,
            target_language_code=targets[0],
            source_language_code=properties.get("SourceLanguageCode", ""),
            external_job_id=properties.get("JobId", ""),
            status=JobStatus.from_provider(properties.get("JobStatus")),
            input_uri=properties.get("InputDataConfig", {}).get("S3Uri", ""),
            output_uri=properties.get("OutputDataConfig", {}).get("S3Uri", ""),
            message=properties.get("Message"),
        )

    def list_by_master(self, master_job_id: str) -> List[TranslationJob]:
        """
        List the child jobs of a master job.

        Queried once per master id; later calls reuse the first listing.

        Raises:
            NotFoundError: If the provider lists no job with that name
        """
        if master_job_id in self._listed_jobs:
            return self._listed_jobs[master_job_id]

        properties = self._list_jobs({"JobName": master_job_id})
        if not properties:
            raise NotFoundError(
                f"No translation jobs listed with ID {master_job_id} found",
                details={"master_job_id": master_job_id},
            )

        jobs = [self._to_job(master_job_id, item) for item in properties]
        logger.debug(
            f"Listed {len(jobs)} jobs for master job {master_job_id}: "
            f"{[(job.target_language_code, job.status) for job in jobs]}"
        )
        self._listed_jobs[master_job_id] = jobs
        return jobs

    def forget(self, master_job_id: str):
        """Drop the memoized listing so the next call queries the provider again."""
        self._listed_jobs.pop(master_job_id, None)

    def failed_jobs(self, master_job_id: str) -> List[TranslationJob]:
        return [job for job in self.list_by_master(master_job_id) if job.is_failed]

    def is_master_ready(self, master_job_id: str) -> bool:
        """True only when every child job has completed; any failure makes it False."""
        return all(job.is_completed for job in self.list_by_master(master_job_id))

    def running_job_count(self) -> int:
        """Number of provider jobs still queued or running (admission control input)."""
        return sum(
            len(self._list_jobs({"JobStatus": status}))
            for status in JobStatus.RUNNING
        )

    def fetch_output(self, job: TranslationJob) -> str:
        """Read the translated batch document a completed job produced."""
        prefix = self.storage.key_from_uri(job.output_uri)
        suffix = f"{job.target_language_code}.{SOURCE_BATCH_FILENAME}"
        key = self.storage.find_blob(prefix, suffix)
        return self.storage.get_blob(key).decode("utf-8")
