"""
Localization pipeline orchestrator.

Two independent invocations, correlated only by the master job id:

Submit:   Admission -> ManifestFetch -> ManifestValidate -> PackageFetch
          -> StringsExtract -> DiffTargets -> Submit -> LedgerWrite
Retrieve: LedgerRead -> PollStatus -> Decode -> Compose -> PersistFiles
          -> Archive

A failing stage short-circuits to a failure response carrying the stage's
message. Nothing is retried here.
"""

import json
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from magicl10n.clients import create_clients
from magicl10n.config import (
    BASE_LANGUAGE_CODE,
    BATCH_FILES_DIR,
    DOWNLOADS_DIR,
    JOB_COMPLETE,
    JOB_PROCESSING,
    PACKAGES_DIR,
    SUBMISSION_CONTEXT_FILENAME,
    load_config,
)
from magicl10n.exceptions import (
    BusyError,
    JobFailedError,
    LocalizationError,
    NotFoundError,
    SubmissionError,
    UpstreamError,
    ValidationError,
)
from magicl10n.language_codes import UnknownLanguageError, to_package_code
from magicl10n.logger import get_logger
from magicl10n.package.archive import PackageSource, extract_language_tables
from magicl10n.package.manifest import ManifestRetriever, get_language_descriptors, validate_manifest
from magicl10n.storage.ledger import create_ledger
from magicl10n.storage.s3 import ObjectStorage
from magicl10n.translation import composer
from magicl10n.translation.codec import decode_job_output
from magicl10n.translation.tracker import TranslationJobTracker
from magicl10n.translation.utils import build_json_from_pairs, is_translatable, missing_keys

logger = get_logger(__name__)


@dataclass
class PipelineResponse:
    """Structured result of a pipeline entry point."""
    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    @classmethod
    def from_error(cls, error: LocalizationError) -> "PipelineResponse":
        return cls(status_code=error.status_code, body=error.to_dict())


def diff_targets(
    supported_codes: List[str],
    base_table: Dict[str, Any],
    language_tables: Dict[str, Dict[str, Any]],
    base_code: str = BASE_LANGUAGE_CODE,
) -> List[str]:
    """
    Target languages that still need translating.

    Configured codes minus the base language minus languages whose package
    code already holds a translation for every translatable base key.

    Args:
        supported_codes: Configured translation service codes, in order
        base_table: Flat base-language string table
        language_tables: Tables present in the package, keyed by package code

    Raises:
        ValidationError: If nothing is left to translate
        UnknownLanguageError: If a configured code has no lookup entry
    """
    targets = []
    for code in supported_codes:
        package_code = to_package_code(code)
        if code == base_code or package_code == base_code or code in targets:
            continue

        existing = language_tables.get(package_code)
        if existing is not None and not missing_keys(base_table, existing):
            logger.debug(f"Skipping {code}: package already ships a complete {package_code} translation")
            continue

        targets.append(code)

    if not targets:
        raise ValidationError(
            "Cannot find any target languages to translate to",
            code="nothing_to_translate",
        )
    return targets


@contextmanager
def _stage(name: str):
    logger.debug(f"Entering stage {name}")
    try:
        yield
    except LocalizationError as e:
        if not e.stage:
            e.stage = name
        raise
    except UnknownLanguageError as e:
        logger.error(f"Language lookup failed during {name}: {e}")
        raise UpstreamError(str(e).strip("'\""), code="language_lookup_error", stage=name)
    except Exception as e:
        logger.exception(f"Unexpected failure during {name}: {e}")
        raise UpstreamError(f"{name} failed: {e}", stage=name)


class LocalizationPipeline:
    """Sequences the collaborators for the submit and retrieve phases."""

    def __init__(
        self,
        config: Dict[str, Any],
        storage: ObjectStorage,
        tracker: TranslationJobTracker,
        ledger,
        manifest_retriever: ManifestRetriever,
        package_source: PackageSource,
        id_factory: Callable[[], str] = None,
    ):
        self.config = config
        self.storage = storage
        self.tracker = tracker
        self.ledger = ledger
        self.manifest_retriever = manifest_retriever
        self.package_source = package_source
        self.id_factory = id_factory or (lambda: str(uuid.uuid4()))

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None, clients=None) -> "LocalizationPipeline":
        """Wire a pipeline against real AWS clients."""
        config = config or load_config()
        clients = clients or create_clients(config)

        timeout = float(config.get("http_timeout", 5))
        max_bytes = int(config.get("max_package_bytes", 8388608))
        storage = ObjectStorage(clients.s3, config.get("bucket", ""))

        return cls(
            config=config,
            storage=storage,
            tracker=TranslationJobTracker(clients.translate, storage, config),
            ledger=create_ledger(config, clients.dynamodb),
            manifest_retriever=ManifestRetriever(timeout=timeout, max_bytes=max_bytes),
            package_source=PackageSource(timeout=timeout, max_bytes=max_bytes),
        )

    # ------------------------------------------------------------
    # Phase 1: submit
    # ------------------------------------------------------------

    def submit_translation_request(self, manifest_url: Optional[str]) -> PipelineResponse:
        """
        Start translating the package behind `manifest_url`.

        Returns:
            200 with {"master_job_id"}; 429 when busy; 400/502 on failure
        """
        try:
            master_job_id = self._submit(manifest_url)
        except LocalizationError as e:
            return self._failure(e)
        except Exception as e:
            logger.exception(f"Unhandled error while submitting translation request: {e}")
            return self._failure(LocalizationError(f"Unexpected error: {e}"))

        return PipelineResponse(200, {"master_job_id": master_job_id, "status": JOB_PROCESSING})

    def _check_admission(self):
        ceiling = int(self.config.get("max_running_translations", 1))
        running = self.tracker.running_job_count()
        if running >= ceiling:
            logger.info(f"Too many jobs processing ({running} >= {ceiling}), rejecting request")
            raise BusyError(
                "Too many jobs are processing right now, please try again later",
                details={"running": running, "limit": ceiling},
            )

    def _submit(self, manifest_url: Optional[str]) -> str:
        with _stage("Admission"):
            self._check_admission()

        with _stage("ManifestFetch"):
            if not manifest_url or not isinstance(manifest_url, str) or not manifest_url.strip():
                raise ValidationError('No manifest URL defined in "manifest_url"', code="manifest_url_missing")
            manifest_url = manifest_url.strip()
            if not manifest_url.startswith(("http://", "https://")):
                raise ValidationError(f'Manifest URL "{manifest_url}" must be an http(s) URL')
            manifest = self.manifest_retriever.retrieve(manifest_url)

        with _stage("ManifestValidate"):
            validate_manifest(manifest)

        master_job_id = self.id_factory()
        logger.info(f"Master job {master_job_id} created for {manifest_url}")

        with _stage("PackageFetch"):
            package = self.package_source.fetch(manifest["download"])
            self.storage.put_blob(f"{PACKAGES_DIR}/{master_job_id}.zip", package, content_type="application/zip")

        with _stage("StringsExtract"):
            extracted = extract_language_tables(
                self.package_source, package, get_language_descriptors(manifest)
            )
            base_table = extracted.tables.get(BASE_LANGUAGE_CODE)
            if base_table is None:
                raise ValidationError(
                    f"Base language file for {BASE_LANGUAGE_CODE} could not be found in the package",
                    code="base_language_missing",
                )

        with _stage("DiffTargets"):
            if not any(is_translatable(key, value) for key, value in base_table.items()):
                raise ValidationError("Base language file has no strings to translate", code="nothing_to_translate")
            targets = diff_targets(self.config.get("target_languages", []), base_table, extracted.tables)
            logger.info(f"Translating {len(base_table)} strings into {targets}")

        with _stage("Submit"):
            self._save_context(master_job_id, targets, extracted)
            try:
                jobs = self.tracker.submit(master_job_id, base_table, targets, extracted.tables)
            except SubmissionError as e:
                self._record_partial_submission(master_job_id, e, manifest)
                raise
            if not jobs:
                raise ValidationError("Cannot find any strings left to translate", code="nothing_to_translate")

        with _stage("LedgerWrite"):
            self.ledger.put_job_record(master_job_id, jobs, manifest)

        return master_job_id

    def _record_partial_submission(self, master_job_id: str, error: SubmissionError, manifest: Dict[str, Any]):
        """Keep jobs that did start on the ledger so they can still be retrieved."""
        error.details["master_job_id"] = master_job_id
        if not error.started_jobs:
            return
        logger.warning(
            f"Submission of {master_job_id} stopped after {len(error.started_jobs)} job(s), recording them"
        )
        self.ledger.put_job_record(master_job_id, error.started_jobs, manifest)

    def _context_path(self, master_job_id: str) -> str:
        return f"{BATCH_FILES_DIR}/{master_job_id}/{SUBMISSION_CONTEXT_FILENAME}"

    def _save_context(self, master_job_id: str, targets: List[str], extracted):
        """Keep what retrieval needs from the package: partial human translations and file shape."""
        existing = {}
        for code in targets:
            package_code = to_package_code(code)
            if package_code in extracted.tables:
                existing[package_code] = extracted.tables[package_code]

        context = {
            "base_nested": extracted.nested.get(BASE_LANGUAGE_CODE, False),
            "existing": existing,
        }
        self.storage.put_blob(
            self._context_path(master_job_id),
            json.dumps(context, ensure_ascii=False).encode("utf-8"),
            content_type="application/json",
        )

    def _load_context(self, master_job_id: str) -> Dict[str, Any]:
        try:
            return json.loads(self.storage.get_blob(self._context_path(master_job_id)).decode("utf-8"))
        except NotFoundError:
            logger.warning(f"No submission context stored for {master_job_id}, assuming no prior translations")
            return {"base_nested": False, "existing": {}}

    # ------------------------------------------------------------
    # Phase 2: retrieve
    # ------------------------------------------------------------

    def retrieve_translation_result(self, master_job_id: Optional[str]) -> PipelineResponse:
        """
        Check on a master job and build the download bundle once every child is done.

        Returns:
            200 with {"status": "PROCESSING"} or {"status": "COMPLETE", "download_url"};
            404 for unknown ids; 502 when a child job failed
        """
        try:
            return self._retrieve(master_job_id)
        except LocalizationError as e:
            return self._failure(e)
        except Exception as e:
            logger.exception(f"Unhandled error while retrieving {master_job_id}: {e}")
            return self._failure(LocalizationError(f"Unexpected error: {e}"))

    def _retrieve(self, master_job_id: Optional[str]) -> PipelineResponse:
        with _stage("LedgerRead"):
            if not master_job_id or not str(master_job_id).strip():
                raise ValidationError('No Jobs ID defined in "jobs_id"', code="jobs_id_missing")
            master_job_id = str(master_job_id).strip()
            record = self.ledger.get_job_record(master_job_id)

        if record.is_complete:
            logger.info(f"Master job {master_job_id} already archived")
            return self._complete_response(master_job_id, record.archive_path)

        with _stage("PollStatus"):
            self.tracker.forget(master_job_id)
            failed = self.tracker.failed_jobs(master_job_id)
            if failed:
                raise JobFailedError(
                    f"{len(failed)} translation job(s) failed for {master_job_id}",
                    details={
                        "failed": [
                            {
                                "language": job.target_language_code,
                                "job_id": job.external_job_id,
                                "message": job.message,
                            }
                            for job in failed
                        ]
                    },
                )
            if not self.tracker.is_master_ready(master_job_id):
                logger.info(f"Master job {master_job_id} still processing")
                return PipelineResponse(200, {"master_job_id": master_job_id, "status": JOB_PROCESSING})

        with _stage("Decode"):
            translated: Dict[str, Dict[str, str]] = {}
            for job in self.tracker.list_by_master(master_job_id):
                decode_job_output(job, self.tracker.fetch_output(job), translated)
            context = self._load_context(master_job_id)
            translated = self._merge_existing(translated, context.get("existing", {}))

        with _stage("Compose"):
            descriptors = composer.generate(record.manifest, translated)

        with _stage("PersistFiles"):
            directory = f"{DOWNLOADS_DIR}/{master_job_id}"
            files = self._build_files(translated, descriptors, context.get("base_nested", False))
            names = self.storage.save_files(directory, files)

        with _stage("Archive"):
            archive_path = self.storage.create_zip(directory, names, f"{DOWNLOADS_DIR}/{master_job_id}.zip")
            self.ledger.complete_job_record(master_job_id, archive_path)

        logger.info(f"Master job {master_job_id} complete: {sorted(translated)}")
        return self._complete_response(master_job_id, archive_path)

    @staticmethod
    def _merge_existing(translated: Dict[str, Dict[str, str]],
                        existing: Dict[str, Dict[str, Any]]) -> Dict[str, Dict[str, str]]:
        """Lay pre-existing human translations over machine output; human text always wins."""
        merged = {}
        for code, table in translated.items():
            combined = dict(table)
            for key, value in (existing.get(code) or {}).items():
                if is_translatable(key, value):
                    combined[key] = value
            merged[code] = combined
        return merged

    @staticmethod
    def _build_files(translated: Dict[str, Dict[str, str]], descriptors, nested: bool) -> Dict[str, bytes]:
        paths = {descriptor.language_code: descriptor.relative_source_path for descriptor in descriptors}
        files = {}

        for code, table in translated.items():
            content = build_json_from_pairs(list(table.items())) if nested else table
            files[paths[code]] = json.dumps(content, indent=2, ensure_ascii=False).encode("utf-8")

        files["languages.json"] = json.dumps(
            composer.to_manifest_block(descriptors), indent=2, ensure_ascii=False
        ).encode("utf-8")
        return files

    def _complete_response(self, master_job_id: str, archive_path: str) -> PipelineResponse:
        with _stage("Archive"):
            expiry = int(self.config.get("download_url_expiry", 604800))
            download_url = self.storage.download_url(archive_path, expiry)
        return PipelineResponse(200, {
            "master_job_id": master_job_id,
            "status": JOB_COMPLETE,
            "download_url": download_url,
        })

    @staticmethod
    def _failure(error: LocalizationError) -> PipelineResponse:
        if isinstance(error, BusyError):
            logger.info(error.message)
        else:
            logger.warning(f"[{error.stage or 'pipeline'}] {error.message}")
        return PipelineResponse.from_error(error)
