"""Shared fixtures: in-memory AWS fakes, mock HTTP and a wired pipeline."""

import io
import json
import re
import sys
import zipfile
from pathlib import Path

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

import httpx
import pytest
from botocore.exceptions import ClientError

from magicl10n.config import JOB_COMPLETE, JOB_PROCESSING, SOURCE_BATCH_FILENAME
from magicl10n.exceptions import NotFoundError
from magicl10n.package.archive import PackageSource
from magicl10n.package.manifest import ManifestRetriever
from magicl10n.pipeline.orchestrator import LocalizationPipeline
from magicl10n.storage.ledger import JobRecord
from magicl10n.storage.s3 import ObjectStorage
from magicl10n.translation.tracker import TranslationJobTracker

BUCKET = "test-bucket"
MANIFEST_URL = "https://modules.example.com/my-module/module.json"
DOWNLOAD_URL = "https://modules.example.com/my-module/my-module.zip"


class FakeS3:
    """Enough of the S3 client for ObjectStorage."""

    def __init__(self):
        self.objects = {}
        self.content_types = {}

    def put_object(self, Bucket, Key, Body, ContentType=None):
        self.objects[(Bucket, Key)] = bytes(Body)
        self.content_types[(Bucket, Key)] = ContentType

    def get_object(self, Bucket, Key):
        if (Bucket, Key) not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "missing"}}, "GetObject")
        return {"Body": io.BytesIO(self.objects[(Bucket, Key)])}

    def list_objects_v2(self, Bucket, Prefix, ContinuationToken=None):
        keys = sorted(key for bucket, key in self.objects if bucket == Bucket and key.startswith(Prefix))
        return {"Contents": [{"Key": key} for key in keys], "IsTruncated": False}

    def generate_presigned_url(self, operation, Params, ExpiresIn):
        return f"https://{Params['Bucket']}.s3.test/{Params['Key']}?expires={ExpiresIn}"

    def keys(self, prefix=""):
        return sorted(key for _, key in self.objects if key.startswith(prefix))


class FakeTranslate:
    """In-memory batch translation service with paginated listings."""

    page_size = 2

    def __init__(self):
        self.jobs = []
        self.start_calls = []
        self.list_calls = []
        self.rejected_targets = set()

    def start_text_translation_job(self, **params):
        self.start_calls.append(params)
        if params["TargetLanguageCodes"][0] in self.rejected_targets:
            raise ClientError(
                {"Error": {"Code": "LimitExceededException", "Message": "too many jobs"}},
                "StartTextTranslationJob",
            )
        job = {
            "JobId": f"job-{len(self.jobs) + 1}",
            "JobName": params["JobName"],
            "JobStatus": "SUBMITTED",
            "SourceLanguageCode": params["SourceLanguageCode"],
            "TargetLanguageCodes": params["TargetLanguageCodes"],
            "InputDataConfig": params["InputDataConfig"],
            "OutputDataConfig": params["OutputDataConfig"],
        }
        self.jobs.append(job)
        return {"JobId": job["JobId"], "JobStatus": "SUBMITTED"}

    def list_text_translation_jobs(self, Filter, NextToken=None):
        self.list_calls.append(dict(Filter))
        matching = [
            job for job in self.jobs
            if all(job.get(name) == value for name, value in Filter.items())
        ]
        start = int(NextToken or 0)
        page = matching[start:start + self.page_size]
        response = {"TextTranslationJobPropertiesList": [dict(job) for job in page]}
        if start + self.page_size < len(matching):
            response["NextToken"] = str(start + self.page_size)
        return response

    def add_job(self, name, target, status="IN_PROGRESS"):
        self.jobs.append({
            "JobId": f"job-{len(self.jobs) + 1}",
            "JobName": name,
            "JobStatus": status,
            "SourceLanguageCode": "en",
            "TargetLanguageCodes": [target],
            "InputDataConfig": {"S3Uri": f"s3://{BUCKET}/batchFiles/{name}/{target}/input/"},
            "OutputDataConfig": {"S3Uri": f"s3://{BUCKET}/batchFiles/{name}/{target}/output/"},
        })

    def set_status(self, status, target=None):
        for job in self.jobs:
            if target is None or job["TargetLanguageCodes"] == [target]:
                job["JobStatus"] = status

    def complete_all(self, s3, translate_text=None):
        """Mark every job COMPLETED and write its output where the service would."""
        translate_text = translate_text or fake_translation
        for job in self.jobs:
            target = job["TargetLanguageCodes"][0]
            input_key = job["InputDataConfig"]["S3Uri"][len(f"s3://{BUCKET}/"):] + SOURCE_BATCH_FILENAME
            source = s3.objects[(BUCKET, input_key)].decode("utf-8")
            output_prefix = job["OutputDataConfig"]["S3Uri"][len(f"s3://{BUCKET}/"):]
            output_key = f"{output_prefix}123456789012-TranslateText-{job['JobId']}/{target}.{SOURCE_BATCH_FILENAME}"
            s3.put_object(Bucket=BUCKET, Key=output_key, Body=translate_text(source, target).encode("utf-8"))
            job["JobStatus"] = "COMPLETED"


def fake_translation(document, target):
    """Mark every paragraph as translated, leaving markup as the service would."""
    return re.sub(r"<p>", f"<p>[{target}] ", document)


class FakeLedger:
    def __init__(self):
        self.records = {}

    def put_job_record(self, master_job_id, jobs, manifest):
        self.records[master_job_id] = JobRecord(master_job_id, list(jobs), manifest, JOB_PROCESSING)

    def get_job_record(self, master_job_id):
        if master_job_id not in self.records:
            raise NotFoundError(f"No translation job found with ID {master_job_id}")
        return self.records[master_job_id]

    def complete_job_record(self, master_job_id, archive_path):
        record = self.get_job_record(master_job_id)
        record.status = JOB_COMPLETE
        record.archive_path = archive_path


def make_package(files):
    """Build a ZIP archive from {path: JSON-able object or bytes}."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for path, content in files.items():
            if not isinstance(content, bytes):
                content = json.dumps(content).encode("utf-8")
            archive.writestr(path, content)
    return buffer.getvalue()


class MockWeb:
    """Routes for httpx.MockTransport; records every requested URL."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add_json(self, url, payload, status_code=200):
        self.routes[url] = (status_code, json.dumps(payload).encode("utf-8"))

    def add_bytes(self, url, content, status_code=200):
        self.routes[url] = (status_code, content)

    def handler(self, request):
        url = str(request.url)
        self.requests.append(url)
        if url not in self.routes:
            return httpx.Response(404, text="not found")
        status_code, content = self.routes[url]
        return httpx.Response(status_code, content=content)

    def client(self):
        return httpx.Client(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def base_strings():
    return {
        "greeting": {"hello": "Hello {name}!"},
        "farewell": "Goodbye",
        "count": 3,
    }


@pytest.fixture
def manifest():
    return {
        "id": "my-module",
        "languages": [
            {"lang": "en", "name": "English", "path": "lang/en.json"},
            {"lang": "fr", "name": "Français", "path": "lang/fr.json"},
        ],
        "download": DOWNLOAD_URL,
    }


@pytest.fixture
def config():
    return {
        "bucket": BUCKET,
        "role_arn": "arn:aws:iam::123456789012:role/translate",
        "max_running_translations": 1,
        "max_package_bytes": 8388608,
        "http_timeout": 5,
        "download_url_expiry": 604800,
        "target_languages": ["fr", "zh", "pt"],
    }


@pytest.fixture
def s3():
    return FakeS3()


@pytest.fixture
def translate():
    return FakeTranslate()


@pytest.fixture
def storage(s3):
    return ObjectStorage(s3, BUCKET)


@pytest.fixture
def tracker(translate, storage, config):
    return TranslationJobTracker(translate, storage, config)


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def web(manifest, base_strings):
    web = MockWeb()
    web.add_json(MANIFEST_URL, manifest)
    web.add_bytes(DOWNLOAD_URL, make_package({
        "my-module/module.json": manifest,
        "my-module/lang/en.json": base_strings,
        "my-module/lang/fr.json": {"farewell": "Au revoir"},
    }))
    return web


@pytest.fixture
def pipeline(config, storage, tracker, ledger, web):
    client = web.client()
    return LocalizationPipeline(
        config=config,
        storage=storage,
        tracker=tracker,
        ledger=ledger,
        manifest_retriever=ManifestRetriever(http_client=client),
        package_source=PackageSource(http_client=client),
        id_factory=lambda: "master-1",
    )
