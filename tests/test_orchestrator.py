import io
import json
import zipfile

import pytest

from magicl10n.exceptions import UpstreamError, ValidationError
from magicl10n.language_codes import to_package_code
from magicl10n.pipeline.orchestrator import _stage, diff_targets

from conftest import BUCKET, DOWNLOAD_URL, MANIFEST_URL, make_package


def _archive_files(s3, key):
    with zipfile.ZipFile(io.BytesIO(s3.objects[(BUCKET, key)])) as archive:
        return {name: json.loads(archive.read(name)) for name in archive.namelist()}


def test_diff_targets_drops_base_and_complete_languages():
    base = {"a": "A", "b": "B", "n": 1}
    tables = {"cn": {"a": "甲", "b": "乙"}, "fr": {"a": "A"}}

    assert diff_targets(["en", "fr", "zh", "pt"], base, tables) == ["fr", "pt"]


def test_diff_targets_raises_when_everything_is_translated():
    with pytest.raises(ValidationError, match="Cannot find any target languages to translate to"):
        diff_targets(["en", "fr"], {"a": "A"}, {"fr": {"a": "Á"}})


def test_submit_starts_jobs_and_records_the_master_job(pipeline, translate, ledger, s3):
    response = pipeline.submit_translation_request(MANIFEST_URL)

    assert response.status_code == 200
    assert response.body["master_job_id"] == "master-1"
    assert [call["TargetLanguageCodes"] for call in translate.start_calls] == [["fr"], ["zh"], ["pt"]]

    record = ledger.get_job_record("master-1")
    assert [job.target_language_code for job in record.jobs] == ["fr", "zh", "pt"]
    assert record.manifest["download"] == DOWNLOAD_URL

    assert (BUCKET, "packages_orig/master-1.zip") in s3.objects
    context = json.loads(s3.objects[(BUCKET, "batchFiles/master-1/context.json")])
    assert context == {"base_nested": True, "existing": {"fr": {"farewell": "Au revoir"}}}


def test_submit_is_rejected_while_busy_without_touching_the_package(pipeline, translate, web):
    translate.add_job("someone-else", "de", "IN_PROGRESS")

    response = pipeline.submit_translation_request(MANIFEST_URL)

    assert response.status_code == 429
    assert response.body["code"] == "busy"
    assert web.requests == []
    assert translate.start_calls == []


def test_submit_requires_a_manifest_url(pipeline):
    response = pipeline.submit_translation_request("  ")

    assert response.status_code == 400
    assert response.body["code"] == "manifest_url_missing"
    assert response.body["stage"] == "ManifestFetch"


def test_submit_reports_unreachable_manifest(pipeline):
    response = pipeline.submit_translation_request("https://modules.example.com/missing.json")

    assert response.status_code == 502
    assert response.body["stage"] == "manifest"


def test_submit_reports_manifest_without_base_language(pipeline, web, manifest):
    manifest["languages"] = [{"lang": "fr", "name": "Français", "path": "lang/fr.json"}]
    web.add_json(MANIFEST_URL, manifest)

    response = pipeline.submit_translation_request(MANIFEST_URL)

    assert response.status_code == 400
    assert response.body["code"] == "base_language_missing"
    assert response.body["stage"] == "ManifestValidate"


def test_submit_with_nothing_left_to_translate(pipeline, web, translate, ledger, manifest, base_strings):
    complete = {"greeting": {"hello": "X {name}"}, "farewell": "X"}
    manifest["languages"] += [
        {"lang": "cn", "name": "中文", "path": "lang/cn.json"},
        {"lang": "pt-BR", "name": "Português", "path": "lang/pt-BR.json"},
    ]
    web.add_json(MANIFEST_URL, manifest)
    web.add_bytes(DOWNLOAD_URL, make_package({
        "lang/en.json": base_strings,
        "lang/fr.json": complete,
        "lang/cn.json": complete,
        "lang/pt-BR.json": complete,
    }))

    response = pipeline.submit_translation_request(MANIFEST_URL)

    assert response.status_code == 400
    assert response.body["error"] == "Cannot find any target languages to translate to"
    assert response.body["stage"] == "DiffTargets"
    assert translate.start_calls == []
    assert ledger.records == {}


def test_retrieve_reports_processing_until_every_job_completes(pipeline, translate):
    pipeline.submit_translation_request(MANIFEST_URL)
    translate.set_status("COMPLETED", "fr")

    response = pipeline.retrieve_translation_result("master-1")

    assert response.status_code == 200
    assert response.body["status"] == "PROCESSING"


def test_retrieve_builds_the_translated_bundle(pipeline, translate, s3, ledger):
    pipeline.submit_translation_request(MANIFEST_URL)
    translate.complete_all(s3)

    response = pipeline.retrieve_translation_result("master-1")

    assert response.status_code == 200
    assert response.body["status"] == "COMPLETE"
    assert response.body["download_url"] == (
        f"https://{BUCKET}.s3.test/downloads/master-1.zip?expires=604800"
    )

    files = _archive_files(s3, "downloads/master-1.zip")
    assert set(files) == {"lang/fr.json", "lang/cn.json", "lang/pt-BR.json", "languages.json"}
    assert files["lang/fr.json"] == {"greeting": {"hello": "[fr] Hello {name}!"}, "farewell": "Au revoir"}
    assert files["lang/cn.json"] == {"greeting": {"hello": "[zh] Hello {name}!"}, "farewell": "[zh] Goodbye"}
    assert files["languages.json"] == [
        {"lang": "en", "name": "English", "path": "lang/en.json"},
        {"lang": "fr", "name": "Français", "path": "lang/fr.json"},
        {"lang": "cn", "name": "中文 (Chinese)", "path": "lang/cn.json"},
        {"lang": "pt-BR", "name": "Português (Brasil)", "path": "lang/pt-BR.json"},
    ]

    assert ledger.get_job_record("master-1").is_complete


def test_retrieve_after_completion_does_not_decode_again(pipeline, translate, s3):
    pipeline.submit_translation_request(MANIFEST_URL)
    translate.complete_all(s3)
    first = pipeline.retrieve_translation_result("master-1")
    list_calls = len(translate.list_calls)

    second = pipeline.retrieve_translation_result("master-1")

    assert second.body["download_url"] == first.body["download_url"]
    assert len(translate.list_calls) == list_calls


def test_retrieve_reports_failed_children(pipeline, translate, s3):
    pipeline.submit_translation_request(MANIFEST_URL)
    translate.complete_all(s3)
    translate.set_status("FAILED", "zh")

    response = pipeline.retrieve_translation_result("master-1")

    assert response.status_code == 502
    assert response.body["code"] == "translation_job_failed"
    assert response.body["stage"] == "PollStatus"
    assert response.body["details"]["failed"][0]["language"] == "zh"


def test_retrieve_unknown_master_job(pipeline):
    response = pipeline.retrieve_translation_result("does-not-exist")

    assert response.status_code == 404
    assert response.body["stage"] == "LedgerRead"


def test_retrieve_requires_an_id(pipeline):
    response = pipeline.retrieve_translation_result(None)

    assert response.status_code == 400
    assert response.body["code"] == "jobs_id_missing"


def test_rejected_job_keeps_the_started_ones_retrievable(pipeline, translate, ledger, s3):
    translate.rejected_targets.add("zh")

    response = pipeline.submit_translation_request(MANIFEST_URL)

    assert response.status_code == 502
    assert response.body["code"] == "translation_submit_failed"
    assert response.body["details"]["master_job_id"] == "master-1"
    assert response.body["details"]["started"] == ["fr"]
    record = ledger.get_job_record("master-1")
    assert [job.target_language_code for job in record.jobs] == ["fr"]

    translate.complete_all(s3)
    retrieved = pipeline.retrieve_translation_result("master-1")

    assert retrieved.body["status"] == "COMPLETE"
    assert set(_archive_files(s3, "downloads/master-1.zip")) == {"lang/fr.json", "languages.json"}


def test_rejected_first_job_records_nothing(pipeline, translate, ledger):
    translate.rejected_targets.add("fr")

    response = pipeline.submit_translation_request(MANIFEST_URL)

    assert response.status_code == 502
    assert response.body["details"]["master_job_id"] == "master-1"
    assert ledger.records == {}


def test_stage_reports_unknown_languages_as_lookup_errors():
    with pytest.raises(UpstreamError) as excinfo:
        with _stage("Compose"):
            to_package_code("xx")

    assert excinfo.value.code == "language_lookup_error"
    assert excinfo.value.stage == "Compose"


def test_stage_does_not_mistake_key_errors_for_lookup_errors():
    with pytest.raises(UpstreamError) as excinfo:
        with _stage("Decode"):
            {}["missing"]

    assert excinfo.value.code == "upstream_error"
    assert excinfo.value.stage == "Decode"


def test_submit_with_unknown_configured_language(pipeline, config, translate):
    config["target_languages"] = ["fr", "xx"]

    response = pipeline.submit_translation_request(MANIFEST_URL)

    assert response.status_code == 502
    assert response.body["code"] == "language_lookup_error"
    assert response.body["stage"] == "DiffTargets"
    assert translate.start_calls == []
