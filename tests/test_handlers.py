import json

import pytest

from magicl10n import handlers

from conftest import MANIFEST_URL


@pytest.fixture(autouse=True)
def wired_pipeline(pipeline):
    handlers.set_pipeline(pipeline)
    yield pipeline
    handlers.set_pipeline(None)


def test_acceptor_reads_query_string_parameters(translate):
    response = handlers.acceptor_handler({"queryStringParameters": {"manifest_url": MANIFEST_URL}}, None)

    assert response["statusCode"] == 200
    assert response["headers"]["Content-Type"] == "application/json"
    assert json.loads(response["body"]) == {"master_job_id": "master-1", "status": "PROCESSING"}
    assert len(translate.start_calls) == 3


def test_acceptor_reads_json_body():
    response = handlers.acceptor_handler({"body": json.dumps({"manifest_url": MANIFEST_URL})}, None)

    assert response["statusCode"] == 200


def test_acceptor_without_manifest_url():
    response = handlers.acceptor_handler({"queryStringParameters": None, "body": "not json"}, None)

    assert response["statusCode"] == 400
    assert json.loads(response["body"])["code"] == "manifest_url_missing"


def test_retriever_round_trip(translate, s3):
    handlers.acceptor_handler({"queryStringParameters": {"manifest_url": MANIFEST_URL}}, None)
    translate.complete_all(s3)

    response = handlers.retriever_handler({"queryStringParameters": {"jobs_id": "master-1"}}, None)

    body = json.loads(response["body"])
    assert response["statusCode"] == 200
    assert body["status"] == "COMPLETE"


def test_retriever_unknown_job():
    response = handlers.retriever_handler({"queryStringParameters": {"jobs_id": "nope"}}, None)

    assert response["statusCode"] == 404


def test_handlers_report_missing_bucket(monkeypatch):
    from magicl10n.clients import AwsClients
    from magicl10n.pipeline import orchestrator

    handlers.set_pipeline(None)
    monkeypatch.setattr(handlers, "initialize_app", lambda: {"bucket": "", "ledger": {"backend": "sqlite"}})
    monkeypatch.setattr(orchestrator, "create_clients", lambda config: AwsClients(None, None, None))

    response = handlers.acceptor_handler({"queryStringParameters": {"manifest_url": MANIFEST_URL}}, None)

    assert response["statusCode"] == 502
    assert json.loads(response["body"])["code"] == "storage_config_missing"
