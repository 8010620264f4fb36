"""
AWS Lambda entry points.

`acceptor_handler` starts a translation, `retriever_handler` checks on it.
Both answer in the API Gateway proxy response shape.
"""

import json
from typing import Any, Dict, Optional

from magicl10n.config import initialize_app
from magicl10n.exceptions import LocalizationError
from magicl10n.logger import get_logger
from magicl10n.pipeline.orchestrator import LocalizationPipeline, PipelineResponse

logger = get_logger(__name__)

RESPONSE_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
}

# Reused across warm invocations of the same container
_pipeline: Optional[LocalizationPipeline] = None


def get_pipeline() -> LocalizationPipeline:
    global _pipeline
    if _pipeline is None:
        _pipeline = LocalizationPipeline.from_config(initialize_app())
    return _pipeline


def set_pipeline(pipeline: Optional[LocalizationPipeline]):
    """Replace the cached pipeline (None forces rewiring on next use)."""
    global _pipeline
    _pipeline = pipeline


def _event_parameter(event: Dict[str, Any], name: str) -> Optional[str]:
    """Read a parameter from the query string, falling back to a JSON body."""
    event = event or {}
    params = event.get("queryStringParameters") or {}
    if params.get(name):
        return params[name]

    body = event.get("body")
    if not body:
        return None
    if isinstance(body, str):
        try:
            body = json.loads(body)
        except json.JSONDecodeError:
            logger.warning("Ignoring request body that is not JSON")
            return None
    if isinstance(body, dict):
        return body.get(name)
    return None


def to_gateway_response(response: PipelineResponse) -> Dict[str, Any]:
    return {
        "statusCode": response.status_code,
        "headers": dict(RESPONSE_HEADERS),
        "body": json.dumps(response.body, ensure_ascii=False),
    }


def acceptor_handler(event, context):
    manifest_url = _event_parameter(event, "manifest_url")
    logger.info(f"Acceptor invoked for manifest {manifest_url}")
    try:
        pipeline = get_pipeline()
    except LocalizationError as e:
        logger.error(f"Could not wire the pipeline: {e.message}")
        return to_gateway_response(PipelineResponse.from_error(e))
    return to_gateway_response(pipeline.submit_translation_request(manifest_url))


def retriever_handler(event, context):
    jobs_id = _event_parameter(event, "jobs_id")
    logger.info(f"Retriever invoked for master job {jobs_id}")
    try:
        pipeline = get_pipeline()
    except LocalizationError as e:
        logger.error(f"Could not wire the pipeline: {e.message}")
        return to_gateway_response(PipelineResponse.from_error(e))
    return to_gateway_response(pipeline.retrieve_translation_result(jobs_id))
