"""Translation request API routes."""

from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request

from magicl10n.exceptions import ValidationError
from magicl10n.logger import get_logger
from magicl10n.pipeline.orchestrator import LocalizationPipeline, PipelineResponse

translations_bp = Blueprint("translations", __name__)
logger = get_logger(__name__)

PIPELINE_EXTENSION = "magicl10n.pipeline"


def get_pipeline() -> LocalizationPipeline:
    """The app's pipeline, wired against AWS on first use."""
    pipeline = current_app.extensions.get(PIPELINE_EXTENSION)
    if pipeline is None:
        logger.info("Wiring localization pipeline from configuration")
        pipeline = LocalizationPipeline.from_config(current_app.config["MAGICL10N"])
        current_app.extensions[PIPELINE_EXTENSION] = pipeline
    return pipeline


def _respond(response: PipelineResponse):
    return jsonify(response.body), response.status_code


@translations_bp.post("")
def submit_translation():
    """Start translating the package behind a manifest URL."""
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    manifest_url = data.get("manifest_url") or request.args.get("manifest_url")
    logger.info("Translation requested for manifest %s", manifest_url)

    return _respond(get_pipeline().submit_translation_request(manifest_url))


@translations_bp.get("")
def retrieve_translation_by_query():
    """Retrieve a master job given as the `jobs_id` query parameter."""
    jobs_id = request.args.get("jobs_id", "").strip()
    if not jobs_id:
        raise ValidationError('No Jobs ID defined in "jobs_id"', code="jobs_id_missing")

    return _respond(get_pipeline().retrieve_translation_result(jobs_id))


@translations_bp.get("/<master_job_id>")
def retrieve_translation(master_job_id: str):
    """Check on a master job and return its download URL once complete."""
    return _respond(get_pipeline().retrieve_translation_result(master_job_id))
