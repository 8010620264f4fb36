"""Flask application configuration and blueprint registration."""

from __future__ import annotations

from flask import Flask, jsonify

from magicl10n.exceptions import LocalizationError
from magicl10n.logger import get_logger
from magicl10n.pipeline.orchestrator import LocalizationPipeline

from .routes.translations import PIPELINE_EXTENSION, translations_bp

logger = get_logger(__name__)


def build_app(config: dict, pipeline: LocalizationPipeline = None) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)

    # Ensure JSON responses keep Unicode data.
    app.json.ensure_ascii = False
    app.config["MAGICL10N"] = config

    if pipeline is not None:
        app.extensions[PIPELINE_EXTENSION] = pipeline

    register_blueprints(app)
    register_default_routes(app)
    register_error_handlers(app)

    return app


def register_blueprints(app: Flask) -> None:
    """Register Flask blueprints."""
    app.register_blueprint(translations_bp, url_prefix="/api/translations")


def register_default_routes(app: Flask) -> None:
    """Register default health routes."""

    @app.get("/health")
    def health_check():
        logger.debug("Health check requested")
        return jsonify({"status": "ok"})


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(LocalizationError)
    def handle_localization_error(error: LocalizationError):
        logger.warning("Request failed: %s", error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def handle_not_found(_error):
        return jsonify({"error": "Not found", "code": "not_found"}), 404
