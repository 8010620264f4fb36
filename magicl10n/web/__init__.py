"""Web application package for magic-l10n."""

from flask import Flask

from magicl10n.config import initialize_app


def create_app(config: dict = None, pipeline=None) -> Flask:
    """Application factory for the HTTP API."""
    config = initialize_app(config)

    from .app import build_app  # Import here to avoid circular imports

    return build_app(config, pipeline)


__all__ = ["create_app"]
