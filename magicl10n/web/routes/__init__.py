"""Route blueprints for the web application."""

from .translations import translations_bp

__all__ = [
    "translations_bp",
]
