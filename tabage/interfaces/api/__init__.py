"""HTTP API (FastAPI). Build the app with ``create_api_app(application)``."""

from .api_app import create_api_app

__all__ = ["create_api_app"]
