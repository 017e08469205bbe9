"""CORS for the browser client."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dogood.config import Settings

# Browser clients never send X-Verifier-Key
_ALLOWED_HEADERS = ["Authorization", "Content-Type", "X-Request-Id"]


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Let the configured client origins call the API with bearer tokens."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=_ALLOWED_HEADERS,
        expose_headers=["X-Request-Id"],
        max_age=600,
    )
