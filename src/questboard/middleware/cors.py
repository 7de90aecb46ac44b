"""CORS for the board editor front-end."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from questboard.config import Settings

_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
_EXPOSED = ["X-Request-Id", "X-RateLimit-Remaining", "X-RateLimit-Limit"]


def setup_cors(app: FastAPI, settings: Settings) -> None:
    # Credentials cannot be combined with a wildcard origin.
    wildcard = "*" in settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=not wildcard,
        allow_methods=_METHODS,
        allow_headers=["*"],
        expose_headers=_EXPOSED,
    )
