"""
CORS Configuration

Cross-Origin Resource Sharing settings per deployment environment.
"""

from typing import List, Optional
from dataclasses import dataclass, field, replace

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware


@dataclass
class CORSConfig:
    """CORS configuration settings."""

    allowed_origins: List[str] = field(default_factory=list)

    # Cookies, authorization headers
    allow_credentials: bool = True

    allowed_methods: List[str] = field(default_factory=lambda: [
        "GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"
    ])

    allowed_headers: List[str] = field(default_factory=lambda: [
        "Accept",
        "Accept-Language",
        "Content-Type",
        "Authorization",
        "X-Request-ID",
    ])

    expose_headers: List[str] = field(default_factory=lambda: [
        "X-Request-ID",
    ])

    # Preflight cache, seconds
    max_age: int = 3600

    # Development only
    allow_all_origins: bool = False


CORS_CONFIGS = {
    "development": CORSConfig(
        allowed_origins=[
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ],
        allow_all_origins=True,
    ),
    "staging": CORSConfig(
        allowed_origins=["https://staging.libris.example.com"],
    ),
    "production": CORSConfig(
        allowed_origins=[
            "https://libris.example.com",
            "https://app.libris.example.com",
        ],
        max_age=7200,
    ),
}


def get_cors_config(environment: str = "development", extra_origins: str = "") -> CORSConfig:
    """
    Get CORS configuration for the environment.

    Args:
        environment: One of the CORS_CONFIGS keys; unknown names fall back to development.
        extra_origins: Comma-separated origins appended to the allow list.
    """
    base = CORS_CONFIGS.get(environment, CORS_CONFIGS["development"])
    origins = list(base.allowed_origins)
    origins.extend(o.strip() for o in extra_origins.split(",") if o.strip())
    return replace(base, allowed_origins=origins)


def setup_cors(app: FastAPI, config: Optional[CORSConfig] = None) -> None:
    """Configure CORS middleware for the FastAPI application."""
    if config is None:
        config = get_cors_config()

    allow_origins = ["*"] if config.allow_all_origins else config.allowed_origins

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        # Browsers reject credentials with a wildcard origin
        allow_credentials=config.allow_credentials and not config.allow_all_origins,
        allow_methods=config.allowed_methods,
        allow_headers=config.allowed_headers,
        expose_headers=config.expose_headers,
        max_age=config.max_age,
    )
