"""
CORS Configuration

Configures Cross-Origin Resource Sharing settings per environment.
"""

import os
from dataclasses import dataclass, field, replace
from typing import List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware


@dataclass
class CORSConfig:
    """CORS configuration settings."""

    allowed_origins: List[str] = field(default_factory=list)

    # Cookies and authorization headers
    allow_credentials: bool = True

    allowed_methods: List[str] = field(default_factory=lambda: [
        "GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"
    ])

    allowed_headers: List[str] = field(default_factory=lambda: [
        "Accept",
        "Accept-Language",
        "Content-Type",
        "Content-Language",
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
        allowed_origins=[
            "https://staging.storefront.example.com",
        ],
    ),
    "production": CORSConfig(
        allowed_origins=[
            "https://storefront.example.com",
            "https://www.storefront.example.com",
        ],
        max_age=7200,
    ),
}


def get_cors_config(environment: Optional[str] = None) -> CORSConfig:
    """
    Get CORS configuration for the environment.

    Origins listed in CORS_ALLOWED_ORIGINS (comma separated) are appended.
    """
    if environment is None:
        environment = os.getenv("STOREFRONT_ENV", "development")

    base = CORS_CONFIGS.get(environment, CORS_CONFIGS["development"])
    config = replace(base, allowed_origins=list(base.allowed_origins))

    extra_origins = os.getenv("CORS_ALLOWED_ORIGINS", "")
    if extra_origins:
        config.allowed_origins.extend(
            origin.strip() for origin in extra_origins.split(",") if origin.strip()
        )

    return config


def setup_cors(app: FastAPI, config: Optional[CORSConfig] = None) -> None:
    """
    Configure CORS middleware for the FastAPI application.

    Args:
        app: FastAPI application instance.
        config: CORS configuration. If None, loads from environment.
    """
    if config is None:
        config = get_cors_config()

    if config.allow_all_origins:
        allow_origins = ["*"]
    else:
        allow_origins = config.allowed_origins

    # Browsers reject credentials with a wildcard origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=config.allow_credentials if not config.allow_all_origins else False,
        allow_methods=config.allowed_methods,
        allow_headers=config.allowed_headers,
        expose_headers=config.expose_headers,
        max_age=config.max_age,
    )
