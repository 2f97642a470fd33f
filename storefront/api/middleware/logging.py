"""
Request/Response logging middleware.

Structured access logging for all API requests:
- Request timing
- Correlation IDs (X-Request-ID)
- Redaction of credentials in headers and JSON bodies
- The authenticated user id, when a guard resolved one
"""

import json
import logging
import time
import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Set

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Context variable for request ID (accessible throughout request lifecycle)
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

logger = logging.getLogger("storefront.api")


@dataclass
class LoggingConfig:
    """Configuration for request logging."""

    enabled: bool = True

    # Only JSON bodies are ever logged; uploads are never read here
    log_request_body: bool = False
    max_body_log_size: int = 10000

    excluded_paths: Set[str] = field(default_factory=lambda: {
        "/health",
        "/favicon.ico",
    })

    excluded_headers: Set[str] = field(default_factory=lambda: {
        "authorization",
        "cookie",
        "set-cookie",
    })

    redacted_fields: Set[str] = field(default_factory=lambda: {
        "password",
        "token",
        "secret",
        "api_key",
        "apikey",
        "api_secret",
    })

    success_log_level: int = logging.INFO
    error_log_level: int = logging.WARNING

    # Seconds
    slow_request_threshold: float = 2.0

    request_id_header: str = "X-Request-ID"


class StructuredLogFormatter(logging.Formatter):
    """JSON formatter for log aggregators."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        for attr in ("request_data", "response_data", "duration_ms", "user_id"):
            if hasattr(record, attr):
                log_data[attr] = getattr(record, attr)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def redact_sensitive_data(
    data: Any,
    redacted_fields: Set[str],
    replacement: str = "[REDACTED]",
) -> Any:
    """
    Recursively redact sensitive fields from a decoded JSON value.

    Args:
        data: Dict, list or primitive.
        redacted_fields: Lower-case field names to redact.
        replacement: Replacement string for redacted values.
    """
    if isinstance(data, dict):
        return {
            key: replacement if key.lower() in redacted_fields
            else redact_sensitive_data(value, redacted_fields, replacement)
            for key, value in data.items()
        }
    elif isinstance(data, list):
        return [redact_sensitive_data(item, redacted_fields, replacement) for item in data]
    return data


def get_request_id() -> str:
    """Get current request ID from context."""
    return request_id_var.get()


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access log middleware."""

    def __init__(self, app: FastAPI, config: Optional[LoggingConfig] = None):
        super().__init__(app)
        self.config = config or LoggingConfig()

    def _should_log(self, path: str) -> bool:
        return self.config.enabled and path not in self.config.excluded_paths

    def _filter_headers(self, headers: Dict[str, str]) -> Dict[str, str]:
        return {
            key: value if key.lower() not in self.config.excluded_headers else "[REDACTED]"
            for key, value in headers.items()
        }

    async def _get_request_body(self, request: Request) -> Optional[str]:
        if not request.headers.get("content-type", "").startswith("application/json"):
            return None

        body = await request.body()
        if len(body) > self.config.max_body_log_size:
            return f"[BODY TOO LARGE: {len(body)} bytes]"

        try:
            body_json = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return "[UNPARSEABLE JSON BODY]"

        return json.dumps(redact_sensitive_data(body_json, self.config.redacted_fields))

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(
            self.config.request_id_header,
            str(uuid.uuid4())[:8],
        )
        request_id_var.set(request_id)

        if not self._should_log(request.url.path):
            response = await call_next(request)
            response.headers[self.config.request_id_header] = request_id
            return response

        start_time = time.perf_counter()

        request_data = {
            "method": request.method,
            "path": request.url.path,
            "query": str(request.url.query) if request.url.query else None,
            "headers": self._filter_headers(dict(request.headers)),
            "client_ip": request.client.host if request.client else None,
        }

        if self.config.log_request_body:
            body = await self._get_request_body(request)
            if body:
                request_data["body"] = body

        response = await call_next(request)

        duration = time.perf_counter() - start_time
        duration_ms = round(duration * 1000, 2)

        response.headers[self.config.request_id_header] = request_id

        if response.status_code >= 500:
            log_level = logging.ERROR
        elif response.status_code >= 400:
            log_level = self.config.error_log_level
        elif duration > self.config.slow_request_threshold:
            log_level = logging.WARNING
        else:
            log_level = self.config.success_log_level

        message = f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms}ms)"
        if duration > self.config.slow_request_threshold:
            message = f"[SLOW] {message}"

        user = getattr(request.state, "user", None)
        extra = {
            "request_data": request_data,
            "response_data": {"status_code": response.status_code},
            "duration_ms": duration_ms,
            "user_id": user.id if user is not None else None,
        }

        logger.log(log_level, message, extra=extra)

        return response


def setup_logging(
    app: FastAPI,
    config: Optional[LoggingConfig] = None,
    structured: bool = True,
) -> None:
    """
    Install the access log middleware.

    Args:
        app: FastAPI application instance.
        config: Logging configuration.
        structured: Emit JSON lines on the "storefront" logger.
    """
    if config is None:
        config = LoggingConfig()

    if structured:
        handler = logging.StreamHandler()
        handler.setFormatter(StructuredLogFormatter())

        storefront_logger = logging.getLogger("storefront")
        if not any(isinstance(h.formatter, StructuredLogFormatter) for h in storefront_logger.handlers):
            storefront_logger.addHandler(handler)
        storefront_logger.setLevel(logging.INFO)

    app.add_middleware(RequestLoggingMiddleware, config=config)
