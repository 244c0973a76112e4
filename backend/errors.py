"""Mapping of pipeline exceptions to HTTP error responses."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from shared.errors import (
    IllustrationError,
    ProviderError,
    ProviderExhaustedError,
    ProviderTransientError,
    QuotaExceededError,
)

logger = logging.getLogger(__name__)


def error_status(exc: IllustrationError) -> int:
    if isinstance(exc, ProviderExhaustedError):
        return exc.response_status
    return exc.http_status


def error_details(exc: IllustrationError) -> str:
    if isinstance(exc, ProviderExhaustedError):
        details = f"All services failed. Last error: {exc.detail}."
        if exc.hint:
            details += f" {exc.hint}"
        return details
    if isinstance(exc, ProviderTransientError):
        return exc.detail or "The image generation model is currently loading. Please try again in a few moments."
    if isinstance(exc, ProviderError):
        return exc.detail or exc.message
    if isinstance(exc, QuotaExceededError):
        return f"Try again in {exc.seconds_until_reset} seconds."
    return str(exc.context.get("details") or exc.message)


def error_body(exc: IllustrationError) -> dict:
    body = {"error": exc.message, "details": error_details(exc)}
    if isinstance(exc, QuotaExceededError):
        body["remaining"] = exc.remaining
        body["seconds_until_reset"] = exc.seconds_until_reset
    return body


async def illustration_error_handler(request: Request, exc: IllustrationError) -> JSONResponse:
    status = error_status(exc)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content=error_body(exc))
