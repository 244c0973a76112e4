"""
Provider-related exceptions for the Article Illustrator system.
"""

from typing import Optional
from .base import IllustrationError

# Maximum number of characters of a provider error body carried by an exception
DETAIL_EXCERPT_LIMIT = 200


def excerpt(text: Optional[str], limit: int = DETAIL_EXCERPT_LIMIT) -> str:
    """Return at most ``limit`` characters of ``text`` (empty string for None)."""
    if not text:
        return ""
    return str(text)[:limit]


class ProviderError(IllustrationError):
    """
    Base class for failures reported by a third-party provider.

    Carries the last observed HTTP status code and a bounded excerpt of the
    provider's error body so callers can diagnose without seeing raw payloads.
    """

    http_status = 502

    def __init__(self,
                 message: str,
                 status_code: Optional[int] = None,
                 detail: Optional[str] = None,
                 provider: Optional[str] = None,
                 hint: Optional[str] = None):
        """
        Initialize the ProviderError.

        Args:
            message: The error message
            status_code: Last HTTP status observed from the provider, if any
            detail: Provider error body; truncated to DETAIL_EXCERPT_LIMIT characters
            provider: Label of the provider that produced the error
            hint: Remediation hint (e.g. which credential would unlock an alternate path)
        """
        detail = excerpt(detail)
        super().__init__(
            message,
            status_code=status_code,
            detail=detail,
            provider=provider,
            hint=hint,
        )
        self.status_code = status_code
        self.detail = detail
        self.provider = provider
        self.hint = hint

    def __str__(self):
        """Return a formatted string representation of the exception."""
        base_msg = super().__str__()
        if self.provider:
            return f"[{self.provider}] {base_msg}"
        return base_msg


class PromptSynthesisError(ProviderError):
    """Raised when the text provider fails or returns an unusable prompt."""


class ProviderTransientError(ProviderError):
    """Raised when a provider reports a state that should clear shortly (model loading)."""

    http_status = 503
    retryable = True


class ProviderExhaustedError(ProviderError):
    """Raised when every strategy of the fallback chain failed."""

    @property
    def response_status(self) -> int:
        """HTTP status to surface: the last provider status, or 502 when none was seen."""
        if self.status_code and self.status_code >= 400:
            return self.status_code
        return self.http_status


class GenerationTimeoutError(ProviderError):
    """Raised when job-based polling exceeds its attempt ceiling."""

    http_status = 504
    retryable = True


class ResponseFormatError(ProviderError):
    """Raised when a provider answered 2xx but no image could be extracted."""
