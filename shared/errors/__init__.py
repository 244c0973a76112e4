"""
Article Illustrator errors and exceptions.

This module contains all custom exceptions used throughout the system.
"""

from .base import (
    IllustrationError,
    ValidationError,
    ConfigurationError,
    QuotaExceededError,
)
from .api_errors import (
    DETAIL_EXCERPT_LIMIT,
    ProviderError,
    PromptSynthesisError,
    ProviderTransientError,
    ProviderExhaustedError,
    GenerationTimeoutError,
    ResponseFormatError,
    excerpt,
)

__all__ = [
    'IllustrationError',
    'ValidationError',
    'ConfigurationError',
    'QuotaExceededError',
    'DETAIL_EXCERPT_LIMIT',
    'ProviderError',
    'PromptSynthesisError',
    'ProviderTransientError',
    'ProviderExhaustedError',
    'GenerationTimeoutError',
    'ResponseFormatError',
    'excerpt',
]
