"""
Image Provider Fallback Chain

Runs the image strategies strictly in order. A strategy that is skipped or
fails hands over to the next one; a provider that is warming up, a job that
timed out or an unreadable 2xx response ends the chain immediately because
the next stage would not change the outcome.
"""
import logging
from typing import List, Optional, Sequence

from shared.errors import (
    GenerationTimeoutError,
    ProviderExhaustedError,
    ProviderTransientError,
    ResponseFormatError,
)
from .strategies.base import ImageStrategy, StageError, StageErrorKind, StageResult

DEFAULT_EXHAUSTED_STATUS = 502


class ImageFallbackChain:
    """Ordered list of image strategies with a single entry point."""

    def __init__(self, strategies: Sequence[ImageStrategy]):
        self.strategies: List[ImageStrategy] = list(strategies)

    @property
    def has_configured_strategy(self) -> bool:
        return any(strategy.is_configured for strategy in self.strategies)

    def missing_credentials(self) -> List[str]:
        """Credentials whose absence disabled at least one strategy, in chain order."""
        missing: List[str] = []
        for strategy in self.strategies:
            name = strategy.credential_name
            if not strategy.is_configured and name and name not in missing:
                missing.append(name)
        return missing

    def _hint(self) -> str:
        missing = self.missing_credentials()
        if missing:
            return f"Consider adding {' or '.join(missing)} to enable an alternative image service."
        return "All configured image services failed; check their credentials and quotas."

    def generate(self, prompt: str) -> StageResult:
        """
        Produce an image for ``prompt``.

        Returns:
            A successful StageResult carrying the data URI and provider label

        Raises:
            ProviderTransientError: A provider reported that its model is loading
            GenerationTimeoutError: A prediction job exceeded its polling ceiling
            ResponseFormatError: A provider answered 2xx without an extractable image
            ProviderExhaustedError: Every strategy was skipped or failed
        """
        last_error: Optional[StageError] = None

        for strategy in self.strategies:
            result = strategy.attempt(prompt)
            if result.succeeded:
                return result

            error = result.error
            if error is None:
                continue

            if error.kind == StageErrorKind.SKIPPED:
                logging.info(f"[ILLUSTRATION] Skipping {strategy.label}: {error.message}")
                continue

            if error.kind == StageErrorKind.TRANSIENT:
                raise ProviderTransientError(
                    error.message, status_code=error.status_code or 503,
                    detail=error.detail, provider=strategy.label,
                )
            if error.kind == StageErrorKind.TIMEOUT:
                raise GenerationTimeoutError(
                    error.message, status_code=error.status_code or 504,
                    detail=error.detail, provider=strategy.label,
                )
            if error.kind == StageErrorKind.BAD_FORMAT:
                raise ResponseFormatError(
                    error.message, status_code=error.status_code,
                    detail=error.detail, provider=strategy.label,
                )

            logging.warning(f"[ILLUSTRATION] {strategy.label} failed: {error.message}")
            last_error = error

        logging.error("[ILLUSTRATION] All image generation services failed")
        if last_error is not None:
            logging.error(f"[ILLUSTRATION] Last error: {last_error.message} {last_error.detail}")

        # status and detail both describe the last failed stage
        status_code = last_error.status_code if last_error is not None else None
        detail = last_error.detail if last_error is not None else None
        raise ProviderExhaustedError(
            "Failed to generate image",
            status_code=status_code or DEFAULT_EXHAUSTED_STATUS,
            detail=detail or "Unable to connect to any image generation service",
            hint=self._hint(),
        )
