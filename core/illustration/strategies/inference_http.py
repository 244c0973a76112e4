"""
Hugging Face HTTP inference strategies.

Both endpoint generations take ``{"inputs": prompt}`` with bearer auth and walk
the same ordered model list. They differ only in which status means "this
model is unavailable here, try the next one".
"""
import logging
from typing import FrozenSet, Iterable, List, Optional

import requests

from shared.errors import ResponseFormatError
from ..image_payload import normalize_http_payload
from .base import ImageStrategy, StageError, StageErrorKind, StageResult

KNOWN_GOOD_MODELS = (
    "CompVis/stable-diffusion-v1-4",
    "stabilityai/sdxl-turbo",
    "stabilityai/stable-diffusion-2-1",
    "stabilityai/stable-diffusion-2-1-base",
)


def build_model_list(primary: str, alternative: Optional[str] = None,
                     fallbacks: Iterable[str] = KNOWN_GOOD_MODELS) -> List[str]:
    """Primary model, alternative model, then the fixed fallbacks, without duplicates."""
    models: List[str] = []
    for model in [primary, alternative, *fallbacks]:
        if model and model not in models:
            models.append(model)
    return models


class InferenceHttpStrategy(ImageStrategy):
    """Iterates the model list against one inference endpoint."""

    base_url: str = ""
    #: Statuses that mean "try the next model"
    continue_statuses: FrozenSet[int] = frozenset()
    credential_name = "HUGGINGFACE_API_KEY"

    def __init__(self,
                 api_key: Optional[str],
                 models: List[str],
                 base_url: Optional[str] = None,
                 timeout: int = 120,
                 session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.models = models
        if base_url:
            self.base_url = base_url
        self.base_url = self.base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def endpoint(self, model: str) -> str:
        return f"{self.base_url}/{model}"

    def attempt(self, prompt: str) -> StageResult:
        if not self.is_configured:
            return StageResult.failure(StageErrorKind.SKIPPED, "Hugging Face API key is not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        last_error: Optional[StageError] = None

        for model in self.models:
            url = self.endpoint(model)
            logging.info(f"[ILLUSTRATION] Trying model: {model} via {url}")
            try:
                response = self.session.post(url, headers=headers, json={"inputs": prompt}, timeout=self.timeout)
            except requests.exceptions.RequestException as e:
                logging.error(f"[ILLUSTRATION] Error trying {model}: {e}")
                continue

            status = response.status_code
            if 200 <= status < 300:
                try:
                    data_uri = normalize_http_payload(
                        response.headers.get("content-type"), response.content, provider=self.label
                    )
                except ResponseFormatError as e:
                    return StageResult.failure(StageErrorKind.BAD_FORMAT, e.message, status_code=status, detail=e.detail)
                logging.info(f"[ILLUSTRATION] Image generated successfully via {self.label} ({model})")
                return StageResult.success(data_uri, self.label)

            if status == 503:
                logging.warning(f"[ILLUSTRATION] Model {model} is loading (503)")
                return StageResult.failure(
                    StageErrorKind.TRANSIENT,
                    "Model is loading",
                    status_code=status,
                    detail="The image generation model is currently loading. Please try again in a few moments.",
                )

            logging.info(f"[ILLUSTRATION] Model {model} returned {status}")
            last_error = StageError(
                kind=StageErrorKind.FAILED,
                message=f"{self.label} returned status {status}",
                status_code=status,
                detail=response.text,
            )
            if status not in self.continue_statuses:
                break

        if last_error is None:
            last_error = StageError(
                kind=StageErrorKind.FAILED,
                message=f"{self.label} could not reach any model",
            )
        return StageResult(error=last_error)


class RouterInferenceStrategy(InferenceHttpStrategy):
    """Current router endpoint; 404 means the model is not served there."""

    label = "huggingface-router"
    base_url = "https://router.huggingface.co/models"
    continue_statuses = frozenset({404})


class LegacyInferenceStrategy(InferenceHttpStrategy):
    """Legacy inference endpoint; 410 marks a retired model."""

    label = "huggingface-inference"
    base_url = "https://api-inference.huggingface.co/models"
    continue_statuses = frozenset({410})
