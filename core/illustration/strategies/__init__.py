"""Image-generation strategies tried in order by the fallback chain."""

from .base import ImageStrategy, StageError, StageErrorKind, StageResult
from .sdk import HuggingFaceSdkStrategy
from .inference_http import (
    KNOWN_GOOD_MODELS,
    InferenceHttpStrategy,
    RouterInferenceStrategy,
    LegacyInferenceStrategy,
    build_model_list,
)
from .prediction_job import ReplicatePredictionStrategy

__all__ = [
    "ImageStrategy",
    "StageError",
    "StageErrorKind",
    "StageResult",
    "HuggingFaceSdkStrategy",
    "KNOWN_GOOD_MODELS",
    "InferenceHttpStrategy",
    "RouterInferenceStrategy",
    "LegacyInferenceStrategy",
    "build_model_list",
    "ReplicatePredictionStrategy",
]
