"""
Base types for image strategies.

A strategy makes one logical attempt at turning a prompt into an image and
reports the outcome as a StageResult instead of raising, so the fallback
chain can decide whether to continue.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from shared.errors import excerpt


class StageErrorKind(str, Enum):
    SKIPPED = "skipped"        # strategy not configured
    FAILED = "failed"          # try the next strategy
    TRANSIENT = "transient"    # provider is warming up; stop the chain
    TIMEOUT = "timeout"        # job polling ceiling reached; stop the chain
    BAD_FORMAT = "bad_format"  # 2xx without an extractable image; stop the chain


@dataclass
class StageError:
    kind: StageErrorKind
    message: str
    status_code: Optional[int] = None
    detail: Optional[str] = None

    def __post_init__(self):
        self.detail = excerpt(self.detail)


@dataclass
class StageResult:
    """Outcome of one strategy attempt: either an image or an error."""
    image_data_uri: Optional[str] = None
    provider_label: Optional[str] = None
    error: Optional[StageError] = None

    @property
    def succeeded(self) -> bool:
        return self.image_data_uri is not None

    @classmethod
    def success(cls, image_data_uri: str, provider_label: str) -> "StageResult":
        return cls(image_data_uri=image_data_uri, provider_label=provider_label)

    @classmethod
    def failure(cls, kind: StageErrorKind, message: str,
                status_code: Optional[int] = None, detail: Optional[str] = None) -> "StageResult":
        return cls(error=StageError(kind=kind, message=message, status_code=status_code, detail=detail))


class ImageStrategy(ABC):
    """Abstract base class for one image-generation stage."""

    #: Label reported as ``provider_label`` on success
    label: str = "unknown"
    #: Environment variable that enables this strategy, named in exhaustion hints
    credential_name: Optional[str] = None

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether the strategy has the credentials it needs."""

    @abstractmethod
    def attempt(self, prompt: str) -> StageResult:
        """Try to generate an image for ``prompt``. Must not raise."""
