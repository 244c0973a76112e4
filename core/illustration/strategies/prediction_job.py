import logging
import time
from typing import Any, Callable, Dict, Optional

import requests

from ..image_payload import DEFAULT_IMAGE_MIME, bytes_to_data_uri
from .base import ImageStrategy, StageErrorKind, StageResult

SDXL_VERSION = "39ed52f2a78e934b3ba6e2a89f5b1c712de7dfea535525255b1aa35c5565e08b"


class ReplicatePredictionStrategy(ImageStrategy):
    """
    Asynchronous prediction jobs on Replicate.

    Creates a prediction, polls it at a fixed interval up to a hard attempt
    ceiling, then downloads the first output URL and inlines it.
    """

    label = "replicate"
    credential_name = "REPLICATE_API_TOKEN"
    BASE_URL = "https://api.replicate.com/v1"

    def __init__(self,
                 api_token: Optional[str],
                 version: str = SDXL_VERSION,
                 base_url: Optional[str] = None,
                 poll_interval: float = 2.0,
                 max_attempts: int = 60,
                 timeout: int = 120,
                 session: Optional[requests.Session] = None,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initialize the strategy.

        Args:
            api_token: Replicate API token (sent with the ``Token`` scheme)
            version: Model version hash
            poll_interval: Seconds between status polls
            max_attempts: Maximum number of polls before giving up
            session: HTTP session, injectable for tests
            sleep: Blocking wait between polls, injectable for tests
        """
        self.api_token = api_token
        self.version = version
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.timeout = timeout
        self.session = session or requests.Session()
        self.sleep = sleep

    @property
    def is_configured(self) -> bool:
        return bool(self.api_token)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Token {self.api_token}",
            "Content-Type": "application/json",
        }

    def build_body(self, prompt: str) -> Dict[str, Any]:
        return {
            "version": self.version,
            "input": {
                "prompt": prompt,
                "num_outputs": 1,
                "aspect_ratio": "1:1",
                "output_format": "png",
            },
        }

    def attempt(self, prompt: str) -> StageResult:
        if not self.is_configured:
            return StageResult.failure(StageErrorKind.SKIPPED, "Replicate API token is not configured")

        logging.info("[ILLUSTRATION] Trying Replicate API")
        try:
            response = self.session.post(
                f"{self.base_url}/predictions",
                headers=self._headers(),
                json=self.build_body(prompt),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logging.error(f"[ILLUSTRATION] Replicate API error: {e}")
            return StageResult.failure(StageErrorKind.FAILED, "Replicate request failed", detail=str(e))

        if not (200 <= response.status_code < 300):
            logging.error(f"[ILLUSTRATION] Replicate API error: {response.status_code} {response.text[:200]}")
            return StageResult.failure(
                StageErrorKind.FAILED,
                f"Replicate returned status {response.status_code}",
                status_code=response.status_code,
                detail=response.text,
            )

        try:
            prediction = response.json()
        except ValueError as e:
            return StageResult.failure(StageErrorKind.FAILED, "Replicate returned invalid JSON", detail=str(e))

        prediction_id = prediction.get("id")
        logging.info(f"[ILLUSTRATION] Replicate prediction created: {prediction_id}")
        return self._await_prediction(prediction)

    def _await_prediction(self, prediction: Dict[str, Any]) -> StageResult:
        prediction_id = prediction.get("id")
        status = prediction.get("status")
        attempts = 0

        while status != "succeeded":
            if status in ("failed", "canceled"):
                logging.error(f"[ILLUSTRATION] Replicate prediction {prediction_id} {status}")
                return StageResult.failure(
                    StageErrorKind.FAILED,
                    "Failed to generate image via Replicate",
                    detail=str(prediction.get("error") or "Image generation failed"),
                )
            if attempts >= self.max_attempts:
                logging.error(f"[ILLUSTRATION] Replicate prediction timeout after {attempts} polls")
                return StageResult.failure(
                    StageErrorKind.TIMEOUT,
                    "Image generation timeout",
                    status_code=504,
                    detail="Generation took too long, please try again",
                )

            self.sleep(self.poll_interval)
            attempts += 1
            try:
                poll = self.session.get(
                    f"{self.base_url}/predictions/{prediction_id}",
                    headers=self._headers(),
                    timeout=self.timeout,
                )
            except requests.exceptions.RequestException as e:
                logging.warning(f"[ILLUSTRATION] Replicate poll {attempts} failed: {e}")
                continue

            if not (200 <= poll.status_code < 300):
                if 400 <= poll.status_code < 500 and poll.status_code != 429:
                    return StageResult.failure(
                        StageErrorKind.FAILED,
                        f"Replicate status check returned {poll.status_code}",
                        status_code=poll.status_code,
                        detail=poll.text,
                    )
                logging.warning(f"[ILLUSTRATION] Replicate poll {attempts} returned {poll.status_code}")
                continue

            try:
                prediction = poll.json()
            except ValueError:
                continue
            status = prediction.get("status")

        output = prediction.get("output")
        if isinstance(output, str):
            output = [output]
        if not output or not output[0]:
            return StageResult.failure(
                StageErrorKind.BAD_FORMAT,
                "Failed to extract image from response",
                detail="Replicate prediction succeeded without output",
            )
        return self._download(output[0])

    def _download(self, image_url: str) -> StageResult:
        try:
            response = self.session.get(image_url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            return StageResult.failure(StageErrorKind.FAILED, "Failed to download Replicate output", detail=str(e))
        if not (200 <= response.status_code < 300):
            return StageResult.failure(
                StageErrorKind.FAILED,
                f"Replicate output download returned {response.status_code}",
                status_code=response.status_code,
                detail=response.text,
            )

        mime_type = (response.headers.get("content-type") or "").split(";")[0].strip().lower()
        if not mime_type.startswith("image/"):
            mime_type = DEFAULT_IMAGE_MIME
        logging.info("[ILLUSTRATION] Image generated successfully via Replicate")
        return StageResult.success(bytes_to_data_uri(response.content, mime_type), self.label)
