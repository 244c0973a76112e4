import logging
from typing import Any, Callable, Optional

from huggingface_hub import InferenceClient

from ..image_payload import bytes_to_data_uri, image_to_data_uri
from .base import ImageStrategy, StageErrorKind, StageResult

_PERMISSION_MARKERS = ("sufficient permissions", "authentication", "permissions")


def default_client_factory(api_key: str, provider: Optional[str]) -> InferenceClient:
    if provider:
        return InferenceClient(provider=provider, api_key=api_key)
    return InferenceClient(api_key=api_key)


class HuggingFaceSdkStrategy(ImageStrategy):
    """
    Text-to-image through the official ``huggingface_hub`` InferenceClient.

    Tries the configured inference provider first and, if that call fails,
    repeats the request once with the provider left to the client default.
    """

    label = "huggingface-sdk"
    credential_name = "HUGGINGFACE_API_KEY"

    def __init__(self,
                 api_key: Optional[str],
                 model: str = "stabilityai/stable-diffusion-xl-base-1.0",
                 provider: Optional[str] = "nscale",
                 num_inference_steps: int = 20,
                 client_factory: Callable[[str, Optional[str]], Any] = default_client_factory):
        self.api_key = api_key
        self.model = model
        self.provider = provider
        self.num_inference_steps = num_inference_steps
        self.client_factory = client_factory

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _text_to_image(self, prompt: str, provider: Optional[str]):
        client = self.client_factory(self.api_key, provider)
        return client.text_to_image(
            prompt,
            model=self.model,
            num_inference_steps=self.num_inference_steps,
        )

    def attempt(self, prompt: str) -> StageResult:
        if not self.is_configured:
            return StageResult.failure(StageErrorKind.SKIPPED, "Hugging Face API key is not configured")

        logging.info(f"[ILLUSTRATION] Using model {self.model} with provider {self.provider}")
        try:
            try:
                image = self._text_to_image(prompt, self.provider)
            except Exception as provider_error:
                if not self.provider:
                    raise
                logging.info(f"[ILLUSTRATION] Provider {self.provider} failed ({provider_error}), trying without provider")
                image = self._text_to_image(prompt, None)

            if isinstance(image, (bytes, bytearray)):
                data_uri = bytes_to_data_uri(bytes(image))
            else:
                data_uri = image_to_data_uri(image)
        except Exception as e:
            message = str(e)
            logging.error(f"[ILLUSTRATION] InferenceClient SDK error: {message}")
            if any(marker in message for marker in _PERMISSION_MARKERS):
                logging.error("[ILLUSTRATION] API token doesn't have permissions for Inference Providers")
                logging.error("[ILLUSTRATION] Solution 1: Create a new token at https://huggingface.co/settings/tokens "
                              "with 'Inference Providers' permission")
                logging.error("[ILLUSTRATION] Solution 2: Use Replicate API instead (set REPLICATE_API_TOKEN)")
            logging.info("[ILLUSTRATION] Falling back to direct API calls and Replicate")
            return StageResult.failure(
                StageErrorKind.FAILED,
                "InferenceClient SDK failed",
                status_code=getattr(getattr(e, "response", None), "status_code", None),
                detail=message,
            )

        logging.info("[ILLUSTRATION] Image generated successfully via InferenceClient SDK")
        return StageResult.success(data_uri, self.label)
