import logging
from typing import Any, Dict, Optional

import requests

from shared.errors import PromptSynthesisError


class OpenRouterClient:
    """
    A wrapper for the OpenRouter chat completions API.

    One request per call; retries belong to the caller.
    """
    BASE_URL = "https://openrouter.ai/api/v1"

    def __init__(
        self,
        api_key: str,
        model_name: str = "mistralai/devstral-2512:free",
        *,
        base_url: Optional[str] = None,
        app_url: str = "http://localhost:3000",
        app_title: str = "Article Illustration Generator",
        temperature: float = 0.7,
        max_tokens: int = 200,
        timeout: int = 120,
        session: Optional[requests.Session] = None,
    ):
        """
        Initializes the OpenRouter client.

        Args:
            api_key (str): The OpenRouter API key.
            model_name (str): The model to use via OpenRouter.
            base_url (str, optional): Override for the API root.
            app_url (str): Sent as ``HTTP-Referer`` for OpenRouter attribution.
            app_title (str): Sent as ``X-Title`` for OpenRouter attribution.
            session (requests.Session, optional): HTTP session, injectable for tests.
        """
        if not api_key:
            raise ValueError("OpenRouter API key is required.")

        self.api_key = api_key
        self.model_name = model_name
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
            "HTTP-Referer": app_url,
            "X-Title": app_title,
        }

    def build_body(self, system_message: str, user_message: str) -> Dict[str, Any]:
        return {
            "model": self.model_name,
            "messages": [
                {"role": "system", "content": system_message},
                {"role": "user", "content": user_message},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    def generate(self, system_message: str, user_message: str) -> str:
        """
        Generates a completion for a system/user message pair.

        Returns:
            str: The stripped message content (possibly empty).

        Raises:
            PromptSynthesisError: On transport failure, non-2xx status or an
                unparseable response.
        """
        try:
            response = self.session.post(
                f"{self.base_url}/chat/completions",
                headers=self.headers,
                json=self.build_body(system_message, user_message),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logging.error(f"[OPENROUTER] Request failed: {e}")
            raise PromptSynthesisError(
                "Failed to create image prompt",
                detail=str(e),
                provider="openrouter",
            ) from e

        if not (200 <= response.status_code < 300):
            logging.error(f"[OPENROUTER] API error: {response.status_code} {response.text[:200]}")
            raise PromptSynthesisError(
                "Failed to create image prompt",
                status_code=response.status_code,
                detail=f"OpenRouter API returned status {response.status_code}",
                provider="openrouter",
            )

        try:
            result = response.json()
            content = result["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logging.error(f"[OPENROUTER] Error parsing response: {e}")
            raise PromptSynthesisError(
                "Could not parse OpenRouter API response",
                detail=str(e),
                provider="openrouter",
            ) from e

        return (content or "").strip()
