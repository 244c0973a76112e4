"""
Illustration Orchestrator Module

Turns an article into an illustration by coordinating the daily quota, the
prompt synthesizer, the image fallback chain, the history log and usage
analytics. The cache is not consulted: generated images are never cached.
"""
import logging
import re
import time
from pathlib import Path
from typing import Callable, Optional

import requests

from shared.errors import ConfigurationError, IllustrationError, QuotaExceededError, ValidationError
from shared.utils.logging import PipelineLogger
from ..config.settings import Settings, get_settings
from ..llm.openrouter import OpenRouterClient
from ..persistence.analytics import AnalyticsTracker
from ..persistence.history import HistoryLog
from ..persistence.kv_store import JsonFileKeyValueStore, KeyValueStore
from ..persistence.quota import DailyQuotaCounter
from ..schemas.illustration import AnalyticsEventType, GeneratedIllustration, OperationKind
from .fallback_chain import ImageFallbackChain
from .prompt_synthesizer import PromptSynthesizer
from .strategies import (
    HuggingFaceSdkStrategy,
    LegacyInferenceStrategy,
    ReplicatePredictionStrategy,
    RouterInferenceStrategy,
    build_model_list,
)

# Analytics groups the strategy labels by vendor
_API_PROVIDERS = {
    "huggingface-sdk": "huggingface",
    "huggingface-router": "huggingface",
    "huggingface-inference": "huggingface",
    "replicate": "replicate",
}


class IllustrationOrchestrator:
    """
    Entry point for illustration requests.

    The quota, history and analytics repositories are injected so each can be
    replaced by an in-memory stand-in. Quota is consumed only after an image
    was produced.
    """

    def __init__(self,
                 synthesizer: PromptSynthesizer,
                 chain: ImageFallbackChain,
                 quota: DailyQuotaCounter,
                 history: HistoryLog,
                 analytics: Optional[AnalyticsTracker] = None,
                 prompt_log_dir: Optional[str] = None):
        self.synthesizer = synthesizer
        self.chain = chain
        self.quota = quota
        self.history = history
        self.analytics = analytics
        self.prompt_log_dir = prompt_log_dir

    def _track(self, event_type: AnalyticsEventType, **kwargs):
        if self.analytics is not None:
            self.analytics.track(event_type, **kwargs)

    def _validate(self, article_text) -> None:
        if not isinstance(article_text, str) or not article_text:
            logging.error("[ILLUSTRATION] Content validation failed - content is missing or not a string")
            raise ValidationError("Content is required", details="Content must be a non-empty string")
        if not article_text.strip():
            logging.error("[ILLUSTRATION] Content validation failed - content is empty")
            raise ValidationError("Content cannot be empty", details="Content must contain at least some text")

    def generate_illustration(self,
                              article_text: str,
                              language: str = "ru",
                              url: Optional[str] = None) -> GeneratedIllustration:
        """
        Generate an illustration for an article.

        Args:
            article_text: Plain article body
            language: Language code for the prompt instructions (ru, me, en)
            url: Article URL recorded in history

        Returns:
            GeneratedIllustration with the prompt, data URI and provider label

        Raises:
            ValidationError: Article text missing or blank
            ConfigurationError: No image provider credential configured
            QuotaExceededError: Daily limit reached
            PromptSynthesisError, ProviderError subclasses: Generation failed
        """
        self._validate(article_text)

        if not self.chain.has_configured_strategy:
            logging.error("[ILLUSTRATION] Neither HUGGINGFACE_API_KEY nor REPLICATE_API_TOKEN is set")
            raise ConfigurationError(
                "API key is not configured",
                details="Please set either HUGGINGFACE_API_KEY or REPLICATE_API_TOKEN. "
                        "For Replicate, get a free token at https://replicate.com",
            )

        if not self.quota.can_proceed():
            seconds = self.quota.time_until_reset()
            logging.warning(f"[ILLUSTRATION] Daily limit reached, resets in {seconds}s")
            raise QuotaExceededError(
                f"Daily illustration limit of {self.quota.daily_limit} reached",
                remaining=0,
                seconds_until_reset=seconds,
            )

        pipeline_logger = PipelineLogger(self.prompt_log_dir)
        pipeline_logger.initialize_session(language, len(article_text))
        self._track(AnalyticsEventType.FUNCTION_USE, function=OperationKind.ILLUSTRATION.value)

        stage = "prompt_synthesis"
        try:
            self._track(AnalyticsEventType.API_CALL, function=OperationKind.ILLUSTRATION.value,
                        api_provider="openrouter")
            prompt = self.synthesizer.synthesize(article_text, language)
            pipeline_logger.log_prompt(stage, prompt)

            stage = "image_generation"
            result = self.chain.generate(prompt)
        except IllustrationError as e:
            logging.error(f"[ILLUSTRATION] {stage} failed: {e}")
            if self.analytics is not None:
                self.analytics.track_error(OperationKind.ILLUSTRATION.value, e)
            pipeline_logger.log_error(e, stage)
            raise

        illustration = GeneratedIllustration(
            prompt_text=prompt,
            image_data_uri=result.image_data_uri,
            provider_label=result.provider_label,
        )

        self.quota.increment()
        self.history.append(
            url=url or "",
            operation_kind=OperationKind.ILLUSTRATION,
            language=language,
            text_result=prompt,
            image_result=illustration.image_data_uri,
        )
        self._track(
            AnalyticsEventType.API_CALL,
            function=OperationKind.ILLUSTRATION.value,
            api_provider=_API_PROVIDERS.get(illustration.provider_label, illustration.provider_label),
        )
        pipeline_logger.log_completion(illustration.provider_label)
        logging.info(f"[ILLUSTRATION] Image generated successfully via {illustration.provider_label}")
        return illustration


def build_image_chain(settings: Settings,
                      session: Optional[requests.Session] = None,
                      sleep: Callable[[float], None] = time.sleep) -> ImageFallbackChain:
    """Default strategy order: SDK, router endpoint, legacy endpoint, prediction jobs."""
    models = build_model_list(settings.huggingface_model, settings.huggingface_alternative_model)
    return ImageFallbackChain([
        HuggingFaceSdkStrategy(
            settings.huggingface_api_key,
            model=settings.huggingface_model,
            provider=settings.huggingface_provider,
            num_inference_steps=settings.huggingface_steps,
        ),
        RouterInferenceStrategy(
            settings.huggingface_api_key, models,
            base_url=settings.huggingface_router_url,
            timeout=settings.request_timeout,
            session=session,
        ),
        LegacyInferenceStrategy(
            settings.huggingface_api_key, models,
            base_url=settings.huggingface_inference_url,
            timeout=settings.request_timeout,
            session=session,
        ),
        ReplicatePredictionStrategy(
            settings.replicate_api_token,
            version=settings.replicate_model_version,
            base_url=settings.replicate_base_url,
            poll_interval=settings.replicate_poll_interval,
            max_attempts=settings.replicate_max_attempts,
            timeout=settings.request_timeout,
            session=session,
            sleep=sleep,
        ),
    ])


_PROFILE_ID = re.compile(r"[A-Za-z0-9_-]{1,64}")


def profile_storage_path(storage_path: str, profile_id: Optional[str] = None) -> str:
    """
    Document location for a client profile.

    Without a profile id the configured path is used as is; otherwise the id
    is appended to the file stem (``client_store.json`` -> ``client_store_<id>.json``).

    Raises:
        ValidationError: If the profile id contains anything but letters, digits, ``_`` or ``-``
    """
    if profile_id is None:
        return storage_path
    if not _PROFILE_ID.fullmatch(profile_id):
        raise ValidationError("Invalid profile id",
                              details="Profile ids are 1-64 letters, digits, underscores or hyphens")
    path = Path(storage_path)
    return str(path.with_name(f"{path.stem}_{profile_id}{path.suffix}"))


def build_store(settings: Settings, profile_id: Optional[str] = None) -> KeyValueStore:
    """One JSON document per client profile, each with the configured byte quota."""
    return JsonFileKeyValueStore(
        profile_storage_path(settings.storage_path, profile_id),
        quota_bytes=settings.storage_quota_bytes,
    )


def build_orchestrator(settings: Optional[Settings] = None,
                       store: Optional[KeyValueStore] = None,
                       session: Optional[requests.Session] = None,
                       sleep: Callable[[float], None] = time.sleep) -> IllustrationOrchestrator:
    """
    Wire an orchestrator from settings.

    Raises:
        ConfigurationError: If the OpenRouter API key is missing
    """
    settings = settings or get_settings()
    if not settings.openrouter_api_key:
        logging.error("[ILLUSTRATION] OPENROUTER_API_KEY is not set")
        raise ConfigurationError(
            "OpenRouter API key is not configured",
            details="Please set OPENROUTER_API_KEY in your environment variables",
        )

    store = store if store is not None else build_store(settings)
    client = OpenRouterClient(
        settings.openrouter_api_key,
        settings.openrouter_model,
        base_url=settings.openrouter_base_url,
        app_url=settings.app_url,
        app_title=settings.app_title,
        temperature=settings.prompt_temperature,
        max_tokens=settings.prompt_max_tokens,
        timeout=settings.request_timeout,
        session=session,
    )
    return IllustrationOrchestrator(
        synthesizer=PromptSynthesizer(client),
        chain=build_image_chain(settings, session=session, sleep=sleep),
        quota=DailyQuotaCounter(store, daily_limit=settings.daily_image_limit),
        history=HistoryLog(
            store,
            max_items=settings.history_max_items,
            text_char_limit=settings.history_text_char_limit,
            max_bytes=settings.history_max_bytes,
        ),
        analytics=AnalyticsTracker(store, max_events=settings.analytics_max_events),
        prompt_log_dir=settings.prompt_log_dir,
    )
