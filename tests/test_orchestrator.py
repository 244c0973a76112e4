import os
import sys
from datetime import datetime

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config.settings import Settings
from core.illustration.fallback_chain import ImageFallbackChain
from core.illustration.orchestrator import (
    IllustrationOrchestrator,
    build_image_chain,
    build_orchestrator,
    profile_storage_path,
)
from core.illustration.prompt_synthesizer import PromptSynthesizer
from core.illustration.strategies import ImageStrategy, StageErrorKind, StageResult
from core.persistence import AnalyticsTracker, DailyQuotaCounter, HistoryLog, InMemoryKeyValueStore
from core.schemas.illustration import AnalyticsEventType, ImagePresence, OperationKind
from shared.errors import (
    ConfigurationError,
    PromptSynthesisError,
    ProviderExhaustedError,
    QuotaExceededError,
    ValidationError,
)
from tests.dummies import FakeClock

IMAGE = "data:image/png;base64,iVBORw0KGgo="


class StubClient:
    def __init__(self, reply="**Prompt:** A lighthouse on a cliff", error=None):
        self.reply = reply
        self.error = error
        self.calls = 0

    def generate(self, system_message, user_message):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.reply


class StubStrategy(ImageStrategy):
    label = "huggingface-router"
    credential_name = "HUGGINGFACE_API_KEY"

    def __init__(self, result=None, configured=True):
        self.result = result or StageResult.success(IMAGE, self.label)
        self.configured = configured
        self.prompts = []

    @property
    def is_configured(self):
        return self.configured

    def attempt(self, prompt):
        self.prompts.append(prompt)
        return self.result


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


def make_orchestrator(store, client=None, strategy=None, log_dir=None):
    clock = FakeClock()
    client = client or StubClient()
    strategy = strategy or StubStrategy()
    orchestrator = IllustrationOrchestrator(
        synthesizer=PromptSynthesizer(client),
        chain=ImageFallbackChain([strategy]),
        quota=DailyQuotaCounter(store, now=lambda: datetime(2024, 6, 15, 12, 0, 0)),
        history=HistoryLog(store, clock=clock),
        analytics=AnalyticsTracker(store, clock=clock),
        prompt_log_dir=log_dir,
    )
    return orchestrator, client, strategy


def test_successful_generation_updates_quota_history_and_analytics(store):
    orchestrator, client, strategy = make_orchestrator(store)

    illustration = orchestrator.generate_illustration("Статья о маяках", url="https://example.com/a")

    assert illustration.prompt_text == "A lighthouse on a cliff"
    assert illustration.image_data_uri == IMAGE
    assert illustration.provider_label == "huggingface-router"
    assert strategy.prompts == ["A lighthouse on a cliff"]
    assert illustration.download_filename(1_700_000_000_000) == "illustration_1700000000000.png"

    assert orchestrator.quota.remaining() == 2

    entry = orchestrator.history.list()[0]
    assert entry.operation_kind == OperationKind.ILLUSTRATION
    assert entry.url == "https://example.com/a"
    assert entry.text_result == "A lighthouse on a cliff"
    assert entry.image_presence == ImagePresence.ELIDED

    api_stats = orchestrator.analytics.api_stats()
    assert api_stats["by_provider"] == {"openrouter": 1, "huggingface": 1}
    assert orchestrator.analytics.function_stats()["by_function"] == {"illustration": 1}


@pytest.mark.parametrize("content, message", [
    (None, "Content is required"),
    ("", "Content is required"),
    (42, "Content is required"),
    ("   \n\t", "Content cannot be empty"),
])
def test_invalid_content_is_rejected_before_any_call(store, content, message):
    orchestrator, client, strategy = make_orchestrator(store)

    with pytest.raises(ValidationError) as excinfo:
        orchestrator.generate_illustration(content)

    assert excinfo.value.message == message
    assert client.calls == 0
    assert strategy.prompts == []


def test_missing_image_credentials(store):
    orchestrator, client, _ = make_orchestrator(store, strategy=StubStrategy(configured=False))

    with pytest.raises(ConfigurationError):
        orchestrator.generate_illustration("article")
    assert client.calls == 0


def test_quota_exhausted_blocks_before_calls(store):
    orchestrator, client, strategy = make_orchestrator(store)
    for _ in range(3):
        orchestrator.quota.increment()

    with pytest.raises(QuotaExceededError) as excinfo:
        orchestrator.generate_illustration("article")

    assert excinfo.value.remaining == 0
    assert excinfo.value.seconds_until_reset == 12 * 60 * 60
    assert client.calls == 0
    assert strategy.prompts == []


def test_failed_generation_does_not_consume_quota(store):
    failure = StageResult.failure(StageErrorKind.FAILED, "nope", status_code=500, detail="server error")
    orchestrator, _, _ = make_orchestrator(store, strategy=StubStrategy(result=failure))

    with pytest.raises(ProviderExhaustedError):
        orchestrator.generate_illustration("article")

    assert orchestrator.quota.remaining() == 3
    assert orchestrator.history.list() == []
    assert orchestrator.analytics.error_stats()["by_type"] == {"500": 1}


def test_prompt_failure_stops_before_image_stage(store, tmp_path):
    client = StubClient(error=PromptSynthesisError("Failed to create image prompt", status_code=401))
    orchestrator, _, strategy = make_orchestrator(store, client=client, log_dir=str(tmp_path))

    with pytest.raises(PromptSynthesisError):
        orchestrator.generate_illustration("article")

    assert strategy.prompts == []
    error_logs = os.listdir(tmp_path / "errors")
    assert len(error_logs) == 1
    content = (tmp_path / "errors" / error_logs[0]).read_text(encoding="utf-8")
    assert "prompt_synthesis" in content
    assert "PromptSynthesisError" in content


def test_prompt_log_records_prompt_and_provider(store, tmp_path):
    orchestrator, _, _ = make_orchestrator(store, log_dir=str(tmp_path))
    orchestrator.generate_illustration("article", language="en")

    logs = os.listdir(tmp_path / "prompts")
    assert len(logs) == 1
    content = (tmp_path / "prompts" / logs[0]).read_text(encoding="utf-8")
    assert "# Language: en" in content
    assert "A lighthouse on a cliff" in content
    assert "Provider: huggingface-router" in content


def test_build_orchestrator_requires_openrouter_key(store):
    settings = Settings(openrouter_api_key=None, huggingface_api_key="hf")
    with pytest.raises(ConfigurationError) as excinfo:
        build_orchestrator(settings, store=store)
    assert excinfo.value.message == "OpenRouter API key is not configured"


def test_build_image_chain_order():
    settings = Settings(huggingface_api_key="hf", replicate_api_token=None)
    chain = build_image_chain(settings)

    assert [strategy.label for strategy in chain.strategies] == [
        "huggingface-sdk", "huggingface-router", "huggingface-inference", "replicate",
    ]
    assert chain.missing_credentials() == ["REPLICATE_API_TOKEN"]


def test_build_orchestrator_wires_settings(store):
    settings = Settings(openrouter_api_key="or", replicate_api_token="r8", daily_image_limit=5)
    orchestrator = build_orchestrator(settings, store=store)

    assert orchestrator.quota.daily_limit == 5
    assert orchestrator.chain.has_configured_strategy
    assert orchestrator.synthesizer.client.model_name == settings.openrouter_model


def test_profile_storage_path():
    base = os.path.join("data", "client_store.json")

    assert profile_storage_path(base) == base
    assert profile_storage_path(base, "alice") == os.path.join("data", "client_store_alice.json")
    with pytest.raises(ValidationError):
        profile_storage_path(base, "../escape")
    with pytest.raises(ValidationError):
        profile_storage_path(base, "")
