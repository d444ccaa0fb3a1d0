"""Pytest configuration and shared fixtures."""
import base64
import sys
from pathlib import Path
from typing import Any, Dict, List

import pytest

# Ensure the repository root is on sys.path so 'voxrouter' resolves without install
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from voxrouter.core.config import Settings, get_settings
from voxrouter.domain.models import BackendKind, ModelIdentifier


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep machine-level configuration and real credentials out of tests."""
    for key in Settings.model_fields:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("VOXROUTER_LOG_DIR", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        OPENAI_API_KEY="sk-test-openai-key",
        PERPLEXITY_API_KEY="pplx-test-token",
        PERPLEXITY_ENDPOINT="https://aggregator.test/chat/completions",
        OLLAMA_BASE_URL="http://ollama.test:11434",
    )


class StubAdapter:
    def __init__(self, name: str, reply: str = "Entropy measures disorder.") -> None:
        self.name = name
        self.reply = reply
        self.error: Exception | None = None
        self.calls: List[tuple[str, ModelIdentifier]] = []

    async def complete(self, prompt: str, model_id: ModelIdentifier) -> str:
        self.calls.append((prompt, model_id))
        if self.error is not None:
            raise self.error
        return self.reply


class StubTTS:
    def __init__(self) -> None:
        self.error: Exception | None = None
        self.calls: List[dict[str, Any]] = []

    async def synthesize(self, *, text: str, voice_name: str) -> tuple[str, str]:
        self.calls.append({"text": text, "voice_name": voice_name})
        if self.error is not None:
            raise self.error
        return base64.b64encode(f"mp3:{voice_name}:{text}".encode("utf-8")).decode("ascii"), "audio/mp3"


class StubMetrics:
    def __init__(self) -> None:
        self.started = 0
        self.completed: List[str] = []
        self.failed: List[tuple[str, str]] = []

    def turn_started(self) -> float:
        self.started += 1
        return 0.0

    def turn_completed(self, token: float, *, model: str) -> None:
        self.completed.append(model)

    def turn_failed(self, token: float, *, model: str, stage: str) -> None:
        self.failed.append((model, stage))


@pytest.fixture
def backend_stubs() -> Dict[BackendKind, StubAdapter]:
    return {kind: StubAdapter(kind.value) for kind in BackendKind}


@pytest.fixture
def adapter_set(backend_stubs) -> Dict[ModelIdentifier, StubAdapter]:
    return {model_id: backend_stubs[model_id.backend] for model_id in ModelIdentifier}


@pytest.fixture
def stub_tts() -> StubTTS:
    return StubTTS()


@pytest.fixture
def stub_metrics() -> StubMetrics:
    return StubMetrics()
