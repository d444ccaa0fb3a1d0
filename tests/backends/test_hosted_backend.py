from types import SimpleNamespace
from typing import Any

import pytest
from openai import OpenAIError

from voxrouter.core.exceptions import BackendError
from voxrouter.domain.models import ModelIdentifier
from voxrouter.infrastructure.backends.hosted import HostedCompletionAdapter


class FakeCompletions:
    def __init__(self, content: Any = "Entropy is disorder.", error: Exception | None = None) -> None:
        self.content = content
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(role="assistant", content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(index=0, message=message)])


class FakeOpenAI:
    def __init__(self, completions: FakeCompletions) -> None:
        self.chat = SimpleNamespace(completions=completions)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "model_id, expected_model",
    [(ModelIdentifier.GPT, "gpt-3.5-turbo"), (ModelIdentifier.GPT4, "gpt-4")],
)
async def test_hosted_selects_model_tier(settings, model_id, expected_model):
    completions = FakeCompletions()
    adapter = HostedCompletionAdapter(settings, client=FakeOpenAI(completions))

    reply = await adapter.complete("explain entropy", model_id)

    assert reply == "Entropy is disorder."
    assert completions.calls == [
        {"model": expected_model, "messages": [{"role": "user", "content": "explain entropy"}]}
    ]


@pytest.mark.asyncio
async def test_hosted_tiers_follow_settings(settings):
    completions = FakeCompletions()
    adapter = HostedCompletionAdapter(
        settings.model_copy(update={"HOSTED_UPGRADED_MODEL": "gpt-4o"}),
        client=FakeOpenAI(completions),
    )
    await adapter.complete("hi", ModelIdentifier.GPT4)
    assert completions.calls[0]["model"] == "gpt-4o"


@pytest.mark.asyncio
async def test_hosted_missing_key_fails_at_request_time(settings):
    adapter = HostedCompletionAdapter(settings.model_copy(update={"OPENAI_API_KEY": None}))
    with pytest.raises(BackendError) as exc_info:
        await adapter.complete("hi", ModelIdentifier.GPT)
    assert "OPENAI_API_KEY" in exc_info.value.message


@pytest.mark.asyncio
async def test_hosted_api_error_becomes_backend_error(settings):
    adapter = HostedCompletionAdapter(settings, client=FakeOpenAI(FakeCompletions(error=OpenAIError("quota"))))
    with pytest.raises(BackendError) as exc_info:
        await adapter.complete("hi", ModelIdentifier.GPT)
    assert exc_info.value.backend == "hosted"
    assert isinstance(exc_info.value.__cause__, OpenAIError)


@pytest.mark.asyncio
async def test_hosted_empty_completion(settings):
    adapter = HostedCompletionAdapter(settings, client=FakeOpenAI(FakeCompletions(content=None)))
    with pytest.raises(BackendError):
        await adapter.complete("hi", ModelIdentifier.GPT4)


@pytest.mark.asyncio
async def test_hosted_rejects_other_identifiers(settings):
    completions = FakeCompletions()
    adapter = HostedCompletionAdapter(settings, client=FakeOpenAI(completions))
    with pytest.raises(BackendError):
        await adapter.complete("hi", ModelIdentifier.PERPLEXITY)
    assert completions.calls == []
