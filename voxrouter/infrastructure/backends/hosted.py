"""Hosted completion API (OpenAI) adapter."""
from __future__ import annotations

from typing import Any, Dict, Optional

from openai import AsyncOpenAI, OpenAIError

from voxrouter.core.config import Settings
from voxrouter.core.exceptions import BackendError
from voxrouter.core.logging import get_logger
from voxrouter.domain.models import ModelIdentifier
from voxrouter.infrastructure.backends.base import require_text, resolve_model_name

logger = get_logger(__name__)


class HostedCompletionAdapter:
    """Chat completions against the hosted API; gpt4 selects the upgraded tier."""

    name = "hosted"

    def __init__(self, settings: Settings, *, client: Any | None = None) -> None:
        self._settings = settings
        self._client = client
        self.model_names: Dict[ModelIdentifier, str] = {
            ModelIdentifier.GPT: settings.HOSTED_DEFAULT_MODEL,
            ModelIdentifier.GPT4: settings.HOSTED_UPGRADED_MODEL,
        }

    def _get_client(self) -> Any:
        if self._client is None:
            # The key is checked per request so a missing key only breaks this backend.
            api_key: Optional[str] = self._settings.OPENAI_API_KEY
            if not api_key:
                raise BackendError(self.name, "OPENAI_API_KEY is not configured")
            self._client = AsyncOpenAI(api_key=api_key, timeout=self._settings.BACKEND_TIMEOUT_SECONDS)
        return self._client

    async def complete(self, prompt: str, model_id: ModelIdentifier) -> str:
        model = resolve_model_name(self.name, self.model_names, model_id)
        client = self._get_client()
        try:
            response = await client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
            )
        except OpenAIError as exc:
            logger.warning({"event": "hosted_completion_failed", "model": model, "error": str(exc)})
            raise BackendError(self.name, f"Hosted completion failed: {exc}", {"model": model}) from exc

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError) as exc:
            raise BackendError(self.name, "Hosted completion returned a malformed response", {"model": model}) from exc
        return require_text(self.name, content)
