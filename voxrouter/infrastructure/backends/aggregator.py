"""Third-party aggregator (Perplexity) adapter."""
from __future__ import annotations

from typing import Any, Dict

import httpx

from voxrouter.core.config import Settings
from voxrouter.core.exceptions import BackendError
from voxrouter.core.logging import get_logger
from voxrouter.domain.models import ModelIdentifier
from voxrouter.infrastructure.backends.base import require_text, resolve_model_name

logger = get_logger(__name__)

AGGREGATOR_MODEL_NAMES: Dict[ModelIdentifier, str] = {
    ModelIdentifier.MIXTURE: "mixtral-8x7b-instruct",
    ModelIdentifier.MISTRAL: "mistral-7b-instruct",
    ModelIdentifier.PERPLEXITY: "pplx-70b-online",
    ModelIdentifier.LLAMA: "llama-2-70b-chat",
}
SYSTEM_PROMPT = "Be precise and concise."


class AggregatorAdapter:
    """Chat completions on the aggregator endpoint with a bearer token."""

    name = "aggregator"

    def __init__(self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._settings = settings
        self._transport = transport
        self.model_names = dict(AGGREGATOR_MODEL_NAMES)

    async def complete(self, prompt: str, model_id: ModelIdentifier) -> str:
        model = resolve_model_name(self.name, self.model_names, model_id)
        token = self._settings.PERPLEXITY_API_KEY
        if not token:
            raise BackendError(self.name, "PERPLEXITY_API_KEY is not configured", {"model": model})

        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        payload = self._build_payload(model=model, prompt=prompt)
        url = self._settings.PERPLEXITY_ENDPOINT

        try:
            async with httpx.AsyncClient(
                timeout=self._settings.BACKEND_TIMEOUT_SECONDS,
                transport=self._transport,
            ) as client:
                response = await client.post(url, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            logger.warning({"event": "aggregator_unreachable", "url": url, "error": str(exc)})
            raise BackendError(self.name, f"Aggregator request failed: {exc}", {"model": model}) from exc

        if response.status_code != 200:
            logger.error(
                "Aggregator completion failed",
                extra={"model": model, "log_context": f"status={response.status_code} detail={response.text}"},
            )
            raise BackendError(
                self.name,
                f"Aggregator request failed: {response.status_code}",
                {"model": model, "status_code": response.status_code},
            )

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise BackendError(self.name, "Aggregator returned a malformed response", {"model": model}) from exc
        return require_text(self.name, content)

    @staticmethod
    def _build_payload(*, model: str, prompt: str) -> Dict[str, Any]:
        return {
            "model": model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        }
