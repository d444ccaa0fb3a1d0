"""Local inference server (Ollama) adapter."""
from __future__ import annotations

from typing import Any, Dict

import httpx

from voxrouter.core.config import Settings
from voxrouter.core.exceptions import BackendError
from voxrouter.core.logging import get_logger
from voxrouter.domain.models import ModelIdentifier
from voxrouter.infrastructure.backends.base import require_text, resolve_model_name

logger = get_logger(__name__)

LOCAL_MODEL_NAMES: Dict[ModelIdentifier, str] = {
    ModelIdentifier.LOCAL_MISTRAL: "mistral",
    ModelIdentifier.LOCAL_LLAMA: "llama2",
}


class LocalInferenceAdapter:
    """Non-streaming generate call against a locally reachable Ollama server."""

    name = "local"

    def __init__(self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._settings = settings
        self._transport = transport
        self.model_names = dict(LOCAL_MODEL_NAMES)

    async def complete(self, prompt: str, model_id: ModelIdentifier) -> str:
        model = resolve_model_name(self.name, self.model_names, model_id)
        url = f"{self._settings.OLLAMA_BASE_URL.rstrip('/')}/api/generate"
        payload: Dict[str, Any] = {"model": model, "prompt": prompt, "stream": False}

        try:
            async with httpx.AsyncClient(
                timeout=self._settings.BACKEND_TIMEOUT_SECONDS,
                transport=self._transport,
            ) as client:
                response = await client.post(url, json=payload)
        except httpx.HTTPError as exc:
            logger.warning({"event": "local_inference_unreachable", "url": url, "error": str(exc)})
            raise BackendError(self.name, f"Local inference request failed: {exc}", {"model": model}) from exc

        if response.status_code != 200:
            logger.error(
                "Local inference failed",
                extra={"model": model, "log_context": f"status={response.status_code} detail={response.text}"},
            )
            raise BackendError(
                self.name,
                f"Local inference request failed: {response.status_code}",
                {"model": model, "status_code": response.status_code},
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise BackendError(self.name, "Local inference returned invalid JSON", {"model": model}) from exc
        if not isinstance(data, dict):
            raise BackendError(self.name, "Local inference returned a malformed response", {"model": model})
        return require_text(self.name, data.get("response"))
