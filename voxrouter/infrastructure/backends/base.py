"""Contract shared by every completion backend."""
from __future__ import annotations

from typing import Any, Mapping, Protocol

from voxrouter.core.exceptions import BackendError
from voxrouter.domain.models import ModelIdentifier


class BackendAdapter(Protocol):
    name: str

    async def complete(self, prompt: str, model_id: ModelIdentifier) -> str:
        ...


def resolve_model_name(backend: str, model_names: Mapping[ModelIdentifier, str], model_id: ModelIdentifier) -> str:
    try:
        return model_names[model_id]
    except KeyError:
        raise BackendError(backend, f"{backend} backend does not serve {model_id.value}") from None


def require_text(backend: str, value: Any) -> str:
    """Reject empty or non-string completions coming back from a backend."""
    if not isinstance(value, str) or not value.strip():
        raise BackendError(backend, f"{backend} backend returned no completion text")
    return value.strip()
