"""Exhaustive mapping from model identifier to the adapter that serves it."""
from __future__ import annotations

from typing import Dict, Mapping

from voxrouter.core.config import Settings
from voxrouter.core.exceptions import ConfigurationError
from voxrouter.domain.models import BackendKind, ModelIdentifier
from voxrouter.infrastructure.backends.aggregator import AggregatorAdapter
from voxrouter.infrastructure.backends.base import BackendAdapter
from voxrouter.infrastructure.backends.hosted import HostedCompletionAdapter
from voxrouter.infrastructure.backends.local import LocalInferenceAdapter

AdapterSet = Mapping[ModelIdentifier, BackendAdapter]


def build_adapter_set(settings: Settings) -> Dict[ModelIdentifier, BackendAdapter]:
    adapters: Dict[BackendKind, BackendAdapter] = {
        BackendKind.HOSTED: HostedCompletionAdapter(settings),
        BackendKind.LOCAL: LocalInferenceAdapter(settings),
        BackendKind.AGGREGATOR: AggregatorAdapter(settings),
    }
    return {model_id: adapters[model_id.backend] for model_id in ModelIdentifier}


def ensure_exhaustive(adapters: AdapterSet) -> None:
    missing = [model_id.value for model_id in ModelIdentifier if model_id not in adapters]
    if missing:
        raise ConfigurationError("Adapter set does not cover every model", {"missing": missing})
