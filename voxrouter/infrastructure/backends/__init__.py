from voxrouter.infrastructure.backends.aggregator import AggregatorAdapter
from voxrouter.infrastructure.backends.base import BackendAdapter
from voxrouter.infrastructure.backends.hosted import HostedCompletionAdapter
from voxrouter.infrastructure.backends.local import LocalInferenceAdapter
from voxrouter.infrastructure.backends.registry import AdapterSet, build_adapter_set, ensure_exhaustive

__all__ = [
    "AdapterSet",
    "AggregatorAdapter",
    "BackendAdapter",
    "HostedCompletionAdapter",
    "LocalInferenceAdapter",
    "build_adapter_set",
    "ensure_exhaustive",
]
