"""Prometheus metrics for chat turns."""
from __future__ import annotations

import time

from prometheus_client import Counter, Histogram  # type: ignore

# Counters
CHAT_TURNS = Counter(
    "voxrouter_chat_turns_total",
    "Chat turns processed by the dispatcher",
    labelnames=("model", "result"),
)
CHAT_TURN_FAILURES = Counter(
    "voxrouter_chat_turn_failures_total",
    "Failed chat turns by failing stage",
    labelnames=("stage",),
)

# Histograms
CHAT_TURN_LATENCY = Histogram(
    "voxrouter_chat_turn_latency_milliseconds",
    "Latency of chat turns from validated request to synthesized audio",
    buckets=(200, 500, 1000, 2000, 3000, 5000, 10000, 20000, 30000),
)


def turn_started() -> float:
    return time.perf_counter()


def turn_completed(started_at: float, *, model: str) -> None:
    elapsed_ms = (time.perf_counter() - started_at) * 1000.0
    CHAT_TURN_LATENCY.observe(elapsed_ms)
    CHAT_TURNS.labels(model=model, result="success").inc()


def turn_failed(started_at: float, *, model: str, stage: str) -> None:
    elapsed_ms = (time.perf_counter() - started_at) * 1000.0
    CHAT_TURN_LATENCY.observe(elapsed_ms)
    CHAT_TURNS.labels(model=model, result="error").inc()
    CHAT_TURN_FAILURES.labels(stage=stage).inc()
