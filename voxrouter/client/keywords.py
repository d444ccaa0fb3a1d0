"""Spoken model selection from the start of an utterance."""
from __future__ import annotations

from typing import Tuple

from voxrouter.domain.models import ModelIdentifier

KEYWORD_WINDOW = 3

# Checked in order, first match wins. Each keyword precedes any keyword it
# contains ("gpt4" before "gpt", "local mistral" before "mistral"), and
# "gpt4" outranks every other model when several appear.
MODEL_KEYWORDS: Tuple[Tuple[str, ModelIdentifier], ...] = tuple(
    (model_id.keyword, model_id)
    for model_id in (
        ModelIdentifier.GPT4,
        ModelIdentifier.GPT,
        ModelIdentifier.PERPLEXITY,
        ModelIdentifier.LOCAL_MISTRAL,
        ModelIdentifier.LOCAL_LLAMA,
        ModelIdentifier.MIXTURE,
        ModelIdentifier.MISTRAL,
        ModelIdentifier.LLAMA,
    )
)


def detect_model(transcript: str, default: ModelIdentifier = ModelIdentifier.GPT) -> ModelIdentifier:
    head = " ".join(transcript.split()[:KEYWORD_WINDOW]).lower()
    for keyword, model_id in MODEL_KEYWORDS:
        if keyword in head:
            return model_id
    return default
