"""Prompt and spoken-reply shaping for a single turn."""
from __future__ import annotations

from voxrouter.domain.models import ModelIdentifier

# Spoken replies have to stay short enough for real-time playback.
CONCISE_INSTRUCTION = "Be precise and concise, never respond in more than 1-2 sentences!"


def strip_leading_token(transcript: str) -> str:
    """Drop the first word (the detected keyword or instruction word)."""
    parts = transcript.split(None, 1)
    return parts[1] if len(parts) > 1 else ""


def build_prompt(transcript: str) -> str:
    question = " ".join(strip_leading_token(transcript).lower().split())
    return f"{CONCISE_INSTRUCTION} {question}".rstrip()


def introduce_reply(model_id: ModelIdentifier, reply: str) -> str:
    return f"{model_id.spoken_name} here, {reply.strip()}"
