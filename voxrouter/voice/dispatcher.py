"""Server side of a chat turn: route the transcript, synthesize the reply."""
from __future__ import annotations

import itertools
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from voxrouter.core.config import Settings
from voxrouter.core.exceptions import BackendError, SynthesisError, VoxRouterError
from voxrouter.core.logging import get_logger
from voxrouter.domain.models import ModelIdentifier, TurnRequest, TurnResponse
from voxrouter.domain.prompts import build_prompt, introduce_reply
from voxrouter.infrastructure.backends import AdapterSet, build_adapter_set, ensure_exhaustive
from voxrouter.voice import metrics as chat_metrics
from voxrouter.voice.openai_tts import OpenAITextToSpeechClient, SpeechSynthesizer

logger = get_logger(__name__)


@dataclass
class TurnDispatcher:
    settings: Settings
    adapters: Optional[AdapterSet] = None
    tts: Optional[SpeechSynthesizer] = None
    metrics: Any | None = None
    _turn_ids: Any = field(default_factory=lambda: itertools.count(1), init=False, repr=False)

    def __post_init__(self) -> None:
        if self.adapters is None:
            self.adapters = build_adapter_set(self.settings)
        ensure_exhaustive(self.adapters)
        if self.tts is None:
            self.tts = OpenAITextToSpeechClient(self.settings)
        self.metrics = self.metrics or chat_metrics

    def select_voice(self, model_id: ModelIdentifier) -> str:
        if model_id.is_local:
            return self.settings.TTS_LOCAL_VOICE
        return self.settings.TTS_REMOTE_VOICE

    async def handle_payload(self, payload: Any) -> TurnResponse:
        """Validate a decoded request body and run the turn."""
        return await self.dispatch(TurnRequest.from_payload(payload))

    async def dispatch(self, request: TurnRequest) -> TurnResponse:
        model_id = request.model_id
        turn_id = next(self._turn_ids)
        started_at = time.perf_counter()
        metrics_token = self.metrics.turn_started()
        logger.info({"event": "chat_turn_start", "turn_id": turn_id, "model": model_id.value})

        prompt = build_prompt(request.transcript)
        adapter = self.adapters[model_id]

        try:
            reply = await adapter.complete(prompt, model_id)
        except Exception as exc:
            self._record_failure(metrics_token, model_id, turn_id, "backend", exc)
            if isinstance(exc, VoxRouterError):
                raise
            raise BackendError(getattr(adapter, "name", "unknown"), str(exc)) from exc

        spoken_reply = introduce_reply(model_id, reply)
        voice = self.select_voice(model_id)

        try:
            audio_b64, _ = await self.tts.synthesize(text=spoken_reply, voice_name=voice)
        except Exception as exc:
            self._record_failure(metrics_token, model_id, turn_id, "synthesis", exc)
            if isinstance(exc, VoxRouterError):
                raise
            raise SynthesisError(f"Speech synthesis failed: {exc}") from exc

        self.metrics.turn_completed(metrics_token, model=model_id.value)
        logger.info({
            "event": "chat_turn_complete",
            "turn_id": turn_id,
            "model": model_id.value,
            "voice": voice,
            "latency_ms": int((time.perf_counter() - started_at) * 1000),
        })
        return TurnResponse(audio_payload=audio_b64, model_id=model_id)

    def _record_failure(
        self,
        metrics_token: float,
        model_id: ModelIdentifier,
        turn_id: int,
        stage: str,
        exc: Exception,
    ) -> None:
        logger.error({
            "event": "chat_turn_error",
            "turn_id": turn_id,
            "model": model_id.value,
            "stage": stage,
            "error_type": type(exc).__name__,
            "error_message": str(exc),
        })
        self.metrics.turn_failed(metrics_token, model=model_id.value, stage=stage)
