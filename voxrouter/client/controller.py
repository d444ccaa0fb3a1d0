"""
Turn Controller - client side of the conversational loop.

State flow:

    IDLE -> LISTENING -> SENDING -> PLAYING -> LISTENING ...
              |  ^          |          |
              |  |(results) +--fail----+--> IDLE
              +--stop with no speech-------> IDLE

Every event maps to one transition method. The controller runs on a single
asyncio loop; transcriber callbacks must be delivered on that loop.
"""

from __future__ import annotations

import asyncio
from contextlib import suppress
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from voxrouter.client.interfaces import AudioPlayer, Transcriber
from voxrouter.client.keywords import detect_model
from voxrouter.client.transport import TurnClient
from voxrouter.core.logging import get_logger
from voxrouter.domain.models import ModelIdentifier

logger = get_logger(__name__)

DEFAULT_SILENCE_DELAY = 2.0


class TurnPhase(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    SENDING = "sending"
    PLAYING = "playing"


@dataclass
class ConversationState:
    phase: TurnPhase = TurnPhase.IDLE
    is_recording: bool = False
    is_playing: bool = False
    current_transcript: str = ""
    current_model_id: Optional[ModelIdentifier] = None


class TurnController:
    """Owns recording/playback state and drives one turn at a time."""

    def __init__(
        self,
        *,
        transcriber: Transcriber,
        client: TurnClient,
        player: AudioPlayer,
        silence_delay: float = DEFAULT_SILENCE_DELAY,
    ) -> None:
        self.state = ConversationState()
        self._transcriber = transcriber
        self._client = client
        self._player = player
        self._silence_delay = silence_delay
        self._silence_timer: Optional[asyncio.TimerHandle] = None
        self._turn_task: Optional[asyncio.Task[None]] = None

    @property
    def turn_task(self) -> Optional[asyncio.Task[None]]:
        return self._turn_task

    @property
    def has_pending_silence_timer(self) -> bool:
        return self._silence_timer is not None

    @property
    def busy(self) -> bool:
        return self.state.phase in (TurnPhase.SENDING, TurnPhase.PLAYING)

    # ----------------- transitions -----------------
    def start_listening(self) -> bool:
        """Idle -> Listening."""
        if self.state.phase is not TurnPhase.IDLE:
            return False
        self.state.phase = TurnPhase.LISTENING
        self.state.is_recording = True
        self.state.current_transcript = ""
        self._transcriber.start(self.handle_result)
        logger.debug({"event": "listening_started"})
        return True

    def handle_result(self, transcript: str) -> None:
        """Interim result: replace the transcript and restart the silence timer."""
        if self.state.phase is not TurnPhase.LISTENING:
            return
        self._cancel_silence_timer()
        self.state.current_transcript = transcript
        loop = asyncio.get_running_loop()
        self._silence_timer = loop.call_later(self._silence_delay, self._on_silence)

    def _on_silence(self) -> None:
        self._silence_timer = None
        if self.state.phase is not TurnPhase.LISTENING:
            return
        self._finish_utterance()

    def toggle(self) -> Optional[asyncio.Task[None]]:
        """Manual Start/Stop. Stop sends whatever was captured right away."""
        if self.state.phase is TurnPhase.IDLE:
            self.start_listening()
            return None
        if self.state.phase is TurnPhase.LISTENING:
            return self._finish_utterance()
        return None

    def select_model(self, model_id: ModelIdentifier) -> Optional[asyncio.Task[None]]:
        """Issue a turn for an explicitly chosen model."""
        return self._begin_turn(f"Use {model_id.keyword} model", model_id)

    def handle_playback_ended(self, model_id: ModelIdentifier) -> None:
        """Playing -> Listening, adopting the model the server answered with."""
        if self.state.phase is not TurnPhase.PLAYING:
            logger.debug({"event": "playback_end_ignored", "phase": self.state.phase.value})
            return
        self.state.is_playing = False
        self.state.current_model_id = model_id
        self.state.phase = TurnPhase.IDLE
        self.start_listening()

    async def aclose(self) -> None:
        self._stop_recording()
        task = self._turn_task
        if task is not None and not task.done():
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
        self._fall_back_to_idle()

    # ----------------- turn -----------------
    def _finish_utterance(self) -> Optional[asyncio.Task[None]]:
        transcript = self.state.current_transcript
        if not transcript.strip():
            self._fall_back_to_idle()
            return None
        return self._begin_turn(transcript, detect_model(transcript))

    def _begin_turn(self, transcript: str, model_id: ModelIdentifier) -> Optional[asyncio.Task[None]]:
        if self.busy:
            logger.info({"event": "turn_refused", "phase": self.state.phase.value})
            return None
        # Listening must not overlap sending.
        self._stop_recording()
        self.state.phase = TurnPhase.SENDING
        self.state.current_model_id = model_id
        self.state.current_transcript = ""
        self._turn_task = asyncio.get_running_loop().create_task(self._run_turn(transcript, model_id))
        return self._turn_task

    async def _run_turn(self, transcript: str, model_id: ModelIdentifier) -> None:
        logger.info({"event": "turn_sending", "model": model_id.value})
        try:
            reply = await self._client.send_turn(transcript, model_id)
        except Exception:
            logger.exception("Error sending turn to the chat endpoint")
            self._fall_back_to_idle()
            return

        self.state.phase = TurnPhase.PLAYING
        self.state.is_playing = True
        try:
            await self._player.play(reply.audio, reply.mime_type)
        except Exception:
            logger.exception("Error playing the turn reply")
            self._fall_back_to_idle()
            return
        self.handle_playback_ended(reply.model_id)

    # ----------------- utils -----------------
    def _cancel_silence_timer(self) -> None:
        if self._silence_timer is not None:
            self._silence_timer.cancel()
            self._silence_timer = None

    def _stop_recording(self) -> None:
        self._cancel_silence_timer()
        if self.state.is_recording:
            self._transcriber.stop()
            self.state.is_recording = False

    def _fall_back_to_idle(self) -> None:
        self._stop_recording()
        self.state.phase = TurnPhase.IDLE
        self.state.is_playing = False
        self.state.current_transcript = ""
