"""OpenAI Text-to-Speech helper."""
from __future__ import annotations

import base64
from typing import Any, Optional, Protocol

from openai import AsyncOpenAI, OpenAIError

from voxrouter.core.config import Settings
from voxrouter.core.exceptions import SynthesisError
from voxrouter.core.logging import get_logger
from voxrouter.domain.models import AUDIO_MIME_TYPE

logger = get_logger(__name__)


class SpeechSynthesizer(Protocol):
    async def synthesize(self, *, text: str, voice_name: str) -> tuple[str, str]:
        ...


class OpenAITextToSpeechClient:
    """Encapsulates OpenAI speech synthesis (mp3 output)."""

    def __init__(self, settings: Settings, *, client: Any | None = None) -> None:
        self._settings = settings
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            api_key: Optional[str] = self._settings.OPENAI_API_KEY
            if not api_key:
                raise SynthesisError("OPENAI_API_KEY is not configured")
            self._client = AsyncOpenAI(api_key=api_key, timeout=self._settings.BACKEND_TIMEOUT_SECONDS)
        return self._client

    async def synthesize(self, *, text: str, voice_name: str) -> tuple[str, str]:
        """Generate speech audio.

        Returns:
            Tuple with base64-encoded audio content and MIME type string.
        """
        if not text.strip():
            raise SynthesisError("Cannot synthesize empty text")

        client = self._get_client()
        try:
            response = await client.audio.speech.create(
                model=self._settings.TTS_MODEL,
                voice=voice_name,
                input=text,
                response_format="mp3",
            )
        except OpenAIError as exc:
            logger.exception("OpenAI TTS synthesis error", extra={"log_context": f"voice={voice_name}"})
            raise SynthesisError(f"Speech synthesis failed: {exc}", {"voice": voice_name}) from exc

        audio_content = getattr(response, "content", None) or b""
        if not audio_content:
            raise SynthesisError("Speech synthesis returned no audio", {"voice": voice_name})
        audio_b64 = base64.b64encode(audio_content)
        return audio_b64.decode("ascii"), AUDIO_MIME_TYPE
