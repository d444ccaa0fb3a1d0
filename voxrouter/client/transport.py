"""HTTP client for the turn endpoint."""
from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from voxrouter.core.exceptions import UnsupportedModelError
from voxrouter.core.logging import get_logger
from voxrouter.domain.models import AUDIO_MIME_TYPE, ModelIdentifier, TurnRequest

logger = get_logger(__name__)


class TurnClientError(Exception):
    """A turn request failed: network, status or response body."""


@dataclass(frozen=True)
class TurnReply:
    audio: bytes
    mime_type: str
    model_id: ModelIdentifier


class TurnClient:
    def __init__(
        self,
        endpoint_url: str,
        *,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.endpoint_url = endpoint_url
        self._timeout = timeout
        self._transport = transport

    async def send_turn(self, transcript: str, model_id: Optional[ModelIdentifier] = None) -> TurnReply:
        body: Dict[str, Any] = {"message": transcript}
        if model_id is not None:
            body = TurnRequest(transcript=transcript, model_id=model_id).to_payload()
        logger.debug({"event": "turn_request", "url": self.endpoint_url, "model": body.get("model")})

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self.endpoint_url, json=body)
        except httpx.HTTPError as exc:
            raise TurnClientError(f"Turn request failed: {exc}") from exc

        if not response.is_success:
            raise TurnClientError(f"HTTP error! status: {response.status_code}")

        try:
            data = response.json()
        except ValueError as exc:
            raise TurnClientError("Turn response is not JSON") from exc
        return self._parse_reply(data)

    @staticmethod
    def _parse_reply(data: Any) -> TurnReply:
        if not isinstance(data, dict) or not data.get("data"):
            raise TurnClientError("Turn response carries no audio")
        if data.get("contentType") != AUDIO_MIME_TYPE:
            raise TurnClientError(f"Unexpected content type: {data.get('contentType')!r}")
        try:
            audio = base64.b64decode(data["data"], validate=True)
            model_id = ModelIdentifier.parse(data.get("model"))
        except (binascii.Error, TypeError, UnsupportedModelError) as exc:
            raise TurnClientError(f"Malformed turn response: {exc}") from exc
        return TurnReply(audio=audio, mime_type=AUDIO_MIME_TYPE, model_id=model_id)
