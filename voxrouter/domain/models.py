"""Typed models shared by the dispatcher, the HTTP layer and the client."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator
from pydantic import ValidationError as PydanticValidationError

from voxrouter.core.exceptions import UnsupportedModelError, ValidationError

AUDIO_MIME_TYPE = "audio/mp3"


class BackendKind(str, Enum):
    HOSTED = "hosted"
    LOCAL = "local"
    AGGREGATOR = "aggregator"


class ModelIdentifier(str, Enum):
    """Closed set of selectable models. The value is the wire form."""

    GPT = "gpt"
    GPT4 = "gpt4"
    PERPLEXITY = "perplexity"
    MIXTURE = "mixture"
    MISTRAL = "mistral"
    LLAMA = "llama"
    LOCAL_MISTRAL = "local-mistral"
    LOCAL_LLAMA = "local-llama"

    @classmethod
    def parse(cls, raw: Any) -> "ModelIdentifier":
        """Resolve a wire value or a spoken keyword ("local mistral")."""
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            raise UnsupportedModelError(raw)
        normalized = "-".join(raw.strip().lower().split())
        try:
            return cls(normalized)
        except ValueError:
            raise UnsupportedModelError(raw) from None

    @property
    def keyword(self) -> str:
        return self.value.replace("-", " ")

    @property
    def spoken_name(self) -> str:
        keyword = self.keyword
        return keyword[:1].upper() + keyword[1:]

    @property
    def is_local(self) -> bool:
        return self.backend is BackendKind.LOCAL

    @property
    def backend(self) -> BackendKind:
        return MODEL_BACKENDS[self]


MODEL_BACKENDS: Mapping[ModelIdentifier, BackendKind] = {
    ModelIdentifier.GPT: BackendKind.HOSTED,
    ModelIdentifier.GPT4: BackendKind.HOSTED,
    ModelIdentifier.PERPLEXITY: BackendKind.AGGREGATOR,
    ModelIdentifier.MIXTURE: BackendKind.AGGREGATOR,
    ModelIdentifier.MISTRAL: BackendKind.AGGREGATOR,
    ModelIdentifier.LLAMA: BackendKind.AGGREGATOR,
    ModelIdentifier.LOCAL_MISTRAL: BackendKind.LOCAL,
    ModelIdentifier.LOCAL_LLAMA: BackendKind.LOCAL,
}


class ChatRequestBody(BaseModel):
    """Wire contract of the turn endpoint."""

    model_config = ConfigDict(extra="ignore")

    message: StrictStr
    model: StrictStr = Field(default=ModelIdentifier.GPT.value)

    @field_validator("message")
    @classmethod
    def _message_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message must not be empty")
        return value


class ChatResponseBody(BaseModel):
    data: str
    contentType: str = AUDIO_MIME_TYPE
    model: str


@dataclass(frozen=True)
class TurnRequest:
    transcript: str
    model_id: ModelIdentifier = ModelIdentifier.GPT

    @classmethod
    def from_payload(cls, payload: Any) -> "TurnRequest":
        """Validate a decoded JSON body.

        Raises ``ValidationError`` for shape problems and
        ``UnsupportedModelError`` for a well-formed but unknown model.
        """
        if not isinstance(payload, Mapping):
            raise ValidationError("Request body must be a JSON object", {"errors": {"body": "expected object"}})
        try:
            body = ChatRequestBody.model_validate(dict(payload))
        except PydanticValidationError as exc:
            errors = {
                ".".join(str(part) for part in err["loc"]) or "body": err["msg"]
                for err in exc.errors()
            }
            raise ValidationError("Invalid turn request", {"errors": errors}) from exc
        return cls(transcript=body.message, model_id=ModelIdentifier.parse(body.model))

    def to_payload(self) -> dict[str, str]:
        return {"message": self.transcript, "model": self.model_id.value}


@dataclass(frozen=True)
class TurnResponse:
    audio_payload: str
    model_id: ModelIdentifier
    mime_type: str = AUDIO_MIME_TYPE

    def to_payload(self) -> dict[str, str]:
        return ChatResponseBody(
            data=self.audio_payload,
            contentType=self.mime_type,
            model=self.model_id.value,
        ).model_dump()
