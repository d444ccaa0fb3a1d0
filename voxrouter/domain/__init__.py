from voxrouter.domain.models import (
    AUDIO_MIME_TYPE,
    BackendKind,
    ModelIdentifier,
    TurnRequest,
    TurnResponse,
)

__all__ = ["AUDIO_MIME_TYPE", "BackendKind", "ModelIdentifier", "TurnRequest", "TurnResponse"]
