"""Turn endpoint: one JSON request in, one spoken reply out."""
from __future__ import annotations

import json
from typing import Any, Dict
from uuid import uuid4

from fastapi import APIRouter, HTTPException, Request

from voxrouter.core.exceptions import (
    BackendError,
    HTTPInternalServerError,
    SynthesisError,
    ValidationError,
    VoxRouterError,
    map_exception_to_http,
)
from voxrouter.core.logging import get_logger
from voxrouter.voice.dispatcher import TurnDispatcher

router = APIRouter(prefix="/api", tags=["chat"])
logger = get_logger(__name__)


def _get_dispatcher(request: Request) -> TurnDispatcher:
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        raise HTTPInternalServerError("Turn dispatcher not initialised")
    return dispatcher


async def _read_json(request: Request) -> Any:
    raw = await request.body()
    try:
        return json.loads(raw or b"null")
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValidationError("Request body is not valid JSON", {"errors": {"body": str(exc)}}) from exc


@router.post("/chat")
async def chat(request: Request) -> Dict[str, str]:
    """Route a transcript to its model and return the spoken reply as base64 mp3."""
    dispatcher = _get_dispatcher(request)
    try:
        payload = await _read_json(request)
        response = await dispatcher.handle_payload(payload)
    except (BackendError, SynthesisError) as exc:
        error_id = uuid4().hex
        logger.error(
            "Error processing chat turn",
            extra={"error_id": error_id, "log_context": f"{type(exc).__name__}: {exc.message} {exc.details}"},
        )
        raise map_exception_to_http(exc, error_id) from exc
    except VoxRouterError as exc:
        logger.info({"event": "chat_request_rejected", "reason": type(exc).__name__, "message": exc.message})
        raise map_exception_to_http(exc) from exc
    except HTTPException:
        raise
    except Exception as exc:  # pragma: no cover - last-resort guard
        error_id = uuid4().hex
        logger.exception("Unhandled chat turn error", extra={"error_id": error_id})
        raise HTTPInternalServerError(error_id=error_id) from exc
    return response.to_payload()
