"""
voxrouter - API server
======================
FastAPI application exposing the single turn endpoint (POST /api/chat).
Build it with ``create_app``; uvicorn runs it through the factory:

    uvicorn --factory voxrouter.api.main:create_app
"""

from __future__ import annotations

from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from voxrouter.api.chat_endpoints import router as chat_router
from voxrouter.core.config import Settings, get_settings
from voxrouter.core.logging import get_logger, setup_unified_logging
from voxrouter.voice.dispatcher import TurnDispatcher

logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    dispatcher: Optional[TurnDispatcher] = None,
) -> FastAPI:
    """Build the application with an explicitly constructed dispatcher."""
    if settings is None:
        load_dotenv()
        settings = get_settings()
    setup_unified_logging(level=settings.log_level_name, log_format=settings.LOG_FORMAT)

    app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["POST"],
        allow_headers=["Content-Type"],
    )

    app.state.settings = settings
    app.state.dispatcher = dispatcher or TurnDispatcher(settings=settings)
    app.include_router(chat_router)

    logger.info({
        "event": "dispatcher_ready",
        "hosted_configured": bool(settings.OPENAI_API_KEY),
        "aggregator_configured": bool(settings.PERPLEXITY_API_KEY),
        "local_base_url": settings.OLLAMA_BASE_URL,
    })
    return app
