#!/usr/bin/env python3
"""
voxrouter command line
Runs the turn endpoint server or the console chat client.
"""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Optional, Sequence

import uvicorn
from dotenv import load_dotenv

from voxrouter.core.config import get_settings
from voxrouter.core.logging import setup_unified_logging


def run_server(host: str, port: int, reload: bool = False, log_level: str = "info") -> None:
    """Run the FastAPI server through the app factory."""
    print(f"-> Starting voxrouter on {host}:{port}")
    print(f"-> Turn endpoint: http://localhost:{port}/api/chat")
    uvicorn.run(
        "voxrouter.api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
        log_config=None,
    )


def run_chat(endpoint: str, out_dir: Path, player: str, silence_delay: float) -> None:
    from voxrouter.client.console import run_console

    try:
        asyncio.run(run_console(endpoint, out_dir=out_dir, player_command=player, silence_delay=silence_delay))
    except KeyboardInterrupt:
        print("\nBye!")


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    settings = get_settings()

    parser = argparse.ArgumentParser(prog="voxrouter", description="Voice chat model router")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the turn endpoint server")
    serve.add_argument("--host", default=settings.HOST, help="Bind address")
    serve.add_argument("--port", type=int, default=settings.PORT, help="Port")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")

    chat = subparsers.add_parser("chat", help="Talk to the server from the terminal")
    chat.add_argument("--endpoint", default=settings.CHAT_ENDPOINT_URL, help="Turn endpoint URL")
    chat.add_argument("--out-dir", type=Path, default=Path("replies"), help="Where reply audio is written")
    chat.add_argument("--player", default="", help="Command used to play each reply, e.g. 'mpg123 -q'")
    chat.add_argument("--silence", type=float, default=settings.SILENCE_DELAY_SECONDS, help="Seconds of quiet ending an utterance")

    args = parser.parse_args(argv)
    setup_unified_logging(level=settings.log_level_name, log_format=settings.LOG_FORMAT)

    if args.command == "serve":
        run_server(args.host, args.port, reload=args.reload, log_level=settings.log_level_name.lower())
    else:
        run_chat(args.endpoint, args.out_dir, args.player, args.silence)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
