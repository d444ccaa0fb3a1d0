"""Terminal front-end: typed lines stand in for speech, replies land on disk."""
from __future__ import annotations

import asyncio
import shlex
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence, TextIO

from voxrouter.client.controller import TurnController, TurnPhase
from voxrouter.client.interfaces import ResultCallback
from voxrouter.client.transport import TurnClient
from voxrouter.core.exceptions import UnsupportedModelError
from voxrouter.core.logging import get_logger
from voxrouter.domain.models import ModelIdentifier

logger = get_logger(__name__)

HELP_TEXT = (
    "Type to speak; a pause ends the utterance.\n"
    "  /toggle          start listening, or stop and send now\n"
    "  /model <name>    ask a specific model ({models})\n"
    "  /quit            leave"
)


class ConsoleTranscriber:
    """Each typed line extends the running hypothesis of the utterance."""

    def __init__(self) -> None:
        self._on_result: Optional[ResultCallback] = None
        self._hypothesis = ""

    @property
    def active(self) -> bool:
        return self._on_result is not None

    def start(self, on_result: ResultCallback) -> None:
        self._on_result = on_result
        self._hypothesis = ""

    def stop(self) -> None:
        self._on_result = None

    def feed(self, text: str) -> bool:
        if self._on_result is None:
            return False
        self._hypothesis = f"{self._hypothesis} {text}".strip()
        self._on_result(self._hypothesis)
        return True


class FileAudioPlayer:
    """Write each reply to ``out_dir``; optionally run a player command on it."""

    def __init__(self, out_dir: Path, command: Sequence[str] = ()) -> None:
        self.out_dir = Path(out_dir)
        self.command = list(command)

    async def play(self, audio: bytes, mime_type: str) -> None:
        self.out_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%dT%H%M%S%f")
        path = self.out_dir / f"reply_{timestamp}.mp3"
        path.write_bytes(audio)
        logger.info({"event": "reply_saved", "path": str(path), "mime_type": mime_type})
        if not self.command:
            return
        process = await asyncio.create_subprocess_exec(*self.command, str(path))
        return_code = await process.wait()
        if return_code != 0:
            raise RuntimeError(f"Player exited with status {return_code}")


def _pump_lines(stream: TextIO, loop: asyncio.AbstractEventLoop, queue: "asyncio.Queue[str]") -> None:
    """Blocking reader run on a daemon thread; an empty string marks EOF."""
    while True:
        line = stream.readline()
        try:
            loop.call_soon_threadsafe(queue.put_nowait, line)
        except RuntimeError:
            # loop already closed
            return
        if not line:
            return


def start_line_reader(stream: TextIO) -> "asyncio.Queue[str]":
    """Feed lines from ``stream`` into a queue.

    The reader is a daemon thread, not a default-executor worker, so a pending
    ``readline`` never holds up loop shutdown.
    """
    loop = asyncio.get_running_loop()
    queue: "asyncio.Queue[str]" = asyncio.Queue()
    threading.Thread(
        target=_pump_lines,
        args=(stream, loop, queue),
        name="voxrouter-stdin",
        daemon=True,
    ).start()
    return queue


async def run_console(
    endpoint_url: str,
    *,
    out_dir: Path,
    player_command: str = "",
    silence_delay: float = 2.0,
) -> None:
    transcriber = ConsoleTranscriber()
    controller = TurnController(
        transcriber=transcriber,
        client=TurnClient(endpoint_url),
        player=FileAudioPlayer(out_dir, shlex.split(player_command)),
        silence_delay=silence_delay,
    )
    print(HELP_TEXT.format(models=", ".join(m.value for m in ModelIdentifier)))
    lines = start_line_reader(sys.stdin)
    controller.start_listening()

    try:
        while True:
            line = await lines.get()
            if not line:
                break
            line = line.strip()
            if not line:
                continue
            if line == "/quit":
                break
            if line == "/toggle":
                controller.toggle()
            elif line.startswith("/model"):
                _, _, name = line.partition(" ")
                try:
                    controller.select_model(ModelIdentifier.parse(name))
                except UnsupportedModelError as exc:
                    print(exc.message)
            elif not transcriber.feed(line):
                state = controller.state.phase
                hint = "press /toggle to listen" if state is TurnPhase.IDLE else f"busy ({state.value})"
                print(f"Not listening: {hint}")
    finally:
        await controller.aclose()
