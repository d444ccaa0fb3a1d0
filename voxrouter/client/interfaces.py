from typing import Callable, Protocol

ResultCallback = Callable[[str], None]


class Transcriber(Protocol):
    """Streaming speech-to-text collaborator.

    After ``start`` the transcriber calls ``on_result`` with the full running
    hypothesis of the current utterance every time it changes.
    """

    def start(self, on_result: ResultCallback) -> None: ...

    def stop(self) -> None: ...


class AudioPlayer(Protocol):
    async def play(self, audio: bytes, mime_type: str) -> None:
        """Play the clip and return once playback has ended."""
        ...
