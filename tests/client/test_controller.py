import asyncio
from typing import List, Optional

import pytest

from voxrouter.client.controller import TurnController, TurnPhase
from voxrouter.client.transport import TurnClientError, TurnReply
from voxrouter.domain.models import ModelIdentifier

SILENCE = 0.01


class FakeTranscriber:
    def __init__(self) -> None:
        self.on_result = None
        self.started = 0
        self.stopped = 0

    def start(self, on_result) -> None:
        self.on_result = on_result
        self.started += 1

    def stop(self) -> None:
        self.on_result = None
        self.stopped += 1

    def emit(self, transcript: str) -> None:
        assert self.on_result is not None, "transcriber is not running"
        self.on_result(transcript)


class FakeClient:
    def __init__(self) -> None:
        self.calls: List[tuple] = []
        self.gate: Optional[asyncio.Event] = None
        self.error: Optional[Exception] = None
        self.reply_model: Optional[ModelIdentifier] = None

    async def send_turn(self, transcript, model_id=None):
        self.calls.append((transcript, model_id))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return TurnReply(audio=b"mp3-bytes", mime_type="audio/mp3", model_id=self.reply_model or model_id)


class FakePlayer:
    def __init__(self) -> None:
        self.plays: List[tuple] = []
        self.gate: Optional[asyncio.Event] = None
        self.error: Optional[Exception] = None

    async def play(self, audio, mime_type):
        self.plays.append((audio, mime_type))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error


@pytest.fixture
def transcriber():
    return FakeTranscriber()


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def player():
    return FakePlayer()


@pytest.fixture
def controller(transcriber, fake_client, player):
    return TurnController(transcriber=transcriber, client=fake_client, player=player, silence_delay=SILENCE)


async def _wait_for_turn(controller: TurnController) -> None:
    for _ in range(100):
        if controller.turn_task is not None:
            break
        await asyncio.sleep(SILENCE)
    assert controller.turn_task is not None
    await controller.turn_task


@pytest.mark.asyncio
async def test_start_listening_only_from_idle(controller, transcriber):
    assert controller.start_listening() is True
    assert controller.state.phase is TurnPhase.LISTENING
    assert controller.state.is_recording is True
    assert controller.start_listening() is False
    assert transcriber.started == 1


@pytest.mark.asyncio
async def test_results_ignored_when_not_listening(controller):
    controller.handle_result("gpt hello")
    assert controller.state.current_transcript == ""
    assert not controller.has_pending_silence_timer


@pytest.mark.asyncio
async def test_silence_sends_turn_and_resumes_listening(controller, transcriber, fake_client, player):
    controller.start_listening()
    transcriber.emit("perplexity what is the weather")

    await _wait_for_turn(controller)

    assert fake_client.calls == [("perplexity what is the weather", ModelIdentifier.PERPLEXITY)]
    assert player.plays == [(b"mp3-bytes", "audio/mp3")]
    assert controller.state.phase is TurnPhase.LISTENING
    assert controller.state.is_recording is True
    assert controller.state.is_playing is False
    assert controller.state.current_model_id is ModelIdentifier.PERPLEXITY
    assert transcriber.started == 2


@pytest.mark.asyncio
async def test_new_result_restarts_silence_timer(controller, transcriber, fake_client):
    controller.start_listening()
    transcriber.emit("local")
    first_timer = controller._silence_timer
    transcriber.emit("local llama tell me a joke")

    assert first_timer.cancelled()
    assert controller.state.current_transcript == "local llama tell me a joke"

    await _wait_for_turn(controller)
    assert fake_client.calls == [("local llama tell me a joke", ModelIdentifier.LOCAL_LLAMA)]


@pytest.mark.asyncio
async def test_send_failure_returns_to_idle(controller, transcriber, fake_client, player):
    fake_client.error = TurnClientError("HTTP error! status: 500")
    controller.start_listening()
    transcriber.emit("gpt hello")

    await _wait_for_turn(controller)

    assert controller.state.phase is TurnPhase.IDLE
    assert controller.state.is_recording is False
    assert controller.state.is_playing is False
    assert not controller.has_pending_silence_timer
    assert player.plays == []
    assert transcriber.started == 1


@pytest.mark.asyncio
async def test_playback_failure_returns_to_idle(controller, transcriber, player):
    player.error = RuntimeError("audio device busy")
    controller.start_listening()
    transcriber.emit("gpt hello")

    await _wait_for_turn(controller)

    assert controller.state.phase is TurnPhase.IDLE
    assert controller.state.is_playing is False
    assert transcriber.started == 1


@pytest.mark.asyncio
async def test_recording_never_overlaps_playback(controller, transcriber, player):
    player.gate = asyncio.Event()
    controller.start_listening()
    transcriber.emit("gpt4 hello")
    task = controller.toggle()

    while controller.state.phase is not TurnPhase.PLAYING:
        await asyncio.sleep(0)
    assert controller.state.is_playing is True
    assert controller.state.is_recording is False

    player.gate.set()
    await task
    assert controller.state.is_recording is True
    assert controller.state.is_playing is False


@pytest.mark.asyncio
async def test_manual_stop_sends_immediately(controller, transcriber, fake_client):
    assert controller.toggle() is None
    assert controller.state.phase is TurnPhase.LISTENING
    transcriber.emit("mixture what is rust")

    task = controller.toggle()

    assert task is not None
    assert not controller.has_pending_silence_timer
    assert controller.state.phase is TurnPhase.SENDING
    await task
    await asyncio.sleep(SILENCE * 3)
    assert fake_client.calls == [("mixture what is rust", ModelIdentifier.MIXTURE)]


@pytest.mark.asyncio
async def test_manual_stop_without_speech_goes_idle(controller, transcriber, fake_client):
    controller.toggle()
    task = controller.toggle()

    assert task is None
    assert controller.state.phase is TurnPhase.IDLE
    assert controller.state.is_recording is False
    assert transcriber.stopped == 1
    assert fake_client.calls == []


@pytest.mark.asyncio
async def test_events_refused_while_busy(controller, transcriber, fake_client):
    fake_client.gate = asyncio.Event()
    controller.start_listening()
    transcriber.emit("gpt hello")
    task = controller.toggle()
    assert controller.state.phase is TurnPhase.SENDING

    assert controller.toggle() is None
    assert controller.select_model(ModelIdentifier.LLAMA) is None
    assert controller.start_listening() is False
    controller.handle_result("gpt something else")
    assert not controller.has_pending_silence_timer

    fake_client.gate.set()
    await task
    assert len(fake_client.calls) == 1


@pytest.mark.asyncio
async def test_select_model_sends_use_phrase(controller, transcriber, fake_client):
    controller.start_listening()
    transcriber.emit("gpt half a thought")

    task = controller.select_model(ModelIdentifier.LOCAL_MISTRAL)

    assert not controller.has_pending_silence_timer
    assert controller.state.current_model_id is ModelIdentifier.LOCAL_MISTRAL
    await task
    assert fake_client.calls == [("Use local mistral model", ModelIdentifier.LOCAL_MISTRAL)]


@pytest.mark.asyncio
async def test_reply_model_is_adopted(controller, transcriber, fake_client):
    fake_client.reply_model = ModelIdentifier.GPT4
    controller.start_listening()
    transcriber.emit("hello there")

    await _wait_for_turn(controller)

    assert fake_client.calls[0][1] is ModelIdentifier.GPT
    assert controller.state.current_model_id is ModelIdentifier.GPT4


@pytest.mark.asyncio
async def test_aclose_cancels_inflight_turn(controller, transcriber, fake_client):
    fake_client.gate = asyncio.Event()
    controller.start_listening()
    transcriber.emit("gpt hello")
    task = controller.toggle()
    await asyncio.sleep(0)

    await controller.aclose()

    assert task.cancelled()
    assert controller.state.phase is TurnPhase.IDLE
    assert controller.state.is_recording is False


@pytest.mark.asyncio
async def test_playback_end_ignored_outside_playing(controller, transcriber):
    controller.start_listening()

    controller.handle_playback_ended(ModelIdentifier.LLAMA)

    assert controller.state.phase is TurnPhase.LISTENING
    assert controller.state.current_model_id is None
    assert transcriber.started == 1
    assert transcriber.stopped == 0


@pytest.mark.asyncio
async def test_playback_end_ignored_while_sending(controller, transcriber, fake_client):
    fake_client.gate = asyncio.Event()
    controller.start_listening()
    transcriber.emit("mixture hello")
    task = controller.toggle()

    controller.handle_playback_ended(ModelIdentifier.GPT)

    assert controller.state.phase is TurnPhase.SENDING
    assert controller.state.is_recording is False
    assert controller.state.current_model_id is ModelIdentifier.MIXTURE
    fake_client.gate.set()
    await task
    assert transcriber.started == 2
