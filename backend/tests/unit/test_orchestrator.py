"""
Unit tests for the request orchestrator.

Covers the end-to-end relay scenarios: a plain text turn, a turn
superseded mid-generation, admission rejection and speech failure.
"""

import asyncio
import base64

import pytest

from lib.voice_relay import RequestOrchestrator
from lib.voice_relay.core.errors import (
    GenerationError,
    RateLimitedError,
    TransientGenerationError,
)
from lib.voice_relay.core.types import JobKind
from relay_fakes import FAKE_MP3, FakeGenerator, FakeSpeech, events_of, types_of


def uploads_empty(config) -> bool:
    return not config.uploads_dir.exists() or not any(config.uploads_dir.iterdir())


class TestTextTurn:
    """Scenario: a fresh limiter, one text message."""

    @pytest.mark.asyncio
    async def test_text_turn_broadcasts_reply_and_audio(self, orchestrator, fake_generator, relay_config):
        listener = await orchestrator.hub.subscribe()

        result = await orchestrator.handle_text("hello")

        assert result.to_dict() == {"ok": True, "text": fake_generator.reply}
        assert orchestrator.jobs.current.id == 1
        assert fake_generator.calls[0].text == "hello"

        events = events_of(listener)
        assert types_of(events) == ["connected", "status", "assistant", "response_audio"]
        assert events[1] == {"type": "status", "message": "Processing message..."}
        assert events[2] == {"type": "assistant", "text": fake_generator.reply}
        assert base64.b64decode(events[3]["audio"]) == FAKE_MP3
        assert uploads_empty(relay_config)

    @pytest.mark.asyncio
    async def test_voice_turn_passes_audio_and_mime_type(self, orchestrator, fake_generator):
        listener = await orchestrator.hub.subscribe()

        result = await orchestrator.handle_voice(b"\x1aE\xdf\xa3webm", "audio/ogg")

        assert result.text == fake_generator.reply
        request = fake_generator.calls[0]
        assert request.audio == b"\x1aE\xdf\xa3webm"
        assert request.mime_type == "audio/ogg"
        assert orchestrator.jobs.current.kind is JobKind.VOICE
        assert events_of(listener)[1] == {"type": "status", "message": "Processing audio..."}

    @pytest.mark.asyncio
    async def test_voice_mime_type_defaults_to_webm(self, orchestrator, fake_generator):
        await orchestrator.handle_voice(b"audio", None)
        assert fake_generator.calls[0].mime_type == "audio/webm"

    @pytest.mark.asyncio
    async def test_result_independent_of_listeners(self, orchestrator, fake_generator):
        result = await orchestrator.handle_text("hello")
        assert result.text == fake_generator.reply
        assert orchestrator.hub.listener_count == 0

    @pytest.mark.asyncio
    async def test_language_hint_follows_reply_script(self, orchestrator, fake_generator, fake_speech):
        fake_generator.reply = "नमस्ते, मैं आपकी कैसे मदद कर सकता हूँ?"
        await orchestrator.handle_text("namaste")
        assert fake_speech.calls == [(fake_generator.reply, "hi")]

    @pytest.mark.asyncio
    async def test_empty_reply_is_reported_as_cancelled(self, orchestrator, fake_generator, fake_speech):
        fake_generator.reply = ""
        listener = await orchestrator.hub.subscribe()

        result = await orchestrator.handle_text("hello")

        assert result.to_dict() == {"ok": True, "cancelled": True, "reason": "empty_reply"}
        assert "assistant" not in types_of(events_of(listener))
        assert fake_speech.calls == []


class TestSupersededTurn:
    """Scenario: request B arrives while A is still generating."""

    @pytest.mark.asyncio
    async def test_stale_reply_is_discarded(self, orchestrator, fake_generator, fake_speech):
        fake_generator.replies = {"A": "reply to A", "B": "reply to B"}
        gate_a = fake_generator.gate("A")
        listener = await orchestrator.hub.subscribe()

        task_a = asyncio.create_task(orchestrator.handle_text("A"))
        await asyncio.wait_for(fake_generator.entered["A"].wait(), timeout=1.0)
        job_a = orchestrator.jobs.current

        result_b = await orchestrator.handle_text("B")
        assert job_a.cancelled is True
        assert orchestrator.jobs.current.id == job_a.id + 1

        gate_a.set()
        result_a = await asyncio.wait_for(task_a, timeout=1.0)

        assert result_a.to_dict() == {"ok": True, "cancelled": True, "reason": "superseded"}
        assert result_b.to_dict() == {"ok": True, "text": "reply to B"}

        events = events_of(listener)
        assert types_of(events) == [
            "connected",
            "status",           # A processing
            "stop",             # A superseded by B
            "status",           # B processing
            "assistant",        # B only
            "response_audio",
        ]
        assert events[4]["text"] == "reply to B"
        assert [text for text, _ in fake_speech.calls] == ["reply to B"]

    @pytest.mark.asyncio
    async def test_interrupt_during_generation(self, orchestrator, fake_generator):
        gate = fake_generator.gate("hello")
        listener = await orchestrator.hub.subscribe()

        task = asyncio.create_task(orchestrator.handle_text("hello"))
        await asyncio.wait_for(fake_generator.entered["hello"].wait(), timeout=1.0)

        assert await orchestrator.interrupt() is True
        gate.set()
        result = await task

        assert result.to_dict() == {"ok": True, "cancelled": True, "reason": "interrupted"}
        assert types_of(events_of(listener)) == ["connected", "status", "stop"]

    @pytest.mark.asyncio
    async def test_cancel_during_speech_suppresses_audio(self, fake_generator, relay_config):
        holder = {}

        async def interrupt_mid_synthesis():
            await holder["orchestrator"].interrupt()

        speech = FakeSpeech(hook=interrupt_mid_synthesis)
        orchestrator = RequestOrchestrator.from_config(fake_generator, speech, relay_config)
        holder["orchestrator"] = orchestrator
        listener = await orchestrator.hub.subscribe()

        result = await orchestrator.handle_text("hello")

        assert result.to_dict() == {"ok": True, "text": fake_generator.reply}
        assert types_of(events_of(listener)) == ["connected", "status", "assistant", "stop"]
        assert uploads_empty(relay_config)


class TestAdmission:
    """Scenario: drained limiter, zero wait budget."""

    @pytest.mark.asyncio
    async def test_rate_limited_text_creates_no_job(self, orchestrator, relay_config):
        relay_config.text_admission_wait = 0
        while orchestrator.limiter.try_acquire():
            pass
        listener = await orchestrator.hub.subscribe()

        with pytest.raises(RateLimitedError):
            await orchestrator.handle_text("hello")

        assert orchestrator.jobs.current is None
        assert types_of(events_of(listener)) == ["connected"]

    @pytest.mark.asyncio
    async def test_rate_limited_voice_announces_status(self, orchestrator, fake_generator):
        while orchestrator.limiter.try_acquire():
            pass
        listener = await orchestrator.hub.subscribe()

        with pytest.raises(RateLimitedError):
            await orchestrator.handle_voice(b"audio", "audio/webm")

        assert orchestrator.jobs.current is None
        assert fake_generator.calls == []
        assert events_of(listener)[1:] == [
            {"type": "status", "message": "Rate limited: try again later."}
        ]

    @pytest.mark.asyncio
    async def test_rejection_does_not_disturb_running_job(self, orchestrator, fake_generator, relay_config):
        relay_config.text_admission_wait = 0
        gate = fake_generator.gate("first")
        task = asyncio.create_task(orchestrator.handle_text("first"))
        await asyncio.wait_for(fake_generator.entered["first"].wait(), timeout=1.0)
        running = orchestrator.jobs.current

        while orchestrator.limiter.try_acquire():
            pass
        with pytest.raises(RateLimitedError):
            await orchestrator.handle_text("second")

        assert orchestrator.jobs.current is running
        assert running.cancelled is False
        gate.set()
        assert (await task).text == fake_generator.reply


class TestFailures:
    """Collaborator failures."""

    @pytest.mark.asyncio
    async def test_speech_failure_keeps_text_response(self, fake_generator, relay_config):
        orchestrator = RequestOrchestrator.from_config(fake_generator, FakeSpeech(fail=True), relay_config)
        listener = await orchestrator.hub.subscribe()

        result = await orchestrator.handle_text("hello")

        assert result.to_dict() == {"ok": True, "text": fake_generator.reply}
        assert types_of(events_of(listener)) == ["connected", "status", "assistant"]
        assert uploads_empty(relay_config)

    @pytest.mark.asyncio
    async def test_generation_failure_is_surfaced_and_broadcast(self, orchestrator, fake_generator):
        fake_generator.error = TransientGenerationError("upstream 503", status=503)
        listener = await orchestrator.hub.subscribe()

        with pytest.raises(TransientGenerationError):
            await orchestrator.handle_text("hello")

        assert events_of(listener)[-1] == {
            "type": "status",
            "message": "Server error processing message.",
        }

    @pytest.mark.asyncio
    async def test_unexpected_generator_error_is_wrapped(self, orchestrator, fake_generator):
        fake_generator.error = KeyError("candidates")
        listener = await orchestrator.hub.subscribe()

        with pytest.raises(GenerationError) as exc_info:
            await orchestrator.handle_voice(b"audio")

        assert isinstance(exc_info.value.__cause__, KeyError)
        assert events_of(listener)[-1]["message"] == "Server error processing audio."

    @pytest.mark.asyncio
    async def test_state_consistent_after_failure(self, orchestrator, fake_generator):
        fake_generator.error = GenerationError("bad request", status=400)
        with pytest.raises(GenerationError):
            await orchestrator.handle_text("hello")

        fake_generator.error = None
        result = await orchestrator.handle_text("again")
        assert result.text == fake_generator.reply
        assert orchestrator.jobs.current.id == 2
