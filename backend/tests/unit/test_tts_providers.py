"""
Unit tests for TTS providers and language hints (no network).
"""

import asyncio

import pytest

from lib.voice_relay.core.errors import SpeechSynthesisError
from lib.voice_relay.tts import EdgeTTSProvider, TTSConfig, detect_language_hint, get_tts_provider
from lib.voice_relay.tts import edge_tts_provider
from relay_fakes import FAKE_MP3, FakeSpeech


class FakeCommunicate:
    """Stand-in for edge_tts.Communicate."""

    instances = []

    def __init__(self, text, voice, rate="+0%"):
        self.text = text
        self.voice = voice
        self.rate = rate
        FakeCommunicate.instances.append(self)

    async def stream(self):
        yield {"type": "WordBoundary", "offset": 0}
        yield {"type": "audio", "data": b"a" * 5}
        yield {"type": "audio", "data": b"b" * 5}


class BrokenCommunicate(FakeCommunicate):

    async def stream(self):
        raise ConnectionError("No audio was received")
        yield  # pragma: no cover


class TestLanguageHint:

    @pytest.mark.parametrize("text, expected", [
        ("Hello there", "en"),
        ("नमस्ते", "hi"),
        ("Hello नमस्ते", "hi"),
        ("", "en"),
        (None, "en"),
    ])
    def test_detect(self, text, expected):
        assert detect_language_hint(text) == expected

    def test_voice_for_falls_back_to_default(self):
        config = TTSConfig()
        assert config.voice_for("hi") == "hi-IN-SwaraNeural"
        assert config.voice_for("fr") == "en-US-AriaNeural"
        assert config.voice_for(None) == "en-US-AriaNeural"


class TestEdgeTTSProvider:

    @pytest.fixture(autouse=True)
    def fake_edge(self, monkeypatch):
        FakeCommunicate.instances = []
        monkeypatch.setattr(edge_tts_provider.edge_tts, "Communicate", FakeCommunicate)

    @pytest.mark.asyncio
    async def test_chunks_audio_and_picks_voice(self):
        provider = EdgeTTSProvider(TTSConfig(chunk_size=4))

        chunks = [c async for c in provider.stream_audio("नमस्ते", language="hi")]

        assert b"".join(chunks) == b"aaaaabbbbb"
        assert [len(c) for c in chunks] == [4, 4, 2]
        assert FakeCommunicate.instances[0].voice == "hi-IN-SwaraNeural"

    @pytest.mark.asyncio
    async def test_empty_text_yields_nothing(self):
        provider = EdgeTTSProvider()
        assert [c async for c in provider.stream_audio("   ")] == []
        assert FakeCommunicate.instances == []

    @pytest.mark.asyncio
    async def test_failure_raises_speech_error(self, monkeypatch):
        monkeypatch.setattr(edge_tts_provider.edge_tts, "Communicate", BrokenCommunicate)
        provider = EdgeTTSProvider()
        with pytest.raises(SpeechSynthesisError):
            await provider.synthesize_full("hello")

    @pytest.mark.asyncio
    async def test_save_writes_file(self, tmp_path):
        provider = EdgeTTSProvider()
        path = await provider.save("hello", tmp_path / "out.mp3", language="en")
        assert path.read_bytes() == b"aaaaabbbbb"

    @pytest.mark.asyncio
    async def test_save_writes_off_the_event_loop(self, tmp_path, monkeypatch):
        offloaded = []
        real_to_thread = asyncio.to_thread

        async def recording_to_thread(func, *args):
            offloaded.append(func)
            return await real_to_thread(func, *args)

        monkeypatch.setattr(asyncio, "to_thread", recording_to_thread)
        path = await EdgeTTSProvider().save("hello", tmp_path / "out.mp3")

        assert offloaded == [path.write_bytes]
        assert path.read_bytes() == b"aaaaabbbbb"


class TestProviderBase:

    @pytest.mark.asyncio
    async def test_save_without_audio_fails(self, tmp_path):
        provider = EdgeTTSProvider()
        with pytest.raises(SpeechSynthesisError):
            await provider.save("   ", tmp_path / "empty.mp3")
        assert not (tmp_path / "empty.mp3").exists()

    @pytest.mark.asyncio
    async def test_synthesize_full(self):
        assert await FakeSpeech().synthesize_full("hi") == FAKE_MP3

    def test_factory(self):
        assert isinstance(get_tts_provider("edge"), EdgeTTSProvider)
        with pytest.raises(ValueError):
            get_tts_provider("gtts")
