"""
Shared pytest fixtures.

Builds a relay orchestrator wired to fake collaborators (see relay_fakes)
so the core can be exercised without calling Gemini or Edge TTS.
"""

import pytest

from lib.voice_relay import RelayConfig, RequestOrchestrator
from relay_fakes import FakeGenerator, FakeSpeech


@pytest.fixture
def relay_config(tmp_path):
    """Fast relay config writing transient audio under tmp_path."""
    return RelayConfig(
        rate_limit_tokens=6,
        rate_limit_refill_sec=10,
        rate_limit_poll_sec=0.01,
        voice_admission_wait=0.05,
        text_admission_wait=0.05,
        uploads_dir=tmp_path / "uploads",
    )


@pytest.fixture
def fake_generator():
    return FakeGenerator()


@pytest.fixture
def fake_speech():
    return FakeSpeech()


@pytest.fixture
def orchestrator(fake_generator, fake_speech, relay_config):
    return RequestOrchestrator.from_config(fake_generator, fake_speech, relay_config)
