"""
Pytest fixtures for E2E tests.

Provides:
- FastAPI test client with the relay wired to fake collaborators
- Sample upload audio
"""

import pytest
from fastapi.testclient import TestClient

import main
from lib.voice_relay import RequestOrchestrator


@pytest.fixture
def sample_webm():
    """A few bytes that look like a WebM/EBML header."""
    return b"\x1aE\xdf\xa3\x9fB\x86\x81\x01webm-opus-frames"


@pytest.fixture
def app(monkeypatch, fake_generator, fake_speech, relay_config):
    """FastAPI app whose lifespan builds an orchestrator around the fakes."""
    monkeypatch.setattr(
        main,
        "build_orchestrator",
        lambda: RequestOrchestrator.from_config(fake_generator, fake_speech, relay_config),
    )
    return main.app


@pytest.fixture
def sync_client(app):
    """Create synchronous test client (runs startup/shutdown)."""
    with TestClient(app) as client:
        yield client
