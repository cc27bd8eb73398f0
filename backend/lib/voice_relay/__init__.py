"""Voice Relay - single-flight job coordination for a voice/text assistant

This package contains the reusable relay core. It has ZERO dependencies on
the HTTP application in `backend/main.py` and `backend/app/`.

Design Philosophy:
- One current job; a new request always preempts a stale one
- Cooperative cancellation (flags checked after opaque external calls)
- Best-effort broadcast fanout, no history
- Collaborators (generation, speech) injected into the orchestrator

Components:
- limiter: Continuous token bucket for admission
- broadcast: Publish/subscribe hub and listener sinks
- jobs: Current-job ownership and cancellation
- pipeline: Per-request orchestration and configuration
- llm: Generation providers (pluggable)
- tts: Text-to-speech providers (pluggable)
- transport: Server-Sent Events framing

Usage:
    from lib.voice_relay import RequestOrchestrator, RelayConfig
"""

__version__ = "1.0.0"

from .broadcast import BroadcastHub, Listener, QueueListener
from .jobs import JobController
from .limiter import TokenBucket
from .pipeline import RelayConfig, RequestOrchestrator

__all__ = [
    "BroadcastHub",
    "JobController",
    "Listener",
    "QueueListener",
    "RelayConfig",
    "RequestOrchestrator",
    "TokenBucket",
]
