"""Core types and errors for the voice relay."""

from .types import (
    CancelReason,
    EventType,
    GenerationInput,
    Job,
    JobKind,
    RelayEvent,
    RelayResult,
)
from .errors import (
    ConfigurationError,
    GenerationError,
    ListenerClosedError,
    RateLimitedError,
    RelayError,
    SpeechSynthesisError,
    TransientGenerationError,
)

__all__ = [
    # Types
    "CancelReason",
    "EventType",
    "GenerationInput",
    "Job",
    "JobKind",
    "RelayEvent",
    "RelayResult",
    # Errors
    "ConfigurationError",
    "GenerationError",
    "ListenerClosedError",
    "RateLimitedError",
    "RelayError",
    "SpeechSynthesisError",
    "TransientGenerationError",
]
