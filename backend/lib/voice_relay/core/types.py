"""
Core types and data structures for the voice relay.

These types are shared by the limiter, broadcast hub, job controller and
request orchestrator so every component speaks the same vocabulary.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional
from datetime import datetime


class JobKind(Enum):
    """Origin of a request."""
    VOICE = "voice"
    TEXT = "text"


class CancelReason(Enum):
    """Why a job stopped before finishing."""
    SUPERSEDED = "superseded"  # A newer job replaced it
    INTERRUPTED = "interrupted"  # Explicit interrupt signal


@dataclass
class Job:
    """
    One in-flight user turn, from admission through final broadcast.

    The `cancelled` flag is flipped at most once and never reset. Work that
    holds a Job checks the flag after each external call returns.
    """
    id: int
    kind: JobKind
    cancelled: bool = False
    cancel_reason: Optional[CancelReason] = None
    created_at: float = field(default_factory=lambda: datetime.now().timestamp())

    def cancel(self, reason: CancelReason) -> bool:
        """
        Mark the job cancelled.

        Returns:
            True if this call cancelled the job, False if it was already cancelled
        """
        if self.cancelled:
            return False
        self.cancelled = True
        self.cancel_reason = reason
        return True

    @property
    def age(self) -> float:
        """Seconds since the job was admitted."""
        return datetime.now().timestamp() - self.created_at


class EventType(Enum):
    """Event types pushed to broadcast listeners."""
    CONNECTED = "connected"
    STATUS = "status"
    ASSISTANT = "assistant"
    RESPONSE_AUDIO = "response_audio"
    STOP = "stop"


@dataclass
class RelayEvent:
    """
    An event pushed to every connected listener.

    Serialized as a flat `{type, ...fields}` record.
    """
    type: EventType
    fields: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the flat wire record."""
        return {"type": self.type.value, **self.fields}

    @classmethod
    def connected(cls) -> "RelayEvent":
        """Create a connection acknowledgement."""
        return cls(type=EventType.CONNECTED)

    @classmethod
    def status(cls, message: str) -> "RelayEvent":
        """Create a status event."""
        return cls(type=EventType.STATUS, fields={"message": message})

    @classmethod
    def assistant(cls, text: str) -> "RelayEvent":
        """Create an assistant reply event."""
        return cls(type=EventType.ASSISTANT, fields={"text": text})

    @classmethod
    def response_audio(cls, audio_base64: str) -> "RelayEvent":
        """Create a synthesized audio event (base64 MP3)."""
        return cls(type=EventType.RESPONSE_AUDIO, fields={"audio": audio_base64})

    @classmethod
    def stop(cls) -> "RelayEvent":
        """Create a stop event (cease playback/processing)."""
        return cls(type=EventType.STOP)


@dataclass
class GenerationInput:
    """
    Input to a generation collaborator.

    Exactly one of `audio` or `text` is set.
    """
    audio: Optional[bytes] = None
    mime_type: str = "audio/webm"
    text: Optional[str] = None

    def __post_init__(self):
        if (self.audio is None) == (self.text is None):
            raise ValueError("GenerationInput needs exactly one of audio or text")

    @property
    def is_audio(self) -> bool:
        return self.audio is not None

    @classmethod
    def from_audio(cls, audio: bytes, mime_type: Optional[str] = None) -> "GenerationInput":
        return cls(audio=audio, mime_type=mime_type or "audio/webm")

    @classmethod
    def from_text(cls, text: str) -> "GenerationInput":
        return cls(text=text)


@dataclass
class RelayResult:
    """
    Direct response to the caller of an admission entry point.

    Independent of whether any listener received the broadcast.
    """
    text: Optional[str] = None
    cancelled: bool = False
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON response body."""
        if self.cancelled:
            d = {"ok": True, "cancelled": True}
            if self.reason:
                d["reason"] = self.reason
            return d
        return {"ok": True, "text": self.text}
