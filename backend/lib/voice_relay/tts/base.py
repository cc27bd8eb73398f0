"""Speech synthesis interface and language hinting."""

import asyncio
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import AsyncIterator, Dict, Optional, Union

from ..core.errors import SpeechSynthesisError

# Devanagari block (Hindi, Marathi, Nepali, ...)
_DEVANAGARI = re.compile(r"[ऀ-ॿ]")


def detect_language_hint(text: str) -> str:
    """Return "hi" for text containing Devanagari, otherwise "en"."""
    return "hi" if _DEVANAGARI.search(text or "") else "en"


@dataclass
class TTSConfig:
    """Voices per language hint plus synthesis tuning."""
    voices: Dict[str, str] = field(default_factory=lambda: {
        "en": "en-US-AriaNeural",
        "hi": "hi-IN-SwaraNeural",
    })
    default_language: str = "en"
    rate: str = "+0%"
    chunk_size: int = 4096  # Bytes per yielded MP3 chunk

    def voice_for(self, language: Optional[str]) -> str:
        """Pick the voice for a language hint, falling back to the default language."""
        if language and language in self.voices:
            return self.voices[language]
        return self.voices[self.default_language]


class TTSProvider(ABC):
    """
    Speech collaborator of the relay.

    Subclasses implement stream_audio(); the orchestrator only calls save(),
    which collects the stream into an MP3 file.
    """

    def __init__(self, config: Optional[TTSConfig] = None):
        self.config = config or TTSConfig()

    @abstractmethod
    async def stream_audio(self, text: str, language: Optional[str] = None) -> AsyncIterator[bytes]:
        """
        Yield MP3 chunks for `text` spoken with the voice for `language`.

        Raises:
            SpeechSynthesisError: If the backend fails
        """
        pass

    async def synthesize_full(self, text: str, language: Optional[str] = None) -> bytes:
        """Collect the whole stream into one MP3 payload."""
        audio = bytearray()
        async for chunk in self.stream_audio(text, language):
            audio.extend(chunk)
        return bytes(audio)

    async def save(self, text: str, path: Union[str, Path], language: Optional[str] = None) -> Path:
        """
        Synthesize `text` into an MP3 file at `path`.

        Nothing is written when synthesis yields no audio.

        Raises:
            SpeechSynthesisError: If synthesis fails or produced no audio
        """
        audio = await self.synthesize_full(text, language)
        if not audio:
            raise SpeechSynthesisError("TTS produced no audio")
        path = Path(path)
        await asyncio.to_thread(path.write_bytes, audio)
        return path
