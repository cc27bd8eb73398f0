"""Edge-TTS provider implementation."""

import logging
from typing import AsyncIterator, Optional

import edge_tts

from ..core.errors import SpeechSynthesisError
from .base import TTSConfig, TTSProvider

logger = logging.getLogger(__name__)


class EdgeTTSProvider(TTSProvider):
    """
    Microsoft Edge online TTS. No API key; neural voices for English and
    Hindi by default. Output is MP3.
    """

    def __init__(self, config: Optional[TTSConfig] = None):
        super().__init__(config)

    async def _audio_frames(self, text: str, voice: str) -> AsyncIterator[bytes]:
        communicate = edge_tts.Communicate(text, voice, rate=self.config.rate)
        async for message in communicate.stream():
            if message["type"] == "audio" and message["data"]:
                yield message["data"]

    async def stream_audio(self, text: str, language: Optional[str] = None) -> AsyncIterator[bytes]:
        """
        Yield MP3 audio re-cut into `chunk_size` pieces (the last may be shorter).

        Raises:
            SpeechSynthesisError: If Edge-TTS fails or the voice is rejected
        """
        if not text or not text.strip():
            logger.warning("Empty text provided to TTS, skipping")
            return

        voice = self.config.voice_for(language)
        size = self.config.chunk_size
        pending = b""
        emitted = 0
        logger.debug(f"🔊 Edge-TTS ({voice}) for {len(text)} chars: {text[:50]}...")

        try:
            async for frame in self._audio_frames(text, voice):
                pending += frame
                while len(pending) >= size:
                    piece, pending = pending[:size], pending[size:]
                    emitted += 1
                    yield piece
        except Exception as e:
            reason = str(e)
            if "No audio was received" in reason:
                logger.warning(f"⚠️ Edge-TTS returned no audio (voice={voice})")
            elif "SSL" in reason or "certificate" in reason.lower():
                logger.warning(f"⚠️ Edge-TTS SSL error: {reason}")
            else:
                logger.error(f"❌ Edge-TTS error: {e}")
            raise SpeechSynthesisError(f"Edge-TTS failed: {reason}") from e

        if pending:
            emitted += 1
            yield pending

        logger.info(f"✅ Edge-TTS completed: {emitted} MP3 chunks ({voice})")
