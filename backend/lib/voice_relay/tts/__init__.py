"""
TTS (Text-to-Speech) providers for the voice relay.

Available providers:
- EdgeTTS: Microsoft Edge TTS (free, no API key required)
"""

from .base import TTSProvider, TTSConfig, detect_language_hint
from .factory import get_tts_provider
from .edge_tts_provider import EdgeTTSProvider

__all__ = [
    # Base
    "TTSProvider",
    "TTSConfig",
    "detect_language_hint",
    # Factory
    "get_tts_provider",
    # Providers
    "EdgeTTSProvider",
]
