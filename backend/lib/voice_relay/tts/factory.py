"""TTS provider factory."""

from typing import Optional

from .base import TTSConfig, TTSProvider
from .edge_tts_provider import EdgeTTSProvider

_PROVIDERS = {
    "edge-tts": EdgeTTSProvider,
    "edge": EdgeTTSProvider,
}


def get_tts_provider(
    provider_name: str = "edge-tts",
    config: Optional[TTSConfig] = None
) -> TTSProvider:
    """
    Get TTS provider instance by name (TTS_PROVIDER).

    Raises:
        ValueError: If provider_name is unknown

    Example:
        config = TTSConfig(voices={"en": "en-GB-SoniaNeural", "hi": "hi-IN-MadhurNeural"})
        tts = get_tts_provider("edge-tts", config)
    """
    provider_cls = _PROVIDERS.get(provider_name.lower())
    if provider_cls is None:
        raise ValueError(
            f"Unknown TTS provider: {provider_name}. "
            f"Available: {', '.join(sorted(_PROVIDERS))}"
        )
    return provider_cls(config)
