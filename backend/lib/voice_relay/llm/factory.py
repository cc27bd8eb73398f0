"""Generation provider factory."""

import logging
from typing import Optional

from .base import BaseGenerator, GeneratorConfig
from .gemini import GeminiGenerator

logger = logging.getLogger(__name__)


def get_generator(
    provider_name: str = "gemini",
    config: Optional[GeneratorConfig] = None,
) -> BaseGenerator:
    """
    Get generation provider instance.

    Args:
        provider_name: Name of provider ("gemini", "openai")
        config: Generator configuration. If None, uses the provider default model.

    Returns:
        Initialized generation provider

    Raises:
        ValueError: If provider_name is unknown

    Examples:
        # Gemini (default)
        gen = get_generator("gemini", GeneratorConfig(model="gemini-1.5-flash", api_key="..."))

        # Any OpenAI-compatible endpoint (text only)
        gen = get_generator("openai", GeneratorConfig(model="gpt-4o-mini", api_key="sk-..."))
    """
    provider_name = provider_name.lower()

    if provider_name == "gemini" or provider_name == "google":
        return GeminiGenerator(config or GeneratorConfig(model="gemini-1.5-flash"))

    elif provider_name == "openai" or provider_name == "openai-compatible":
        from .openai_compatible import OpenAICompatibleGenerator
        return OpenAICompatibleGenerator(config or GeneratorConfig(model="gpt-4o-mini"))

    else:
        raise ValueError(
            f"Unknown generation provider: {provider_name}. "
            f"Available: gemini, openai"
        )
