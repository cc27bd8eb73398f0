"""
Generation providers for the voice relay.

Available providers:
- GeminiGenerator: Google Gemini generateContent (audio and text)
- OpenAICompatibleGenerator: Any OpenAI-compatible chat API (text only)
"""

from .base import BaseGenerator, GeneratorConfig
from .factory import get_generator
from .gemini import GeminiGenerator, extract_reply_text
from .openai_compatible import OpenAICompatibleGenerator

__all__ = [
    # Base
    "BaseGenerator",
    "GeneratorConfig",
    # Factory
    "get_generator",
    # Providers
    "GeminiGenerator",
    "OpenAICompatibleGenerator",
    "extract_reply_text",
]
