"""
OpenAI-compatible generation provider.

Text-only alternative to the Gemini provider. Works with any
OpenAI-compatible chat completions API:
- OpenAI
- Gemini's OpenAI-compatible endpoint
- DeepSeek, Groq, Together AI
- Local LLMs with OpenAI-compatible endpoints (Ollama, vLLM, etc.)
"""

import logging
from typing import Optional

import openai

from ..core.errors import GenerationError, TransientGenerationError
from ..core.types import GenerationInput
from .base import BaseGenerator, GeneratorConfig

logger = logging.getLogger(__name__)


class OpenAICompatibleGenerator(BaseGenerator):
    """
    Generation provider for OpenAI-compatible APIs.

    Stateless: each turn is sent on its own. Retries on transient errors are
    delegated to the openai client (`max_retries`).

    Example:
        gen = OpenAICompatibleGenerator(
            GeneratorConfig(model="gpt-4o-mini", api_key="sk-...")
        )

        # Local Ollama
        gen = OpenAICompatibleGenerator(
            GeneratorConfig(model="llama3", base_url="http://localhost:11434/v1")
        )
    """

    def __init__(self, config: GeneratorConfig, system_prompt: Optional[str] = None):
        """
        Initialize OpenAI-compatible provider.

        Args:
            config: Generator configuration
            system_prompt: Optional system message prepended to each turn
        """
        super().__init__(config)
        self.system_prompt = system_prompt
        self._client = None

    def _get_client(self) -> openai.AsyncOpenAI:
        """Get or create async OpenAI client."""
        if self._client is None:
            kwargs = {
                "timeout": self.config.timeout,
                "max_retries": self.config.max_retries,
            }
            if self.config.api_key:
                kwargs["api_key"] = self.config.api_key
            if self.config.base_url:
                kwargs["base_url"] = self.config.base_url
            self._client = openai.AsyncOpenAI(**kwargs)
            logger.info(f"AsyncOpenAI client initialized (base_url={self.config.base_url})")
        return self._client

    async def generate(self, request: GenerationInput) -> str:
        """
        Generate a reply for a text turn.

        Raises:
            GenerationError: For audio input or a rejected request
            TransientGenerationError: Rate limits, 5xx, timeouts
        """
        if request.is_audio:
            raise GenerationError(f"{self.get_name()} does not accept audio input")

        messages = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append({"role": "user", "content": request.text})

        try:
            response = await self._get_client().chat.completions.create(
                model=self.config.model,
                messages=messages,
                **self.config.extra_params,
            )
        except (openai.RateLimitError, openai.InternalServerError, openai.APIConnectionError) as e:
            raise TransientGenerationError(f"OpenAI-compatible request failed: {e}")
        except openai.APIStatusError as e:
            raise GenerationError(f"OpenAI-compatible request rejected: {e}", status=e.status_code)

        text = (response.choices[0].message.content or "").strip() if response.choices else ""
        logger.info(f"Generated {len(text)} chars")
        return text

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
