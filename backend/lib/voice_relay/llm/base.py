"""
Base class for generation providers.

A generation provider turns one user turn (recorded audio or a text message)
into the assistant's reply text. The relay treats it as an opaque
collaborator: it is called once per job and never preempted.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..core.types import GenerationInput

DEFAULT_VOICE_INSTRUCTION = "You are a helpful voice assistant. Transcribe and reply."


@dataclass
class GeneratorConfig:
    """Configuration for generation providers."""
    model: str
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    voice_instruction: str = DEFAULT_VOICE_INSTRUCTION
    timeout: float = 60.0  # Seconds per upstream request
    max_retries: int = 2  # Extra attempts on transient failures
    retry_backoff: float = 0.5  # Seconds, multiplied by attempt number
    extra_params: Dict[str, Any] = field(default_factory=dict)


class BaseGenerator(ABC):
    """
    Abstract base class for generation providers.

    Retry policy, if any, lives in the provider; callers never retry.

    Example:
        class MyGenerator(BaseGenerator):
            async def generate(self, request: GenerationInput) -> str:
                return "Hello!"
    """

    def __init__(self, config: GeneratorConfig):
        """
        Initialize generation provider.

        Args:
            config: Generator configuration
        """
        self.config = config

    @abstractmethod
    async def generate(self, request: GenerationInput) -> str:
        """
        Produce the assistant reply for one user turn.

        Args:
            request: Audio (with MIME type) or text input

        Returns:
            Reply text, possibly empty

        Raises:
            TransientGenerationError: Upstream rate limit, 5xx, timeout
            GenerationError: Bad input or configuration
        """
        pass

    def get_name(self) -> str:
        """
        Get the provider name.

        Returns:
            Human-readable provider name
        """
        return self.__class__.__name__

    async def close(self) -> None:
        """Release network resources. Default does nothing."""
        pass
