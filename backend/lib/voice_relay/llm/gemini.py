"""
Gemini generation provider.

Calls the Generative Language REST API (`models/{model}:generateContent`)
directly over aiohttp. Supports both recorded audio (sent inline, base64)
and plain text turns.
"""

import asyncio
import base64
import logging
from typing import Any, Dict, Optional

import aiohttp

from ..core.errors import GenerationError, TransientGenerationError
from ..core.types import GenerationInput
from .base import BaseGenerator, GeneratorConfig

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


def extract_reply_text(data: Dict[str, Any]) -> str:
    """
    Stitch the text parts of the first candidate.

    Gemini can split a reply over several parts; parts without text
    contribute nothing. Any missing level yields "".
    """
    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return ""
    return "".join(p.get("text") or "" for p in parts if isinstance(p, dict)).strip()


def classify_http_error(status: int, body: str) -> GenerationError:
    """Map an upstream HTTP status to a transient or permanent error."""
    message = f"Gemini returned HTTP {status}: {body[:200]}"
    if status == 429 or status >= 500:
        return TransientGenerationError(message, status=status)
    return GenerationError(message, status=status)


class GeminiGenerator(BaseGenerator):
    """
    Generation provider for Google Gemini.

    Transient failures (429, 5xx, timeouts, connection errors) are retried
    up to `config.max_retries` times with a linear backoff.

    Example:
        gen = GeminiGenerator(GeneratorConfig(model="gemini-1.5-flash", api_key="..."))
        text = await gen.generate(GenerationInput.from_text("hello"))
    """

    def __init__(
        self,
        config: GeneratorConfig,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize Gemini provider.

        Args:
            config: Generator configuration (api_key required)
            session: Shared aiohttp session (created lazily if None)
        """
        super().__init__(config)
        self.base_url = (config.base_url or GEMINI_BASE_URL).rstrip("/")
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.timeout)
            )
            self._owns_session = True
            logger.info(f"Gemini HTTP session opened (model={self.config.model})")
        return self._session

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.config.model}:generateContent"

    def build_payload(self, request: GenerationInput) -> Dict[str, Any]:
        """Build the generateContent request body."""
        if request.is_audio:
            parts = [
                {"text": self.config.voice_instruction},
                {
                    "inlineData": {
                        "mimeType": request.mime_type,
                        "data": base64.b64encode(request.audio).decode("ascii"),
                    }
                },
            ]
        else:
            parts = [{"text": request.text}]

        payload = {"contents": [{"role": "user", "parts": parts}]}
        payload.update(self.config.extra_params)
        return payload

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        session = self._get_session()
        try:
            async with session.post(
                self.endpoint,
                params={"key": self.config.api_key},
                json=payload,
                headers={"Content-Type": "application/json"},
            ) as response:
                if response.status != 200:
                    raise classify_http_error(response.status, await response.text())
                return await response.json()
        except asyncio.TimeoutError:
            raise TransientGenerationError(
                f"Gemini request timed out after {self.config.timeout:.0f}s"
            )
        except aiohttp.ClientError as e:
            raise TransientGenerationError(f"Gemini connection failed: {e}")

    async def generate(self, request: GenerationInput) -> str:
        """
        Generate the reply for one turn.

        Args:
            request: Audio or text input

        Returns:
            Reply text ("" if the model returned no text)
        """
        if not self.config.api_key:
            raise GenerationError("GOOGLE_API_KEY is not configured")

        payload = self.build_payload(request)
        kind = "audio" if request.is_audio else "text"
        attempts = self.config.max_retries + 1

        for attempt in range(1, attempts + 1):
            try:
                data = await self._post(payload)
                text = extract_reply_text(data)
                logger.info(f"Generated {len(text)} chars from {kind} input")
                return text
            except TransientGenerationError as e:
                if attempt >= attempts:
                    logger.error(f"Gemini failed after {attempt} attempt(s): {e}")
                    raise
                delay = self.config.retry_backoff * attempt
                logger.warning(f"Gemini transient failure (attempt {attempt}), retrying in {delay:.1f}s: {e}")
                await asyncio.sleep(delay)
            except GenerationError as e:
                logger.error(f"Gemini rejected {kind} request: {e}")
                raise

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
