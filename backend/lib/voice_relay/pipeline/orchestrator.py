"""
Request orchestrator.

Runs one user turn end to end: admit → start job → generate → speak →
broadcast, with cancellation checks after each external call returns.
The direct result and the broadcast stream are independent delivery paths.
"""

import asyncio
import base64
import logging
import uuid
from pathlib import Path
from typing import Optional

from .config import RelayConfig
from ..broadcast.hub import BroadcastHub
from ..core.errors import GenerationError, RateLimitedError
from ..core.types import GenerationInput, Job, JobKind, RelayEvent, RelayResult
from ..jobs.controller import JobController
from ..limiter.token_bucket import TokenBucket
from ..llm.base import BaseGenerator
from ..tts.base import TTSProvider, detect_language_hint

logger = logging.getLogger(__name__)

_PROCESSING = {
    JobKind.VOICE: "Processing audio...",
    JobKind.TEXT: "Processing message...",
}
_SERVER_ERROR = {
    JobKind.VOICE: "Server error processing audio.",
    JobKind.TEXT: "Server error processing message.",
}
RATE_LIMITED_STATUS = "Rate limited: try again later."


class RequestOrchestrator:
    """
    Per-request workflow on top of the single-flight job coordinator.

    Example:
        orchestrator = RequestOrchestrator.from_config(
            generator=GeminiGenerator(GeneratorConfig(model="gemini-1.5-flash", api_key="...")),
            speech=EdgeTTSProvider(),
        )
        listener = await orchestrator.hub.subscribe()
        result = await orchestrator.handle_text("hello")
    """

    def __init__(
        self,
        limiter: TokenBucket,
        jobs: JobController,
        hub: BroadcastHub,
        generator: BaseGenerator,
        speech: TTSProvider,
        config: Optional[RelayConfig] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            limiter: Admission token bucket
            jobs: Job controller (shares `hub`)
            hub: Broadcast hub for lifecycle events
            generator: Generation collaborator
            speech: Speech collaborator
            config: Relay configuration (wait budgets, uploads dir)
        """
        self.limiter = limiter
        self.jobs = jobs
        self.hub = hub
        self.generator = generator
        self.speech = speech
        self.config = config or RelayConfig()

    @classmethod
    def from_config(
        cls,
        generator: BaseGenerator,
        speech: TTSProvider,
        config: Optional[RelayConfig] = None,
    ) -> "RequestOrchestrator":
        """Build the limiter, hub and job controller from config."""
        config = config or RelayConfig()
        hub = BroadcastHub(listener_queue_size=config.listener_queue_size)
        limiter = TokenBucket(
            capacity=config.rate_limit_tokens,
            refill_period=config.rate_limit_refill_sec,
            poll_interval=config.rate_limit_poll_sec,
        )
        return cls(limiter, JobController(hub), hub, generator, speech, config)

    async def handle_voice(self, audio: bytes, mime_type: Optional[str] = None) -> RelayResult:
        """
        Process one recorded utterance.

        Raises:
            RateLimitedError: Admission wait expired (no job created)
            GenerationError: Generation collaborator failed
        """
        return await self._run(
            JobKind.VOICE,
            GenerationInput.from_audio(audio, mime_type),
            self.config.voice_admission_wait,
        )

    async def handle_text(self, message: str) -> RelayResult:
        """
        Process one text message.

        Raises:
            RateLimitedError: Admission wait expired (no job created)
            GenerationError: Generation collaborator failed
        """
        return await self._run(
            JobKind.TEXT,
            GenerationInput.from_text(message),
            self.config.text_admission_wait,
        )

    async def interrupt(self) -> bool:
        """Cancel the current job. Returns False if nothing was running."""
        return await self.jobs.interrupt()

    async def _run(self, kind: JobKind, request: GenerationInput, max_wait: float) -> RelayResult:
        # 1. Admission
        if not await self.limiter.await_acquire(max_wait):
            logger.warning(f"🚦 {kind.value} request rate limited after {max_wait:.1f}s")
            if kind is JobKind.VOICE:
                await self.hub.publish(RelayEvent.status(RATE_LIMITED_STATUS))
            raise RateLimitedError(waited=max_wait)

        # 2. Job
        job = await self.jobs.start_job(kind)
        await self.hub.publish(RelayEvent.status(_PROCESSING[kind]))

        # 3. Generation
        try:
            reply = await self.generator.generate(request)
        except Exception as e:
            logger.error(f"❌ Job #{job.id} generation failed: {e}")
            await self.hub.publish(RelayEvent.status(_SERVER_ERROR[kind]))
            if isinstance(e, GenerationError):
                raise
            raise GenerationError(str(e)) from e

        # 4. First checkpoint
        if not reply or job.cancelled:
            reason = job.cancel_reason.value if job.cancel_reason else "empty_reply"
            logger.info(f"⏭️ Job #{job.id} dropped after generation ({reason})")
            return RelayResult(cancelled=True, reason=reason)

        # 5-6. Reply text, then speech
        await self.hub.publish(RelayEvent.assistant(reply))
        await self._speak_and_broadcast(reply, job)

        # 7. Direct response
        logger.info(f"✅ Job #{job.id} complete ({len(reply)} chars)")
        return RelayResult(text=reply)

    def _artifact_path(self, job: Job) -> Path:
        return self.config.uploads_dir / f"response-{job.id}-{uuid.uuid4().hex[:8]}.mp3"

    async def _speak_and_broadcast(self, text: str, job: Job) -> None:
        """Synthesize speech and broadcast it unless the job was cancelled meanwhile."""
        if job.cancelled:
            return

        self.config.uploads_dir.mkdir(parents=True, exist_ok=True)
        audio_path = self._artifact_path(job)
        language = detect_language_hint(text)

        try:
            try:
                await self.speech.save(text, audio_path, language=language)
            except Exception as e:
                logger.error(f"❌ TTS failed for job #{job.id}: {e}")
                return

            # Second checkpoint
            if job.cancelled:
                logger.info(f"⏭️ Job #{job.id} audio dropped ({job.cancel_reason.value})")
                return

            try:
                audio = await asyncio.to_thread(audio_path.read_bytes)
            except OSError as e:
                logger.error(f"❌ Failed to read audio file for job #{job.id}: {e}")
                return

            await self.hub.publish(RelayEvent.response_audio(base64.b64encode(audio).decode("ascii")))
        finally:
            audio_path.unlink(missing_ok=True)
