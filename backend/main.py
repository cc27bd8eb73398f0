"""
Voice Relay Server

A voice/text assistant relay:
- POST /voice and /chat forward a turn to Gemini and reply with text
- Replies are converted to speech (Edge TTS)
- Lifecycle events and audio are fanned out to SSE listeners on /stream
- A new request (or POST /interrupt) cancels the stale one

Usage:
    uvicorn main:app --host 0.0.0.0 --port 5000
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from app.api import router as api_router
from lib.voice_relay import RelayConfig, RequestOrchestrator, __version__
from lib.voice_relay.core.errors import GenerationError, RateLimitedError
from lib.voice_relay.llm import GeneratorConfig, get_generator
from lib.voice_relay.transport import SSE_HEADERS, sse_event_stream
from lib.voice_relay.tts import TTSConfig, get_tts_provider

# Load environment variables from .env file
_project_root = Path(__file__).parent
env_path = _project_root / ".env"
if env_path.exists():
    load_dotenv(env_path)

# Configure logging
logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ============================================================================
# CONFIGURATION
# ============================================================================

PORT = int(os.environ.get("PORT", "5000"))
VERSION = __version__


def build_orchestrator() -> RequestOrchestrator:
    """Create collaborators and the orchestrator from the environment."""
    config = RelayConfig.from_env()

    provider = os.environ.get("GENERATION_PROVIDER", "gemini").lower()
    if provider in ("openai", "openai-compatible"):
        generator_config = GeneratorConfig(
            model=os.environ.get("OPENAI_MODEL", "gpt-4o-mini"),
            api_key=os.environ.get("OPENAI_API_KEY"),
            base_url=os.environ.get("OPENAI_BASE_URL"),
        )
    else:
        generator_config = GeneratorConfig(
            model=os.environ.get("GEMINI_MODEL", "gemini-1.5-flash"),
            api_key=os.environ.get("GOOGLE_API_KEY"),
        )
        if not generator_config.api_key:
            logger.error("❌ GOOGLE_API_KEY not set! Generation will fail.")
    generator = get_generator(provider, generator_config)
    logger.info(f"✅ Generation provider initialized ({generator.get_name()}, model={generator_config.model})")

    tts_config = TTSConfig()
    tts_config.voices["en"] = os.environ.get("TTS_VOICE_EN", tts_config.voices["en"])
    tts_config.voices["hi"] = os.environ.get("TTS_VOICE_HI", tts_config.voices["hi"])
    speech = get_tts_provider(os.environ.get("TTS_PROVIDER", "edge-tts"), tts_config)
    logger.info(f"✅ TTS provider initialized ({speech.__class__.__name__})")

    orchestrator = RequestOrchestrator.from_config(generator, speech, config)
    logger.info(
        f"✅ Rate limiter: {config.rate_limit_tokens:g} tokens / {config.rate_limit_refill_sec:g}s "
        f"(wait voice={config.voice_admission_wait:g}s, text={config.text_admission_wait:g}s)"
    )
    return orchestrator


# ============================================================================
# LIFESPAN (STARTUP/SHUTDOWN)
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup the relay."""
    logger.info("🚀 Starting Voice Relay Server...")

    orchestrator = build_orchestrator()
    orchestrator.config.uploads_dir.mkdir(parents=True, exist_ok=True)
    app.state.orchestrator = orchestrator

    logger.info(f"🎉 Server ready! Listen on http://localhost:{PORT}/stream")

    yield

    logger.info("🛑 Shutting down server...")
    orchestrator.hub.close_all()
    await orchestrator.generator.close()
    logger.info("✅ Server shutdown complete")


# ============================================================================
# FASTAPI APP
# ============================================================================

app = FastAPI(
    title="Voice Relay",
    description="Voice/text assistant relay with single-flight jobs and SSE broadcast",
    version=VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


def get_orchestrator(request: Request) -> RequestOrchestrator:
    return request.app.state.orchestrator


# ============================================================================
# HTTP ENDPOINTS
# ============================================================================

@app.get("/")
async def root():
    return {
        "service": "Voice Relay",
        "status": "running",
        "version": VERSION,
        "endpoints": ["/stream", "/voice", "/chat", "/interrupt", "/health", "/live"],
    }


@app.get("/health")
async def health(request: Request):
    orchestrator = get_orchestrator(request)
    job = orchestrator.jobs.current
    return {
        "status": "healthy",
        "listeners": orchestrator.hub.listener_count,
        "tokens_available": round(orchestrator.limiter.available, 2),
        "current_job": None if job is None else {
            "id": job.id,
            "kind": job.kind.value,
            "cancelled": job.cancelled,
            "age_sec": round(job.age, 2),
        },
        "components": {
            "generation": orchestrator.generator.get_name(),
            "tts": orchestrator.speech.__class__.__name__,
        },
        "broadcast": orchestrator.hub.get_stats(),
    }


@app.get("/stream")
async def stream(request: Request):
    """SSE endpoint: connection acknowledgement, then every relay event."""
    orchestrator = get_orchestrator(request)
    listener = await orchestrator.hub.subscribe()
    return StreamingResponse(
        sse_event_stream(
            orchestrator.hub,
            listener,
            is_disconnected=request.is_disconnected,
            keepalive=orchestrator.config.sse_keepalive_sec,
        ),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@app.post("/interrupt")
async def interrupt(request: Request):
    if await get_orchestrator(request).interrupt():
        return {"ok": True, "message": "Interrupted"}
    return {"ok": True, "message": "Nothing to interrupt"}


@app.post("/voice")
async def voice(
    request: Request,
    file: Optional[UploadFile] = File(None),
    mimeType: Optional[str] = Form(None),
):
    """Relay a recorded utterance (multipart field `file`)."""
    if file is None:
        return JSONResponse(status_code=400, content={"error": "No file uploaded"})

    try:
        audio_bytes = await file.read()
    finally:
        await file.close()
    if not audio_bytes:
        return JSONResponse(status_code=400, content={"error": "No file uploaded"})

    logger.info(f"🎤 Voice request ({len(audio_bytes)} bytes, {mimeType or 'audio/webm'})")
    try:
        result = await get_orchestrator(request).handle_voice(audio_bytes, mimeType)
    except RateLimitedError:
        return JSONResponse(status_code=429, content={"error": "Rate limited"})
    except GenerationError as e:
        logger.error(f"❌ Error processing audio: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to process audio"})

    return result.to_dict()


@app.post("/chat")
async def chat(request: Request):
    """Relay a text message (JSON body `{"message": ...}`)."""
    try:
        body = await request.json()
    except ValueError:
        body = None
    message = body.get("message") if isinstance(body, dict) else None
    if not message or not isinstance(message, str):
        return JSONResponse(status_code=400, content={"error": "Message required"})

    logger.info(f"💬 Chat request: {message[:50]}")
    try:
        result = await get_orchestrator(request).handle_text(message)
    except RateLimitedError:
        return JSONResponse(status_code=429, content={"error": "Rate limited"})
    except GenerationError as e:
        logger.error(f"❌ Error processing chat: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to process message"})

    return result.to_dict()


# ============================================================================
# MAIN
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=PORT,
        reload=True,
        log_level="info"
    )
