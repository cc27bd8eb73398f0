"""
Configuration for the relay pipeline.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    value = env.get(key)
    if value is None or value == "":
        return default
    return float(value)


@dataclass
class RelayConfig:
    """
    Configuration for the RequestOrchestrator and its coordinator parts.

    Controls admission (token bucket), per-kind admission wait budgets,
    broadcast listener buffering and where transient audio files live.
    """
    # Token bucket
    rate_limit_tokens: float = 6.0  # Bucket capacity (burst)
    rate_limit_refill_sec: float = 10.0  # Seconds to refill an empty bucket
    rate_limit_poll_sec: float = 0.15  # Polling interval while waiting

    # Admission wait budgets (voice already paid for an upload)
    voice_admission_wait: float = 2.0
    text_admission_wait: float = 1.0

    # Broadcast
    listener_queue_size: int = 256
    sse_keepalive_sec: float = 15.0

    # Transient synthesized audio
    # Relative to the working directory (backend/ when run as documented)
    uploads_dir: Path = field(default_factory=lambda: Path("uploads"))

    def __post_init__(self):
        self.uploads_dir = Path(self.uploads_dir)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "RelayConfig":
        """
        Build a config from environment variables, keeping defaults for unset keys.

        Args:
            env: Mapping to read (defaults to os.environ)
        """
        env = os.environ if env is None else env
        defaults = cls()
        return cls(
            rate_limit_tokens=_env_float(env, "RATE_LIMIT_TOKENS", defaults.rate_limit_tokens),
            rate_limit_refill_sec=_env_float(env, "RATE_LIMIT_REFILL_SEC", defaults.rate_limit_refill_sec),
            rate_limit_poll_sec=_env_float(env, "RATE_LIMIT_POLL_SEC", defaults.rate_limit_poll_sec),
            voice_admission_wait=_env_float(env, "VOICE_ADMISSION_WAIT_SEC", defaults.voice_admission_wait),
            text_admission_wait=_env_float(env, "TEXT_ADMISSION_WAIT_SEC", defaults.text_admission_wait),
            listener_queue_size=int(_env_float(env, "LISTENER_QUEUE_SIZE", defaults.listener_queue_size)),
            sse_keepalive_sec=_env_float(env, "SSE_KEEPALIVE_SEC", defaults.sse_keepalive_sec),
            uploads_dir=Path(env.get("UPLOADS_DIR") or defaults.uploads_dir),
        )
