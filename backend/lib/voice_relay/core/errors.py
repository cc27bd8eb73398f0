"""Exception hierarchy for the voice relay."""


class RelayError(Exception):
    """Base class for relay errors."""


class ConfigurationError(RelayError, ValueError):
    """Invalid configuration detected at construction time."""


class RateLimitedError(RelayError):
    """Admission wait expired before a token became available."""

    def __init__(self, message: str = "Rate limited", waited: float = 0.0):
        super().__init__(message)
        self.waited = waited


class GenerationError(RelayError):
    """
    Generation collaborator failed.

    Permanent by default (bad input, missing key, 4xx). See
    TransientGenerationError for failures worth retrying.
    """

    def __init__(self, message: str, status: int = None):
        super().__init__(message)
        self.status = status

    @property
    def transient(self) -> bool:
        return False


class TransientGenerationError(GenerationError):
    """Upstream rate limiting, server error, timeout or connection failure."""

    @property
    def transient(self) -> bool:
        return True


class SpeechSynthesisError(RelayError):
    """Speech collaborator produced no audio."""


class ListenerClosedError(RelayError):
    """Write attempted on a closed or evicted listener."""
