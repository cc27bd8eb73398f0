"""
Relay pipeline orchestration.

The orchestrator ties together admission, the job controller, the
broadcast hub and the generation/speech collaborators.
"""

from .config import RelayConfig
from .orchestrator import RequestOrchestrator

__all__ = [
    "RelayConfig",
    "RequestOrchestrator",
]
