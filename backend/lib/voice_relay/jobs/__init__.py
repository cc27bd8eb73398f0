"""Job lifecycle and cooperative cancellation."""

from .controller import JobController

__all__ = ["JobController"]
