"""Admission control."""

from .token_bucket import TokenBucket

__all__ = ["TokenBucket"]
