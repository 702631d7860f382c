"""
Common utilities for geonotify.
"""

from .retry import backoff_delay, exponential_backoff, retry_with_backoff

__all__ = ["backoff_delay", "exponential_backoff", "retry_with_backoff"]
