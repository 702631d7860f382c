"""
Outbound webhook adapters for geonotify.
"""

from .client import WebhookClient, is_retryable_status

__all__ = ["WebhookClient", "is_retryable_status"]
