"""
Background delivery workers for geonotify.
"""

from .webhook_dispatcher import WebhookDispatcher, LoopState

__all__ = ["WebhookDispatcher", "LoopState"]
