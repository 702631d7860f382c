"""
Port interfaces for geonotify hexagonal architecture.

This module defines the port interfaces (Protocols) that define
the contracts between the core domain and external adapters.
"""

from .incidents import IncidentSourcePort
from .audit import AuditSinkPort
from .queue import DeliveryQueuePort
from .webhook import WebhookSenderPort

__all__ = ["IncidentSourcePort", "AuditSinkPort", "DeliveryQueuePort", "WebhookSenderPort"]
