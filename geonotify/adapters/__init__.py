"""
Adapters for geonotify hexagonal architecture.

This module contains adapter implementations that connect
the core domain to external systems and infrastructure.
"""

from .storage import SQLiteIncidentStore, SQLiteAuditLog, SQLiteDeliveryQueue
from .webhook import WebhookClient

__all__ = ["SQLiteIncidentStore", "SQLiteAuditLog", "SQLiteDeliveryQueue", "WebhookClient"]
