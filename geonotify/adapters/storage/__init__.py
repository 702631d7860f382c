"""
Storage adapters for geonotify hexagonal architecture.

This module contains SQLite-based storage adapters for incidents,
the location check audit log, and the durable delivery queue.
"""

from .sqlite_incidents import SQLiteIncidentStore
from .sqlite_audit import SQLiteAuditLog
from .sqlite_queue import SQLiteDeliveryQueue

__all__ = ["SQLiteIncidentStore", "SQLiteAuditLog", "SQLiteDeliveryQueue"]
