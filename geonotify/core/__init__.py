"""
Core domain models and pure functions for geonotify.

This module contains the domain models and pure business logic
that are independent of external I/O and infrastructure concerns.
"""

from .models import (
    Incident, IncidentWrite, LocationCheckRequest, LocationCheckResponse,
    LocationCheckAudit, WebhookPayload, DeliveryTask, DeliveryState,
    QueuedMessage, DeadLetter,
)
from .geofence import match_incidents
from .delivery import DeliveryPlan, plan_after_failure

__all__ = [
    "Incident", "IncidentWrite", "LocationCheckRequest", "LocationCheckResponse",
    "LocationCheckAudit", "WebhookPayload", "DeliveryTask", "DeliveryState",
    "QueuedMessage", "DeadLetter", "match_incidents", "DeliveryPlan", "plan_after_failure",
]
