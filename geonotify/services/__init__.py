"""
Application services for geonotify.
"""

from .location_check import LocationCheckService
from .incidents import IncidentService

__all__ = ["LocationCheckService", "IncidentService"]
