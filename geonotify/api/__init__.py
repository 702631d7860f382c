"""
HTTP routes for geonotify.
"""

from .errors import register_exception_handlers
from .incidents import build_incident_router
from .location import build_location_router

__all__ = ["register_exception_handlers", "build_incident_router", "build_location_router"]
